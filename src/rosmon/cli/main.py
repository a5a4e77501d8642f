"""``rosmon`` command line: root group, shared context and error reporting."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

import click

from rosmon.api.errors import (
    AuthError,
    CommandTimeoutError,
    ConfigError,
    ConnectError,
    ConnectionLostError,
    NotFoundError,
    ProtocolFramingError,
    RouterCommandError,
    RouterError,
)
from rosmon.models.config import RouterSettings
from rosmon.output.formatter import OutputFormatter

_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclasses.dataclass
class AppContext:
    """Per-invocation state handed to commands via ``@click.pass_obj``.

    ``None`` fields fall through to ``MIKROTIK_*`` environment variables
    and the ``.env`` file.
    """

    host: str | None = None
    port: int | None = None
    user: str | None = None
    timeout: float | None = None
    output_format: str | None = None
    quiet: bool = False
    verbose: bool = False
    _formatter: OutputFormatter | None = dataclasses.field(default=None, repr=False)

    @property
    def formatter(self) -> OutputFormatter:
        if self._formatter is None:
            self._formatter = OutputFormatter(
                force_format="quiet" if self.quiet else self.output_format
            )
        return self._formatter

    def settings(self) -> RouterSettings:
        """Environment / .env settings with command-line overrides applied."""
        fields = ("host", "port", "user", "timeout")
        overrides = {name: getattr(self, name) for name in fields}
        return RouterSettings(**{k: v for k, v in overrides.items() if v is not None})


def configure_logging(verbose: bool) -> None:
    """DEBUG logging (including wire sentences) with --verbose, else warnings only."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
        force=True,
    )


# Error class -> (envelope code, next-step hint).  First match wins.
_ERROR_CODES: tuple[tuple[type[RouterError], str, str], ...] = (
    (
        ConfigError,
        "config_error",
        "Set MIKROTIK_HOST / MIKROTIK_PORT or put them in a .env file.",
    ),
    (
        ConnectError,
        "connect_failed",
        "Check the address and that '/ip service api' is enabled on the router.",
    ),
    (
        AuthError,
        "auth_failed",
        "Check MIKROTIK_USER / MIKROTIK_PASSWORD and that the user has the 'api' policy.",
    ),
    (CommandTimeoutError, "timeout", "Raise --timeout or MIKROTIK_TIMEOUT."),
    (ConnectionLostError, "connection_lost", ""),
    (ProtocolFramingError, "protocol_error", ""),
    (NotFoundError, "not_found", ""),
    (RouterCommandError, "router_error", ""),
)


def report_router_error(exc: RouterError, formatter: OutputFormatter, command: str) -> None:
    """Show *exc* in the active format, with a hint for the common setup mistakes."""
    code, hint = "router_error", ""
    for exc_type, exc_code, exc_hint in _ERROR_CODES:
        if isinstance(exc, exc_type):
            code, hint = exc_code, exc_hint
            break

    if formatter.format == "json":
        message = f"{exc} {hint}".strip()
        formatter.output_error(code=code, message=message, command=command)
        return
    formatter.rich.error(str(exc))
    if hint:
        formatter.rich.info(f"[dim]{hint}[/dim]")


class RouterGroup(click.Group):
    """Reports :class:`RouterError` from any subcommand while its context is live."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except RouterError as exc:
            app_ctx = ctx.find_object(AppContext) or AppContext()
            report_router_error(exc, app_ctx.formatter, ctx.invoked_subcommand or "unknown")
            raise SystemExit(1) from exc


@click.group(cls=RouterGroup)
@click.option("--host", default=None, help="Router address (env: MIKROTIK_HOST)")
@click.option("--port", type=int, default=None, help="Router API port (env: MIKROTIK_PORT)")
@click.option("--user", default=None, help="API user name (env: MIKROTIK_USER)")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Per-command timeout in seconds (env: MIKROTIK_TIMEOUT)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["rich", "json", "quiet"]),
    default=None,
    help="Output format (default: rich on a terminal, json when piped)",
)
@click.option("--quiet", is_flag=True, help="Suppress normal output")
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
@click.version_option(package_name="rosmon")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, **options: Any) -> None:
    """Monitor a MikroTik router's DHCP leases, PPPoE sessions and resources."""
    configure_logging(verbose)
    ctx.obj = AppContext(verbose=verbose, **options)


def _register_commands() -> None:
    from rosmon.cli.monitor import (
        disconnect_cmd,
        leases_cmd,
        pppoe_cmd,
        resources_cmd,
        stats_cmd,
    )
    from rosmon.cli.serve import serve_cmd

    for command in (leases_cmd, pppoe_cmd, stats_cmd, resources_cmd, disconnect_cmd, serve_cmd):
        cli.add_command(command)


_register_commands()


def main(argv: list[str] | None = None) -> None:
    """Console-script entry point; exits 1 on errors and 130 on Ctrl-C."""
    try:
        cli(args=argv, standalone_mode=False)
    except click.exceptions.Exit as exc:
        raise SystemExit(exc.exit_code) from None
    except click.exceptions.Abort:
        raise SystemExit(1) from None
    except click.exceptions.ClickException as exc:
        exc.show()
        raise SystemExit(exc.exit_code) from None
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except SystemExit:
        raise
    except Exception as exc:
        OutputFormatter().output_error(
            code=type(exc).__name__, message=str(exc), command="unknown"
        )
        raise SystemExit(1) from exc
