"""Shared CLI decorator that propagates global options to leaf commands."""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any

import click

if TYPE_CHECKING:
    from rosmon.cli.main import AppContext

# Leaf-level option name -> AppContext attribute it overrides.
_OVERRIDES = {
    "local_host": "host",
    "local_port": "port",
    "local_user": "user",
    "local_timeout": "timeout",
    "local_output_format": "output_format",
}


def global_options(f: Any) -> Any:
    """Accept the router and output options after the subcommand too.

    ``rosmon leases --host 10.0.0.1 --format json`` behaves like
    ``rosmon --host 10.0.0.1 --format json leases``; values given on the
    subcommand win over the group's.
    """

    @click.option("--verbose", "local_verbose", is_flag=True, help="Enable verbose logging")
    @click.option("--quiet", "local_quiet", is_flag=True, help="Suppress normal output")
    @click.option(
        "--format",
        "local_output_format",
        type=click.Choice(["rich", "json", "quiet"]),
        default=None,
        help="Output format (default: rich on a terminal, json when piped)",
    )
    @click.option("--timeout", "local_timeout", type=float, default=None, help="Seconds")
    @click.option("--user", "local_user", default=None, help="API user name")
    @click.option("--port", "local_port", type=int, default=None, help="Router API port")
    @click.option("--host", "local_host", default=None, help="Router address")
    @click.pass_obj
    def wrapper(app_ctx: AppContext, /, **kwargs: Any) -> Any:
        for option, attr in _OVERRIDES.items():
            value = kwargs.pop(option, None)
            if value is not None:
                setattr(app_ctx, attr, value)
                if attr == "output_format":
                    app_ctx._formatter = None

        if kwargs.pop("local_quiet", False):
            app_ctx.quiet = True
            app_ctx._formatter = None
        if kwargs.pop("local_verbose", False) and not app_ctx.verbose:
            from rosmon.cli.main import configure_logging

            app_ctx.verbose = True
            configure_logging(True)

        return f(app_ctx, **kwargs)

    functools.update_wrapper(wrapper, f)
    return wrapper
