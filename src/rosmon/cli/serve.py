"""``rosmon serve`` — run the JSON HTTP API under uvicorn."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click

from rosmon.cli._client import get_aggregator
from rosmon.cli._options import global_options

if TYPE_CHECKING:
    from rosmon.cli.main import AppContext

logger = logging.getLogger(__name__)


@click.command("serve")
@click.option("--bind", default="0.0.0.0", show_default=True, help="Listen address")
@click.option(
    "--http-port",
    type=int,
    default=3000,
    show_default=True,
    envvar="PORT",
    help="Listen port (env: PORT)",
)
@global_options
def serve_cmd(app_ctx: AppContext, bind: str, http_port: int) -> None:
    """Serve the monitoring API consumed by the dashboard."""
    import uvicorn

    from rosmon.server.app import create_app

    aggregator = get_aggregator(app_ctx)
    settings = aggregator.settings
    app = create_app(aggregator, allowed_origins=settings.origins)

    formatter = app_ctx.formatter
    if formatter.format != "json":
        formatter.rich.info(f"Router API: [cyan]{settings.host}:{settings.port}[/cyan]")
        formatter.rich.info(f"Serving on [cyan]http://{bind}:{http_port}/api[/cyan]")
    logger.info("Serving monitoring API on %s:%d for router %s", bind, http_port, settings.host)

    uvicorn.run(
        app,
        host=bind,
        port=http_port,
        log_level="debug" if app_ctx.verbose else "warning",
    )
