"""Build the telemetry aggregator for a CLI invocation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rosmon.telemetry.aggregator import TelemetryAggregator

if TYPE_CHECKING:
    from rosmon.cli.main import AppContext

logger = logging.getLogger(__name__)


def get_aggregator(app_ctx: AppContext) -> TelemetryAggregator:
    """Resolve settings (env, ``.env``, then CLI overrides) into an aggregator.

    Raises :class:`ConfigError` before any network I/O when the target is
    unusable.  The resolved ``host:port`` is recorded on the formatter so
    JSON envelopes name the router that answered.
    """
    settings = app_ctx.settings()
    settings.validate_target()
    app_ctx.formatter.router = f"{settings.host}:{settings.port}"
    logger.debug("Using router %s:%d as %s", settings.host, settings.port, settings.user)
    return TelemetryAggregator(settings)
