"""Router telemetry — record mapping and per-request aggregation."""

from __future__ import annotations

from rosmon.telemetry.aggregator import TelemetryAggregator
from rosmon.telemetry.mapper import (
    attach_profiles,
    map_lease,
    map_resource,
    map_secret,
    map_session,
)

__all__ = [
    "TelemetryAggregator",
    "attach_profiles",
    "map_lease",
    "map_resource",
    "map_secret",
    "map_session",
]
