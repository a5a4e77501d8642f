"""HTTP facade over the telemetry aggregator."""

from __future__ import annotations

from rosmon.server.app import create_app

__all__ = ["create_app"]
