from __future__ import annotations

from rosmon.models.config import RouterSettings
from rosmon.models.router import (
    DEFAULT_PROFILE,
    DEFAULT_SERVICE,
    NOT_AVAILABLE,
    UNKNOWN_HOST,
    AggregatedStats,
    LeaseRecord,
    MemoryUsage,
    PPPoEClient,
    PPPSecret,
    PPPSession,
    SystemResourceSnapshot,
)

__all__ = [
    # config
    "RouterSettings",
    # router
    "DEFAULT_PROFILE",
    "DEFAULT_SERVICE",
    "NOT_AVAILABLE",
    "UNKNOWN_HOST",
    "AggregatedStats",
    "LeaseRecord",
    "MemoryUsage",
    "PPPSecret",
    "PPPSession",
    "PPPoEClient",
    "SystemResourceSnapshot",
]
