from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Immutable snapshots; JSON views use camelCase keys (``lastSeen``, ``callerID``).
_SNAPSHOT = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

NOT_AVAILABLE = "N/A"
UNKNOWN_HOST = "Unknown"
DEFAULT_PROFILE = "default"
DEFAULT_SERVICE = "pppoe"


class LeaseRecord(BaseModel):
    model_config = _SNAPSHOT

    id: str = NOT_AVAILABLE
    ip: str = NOT_AVAILABLE
    mac: str = NOT_AVAILABLE
    name: str = UNKNOWN_HOST
    status: str = "offline"
    uptime: str = "0h"
    server: str = NOT_AVAILABLE
    last_seen: str = NOT_AVAILABLE

    @property
    def online(self) -> bool:
        return self.status == "online"


class PPPSecret(BaseModel):
    model_config = _SNAPSHOT

    name: str
    profile: str = DEFAULT_PROFILE


class PPPSession(BaseModel):
    model_config = _SNAPSHOT

    id: str = NOT_AVAILABLE
    username: str = NOT_AVAILABLE
    ip: str = NOT_AVAILABLE
    status: str = "online"
    uptime: str = "0h"
    bytes_in: int = 0
    bytes_out: int = 0
    rx: str = "0 Bytes"
    tx: str = "0 Bytes"
    service: str = DEFAULT_SERVICE
    caller_id: str = Field(default=NOT_AVAILABLE, alias="callerID")


class PPPoEClient(PPPSession):
    """An active session joined with the profile of its stored secret."""

    profile: str = NOT_AVAILABLE


class MemoryUsage(BaseModel):
    model_config = _SNAPSHOT

    total_bytes: int = 0
    free_bytes: int = 0
    used_bytes: int = 0
    total: str = "0 Bytes"
    free: str = "0 Bytes"
    used: str = "0 Bytes"


class SystemResourceSnapshot(BaseModel):
    model_config = _SNAPSHOT

    cpu_load: int = 0
    cpu: str = "0%"
    memory: MemoryUsage = Field(default_factory=MemoryUsage)
    uptime: str = "0h"
    version: str = NOT_AVAILABLE
    board: str = NOT_AVAILABLE


class AggregatedStats(BaseModel):
    model_config = _SNAPSHOT

    total_clients: int = 0
    active_clients: int = 0
    total_pppoe: int = Field(default=0, alias="totalPPPoE")
    active_pppoe: int = Field(default=0, alias="activePPPoE")
    total_active: int = 0
    last_update: datetime
