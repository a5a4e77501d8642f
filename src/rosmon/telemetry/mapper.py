"""Raw API rows -> typed telemetry records.

Translates the string attribute maps returned by ``print`` (keys such as
``"mac-address"`` or ``"bytes-in"``) into the snapshot models of
:mod:`rosmon.models.router`.  Every absent or unparsable field falls back
to a documented sentinel instead of failing the whole fetch.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from rosmon._internal.units import format_byte_size, format_duration
from rosmon.models.router import (
    DEFAULT_PROFILE,
    DEFAULT_SERVICE,
    NOT_AVAILABLE,
    UNKNOWN_HOST,
    LeaseRecord,
    MemoryUsage,
    PPPoEClient,
    PPPSecret,
    PPPSession,
    SystemResourceSnapshot,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

BOUND_STATUS = "bound"


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _text(row: Mapping[str, str], key: str, default: str = NOT_AVAILABLE) -> str:
    return row.get(key) or default


def map_lease(row: Mapping[str, str]) -> LeaseRecord:
    """Map one ``/ip/dhcp-server/lease`` row."""
    return LeaseRecord(
        id=_text(row, ".id"),
        ip=_text(row, "address"),
        mac=_text(row, "mac-address"),
        name=row.get("host-name") or row.get("comment") or UNKNOWN_HOST,
        status="online" if row.get("status") == BOUND_STATUS else "offline",
        uptime=format_duration(row.get("expires-after") or "0s"),
        server=_text(row, "server"),
        last_seen=_text(row, "last-seen"),
    )


def map_session(row: Mapping[str, str]) -> PPPSession:
    """Map one ``/ppp/active`` row."""
    bytes_in = _to_int(row.get("bytes-in"))
    bytes_out = _to_int(row.get("bytes-out"))
    return PPPSession(
        id=_text(row, ".id"),
        username=_text(row, "name"),
        ip=_text(row, "address"),
        uptime=format_duration(row.get("uptime") or "0s"),
        bytes_in=bytes_in,
        bytes_out=bytes_out,
        rx=format_byte_size(bytes_in),
        tx=format_byte_size(bytes_out),
        service=_text(row, "service", DEFAULT_SERVICE),
        caller_id=_text(row, "caller-id"),
    )


def map_secret(row: Mapping[str, str]) -> PPPSecret:
    """Map one ``/ppp/secret`` row (the password is never copied)."""
    return PPPSecret(
        name=row.get("name", ""),
        profile=_text(row, "profile", DEFAULT_PROFILE),
    )


def attach_profiles(
    sessions: Iterable[PPPSession],
    secrets: Iterable[PPPSecret],
) -> list[PPPoEClient]:
    """Join each session to the secret with the same username.

    The first secret for a name wins; sessions without a secret get the
    ``"N/A"`` profile.
    """
    by_name: dict[str, PPPSecret] = {}
    for secret in secrets:
        by_name.setdefault(secret.name, secret)

    clients: list[PPPoEClient] = []
    for session in sessions:
        secret = by_name.get(session.username)
        if secret is None:
            logger.debug("No secret for active session %s", session.username)
        profile = secret.profile if secret is not None else NOT_AVAILABLE
        clients.append(PPPoEClient(**session.model_dump(), profile=profile))
    return clients


def map_resource(row: Mapping[str, str]) -> SystemResourceSnapshot:
    """Map the single ``/system/resource`` row."""
    total = _to_int(row.get("total-memory"))
    free = _to_int(row.get("free-memory"))
    used = max(total - free, 0)
    cpu_load = _to_int(row.get("cpu-load"))
    return SystemResourceSnapshot(
        cpu_load=cpu_load,
        cpu=f"{cpu_load}%",
        memory=MemoryUsage(
            total_bytes=total,
            free_bytes=free,
            used_bytes=used,
            total=format_byte_size(total),
            free=format_byte_size(free),
            used=format_byte_size(used),
        ),
        uptime=format_duration(row.get("uptime") or "0s"),
        version=_text(row, "version"),
        board=_text(row, "board-name"),
    )
