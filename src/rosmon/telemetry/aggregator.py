"""Per-request telemetry collection from one router.

Every public operation opens its own API connection, runs the commands it
needs in sequence, and closes the connection on every exit path.  Nothing
is cached or shared between calls.
"""

from __future__ import annotations

import contextlib
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from rosmon.api.client import ProtocolClient
from rosmon.api.dispatcher import CommandDispatcher
from rosmon.api.errors import (
    NotFoundError,
    RouterCommandError,
    RouterError,
    SessionNotFoundError,
)
from rosmon.models.router import AggregatedStats
from rosmon.telemetry.mapper import (
    attach_profiles,
    map_lease,
    map_resource,
    map_secret,
    map_session,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from rosmon.models.config import RouterSettings
    from rosmon.models.router import (
        LeaseRecord,
        PPPoEClient,
        PPPSecret,
        PPPSession,
        SystemResourceSnapshot,
    )

logger = logging.getLogger(__name__)

LEASE_PATH = "/ip/dhcp-server/lease"
PPP_ACTIVE_PATH = "/ppp/active"
PPP_SECRET_PATH = "/ppp/secret"
RESOURCE_PATH = "/system/resource"


class TelemetryAggregator:
    """Fetch leases, PPPoE sessions, statistics and resources from a router."""

    def __init__(
        self,
        settings: RouterSettings,
        *,
        client_factory: Callable[[RouterSettings], ProtocolClient] = ProtocolClient,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory

    @property
    def settings(self) -> RouterSettings:
        return self._settings

    @contextlib.asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[CommandDispatcher]:
        """Yield a dispatcher on a fresh, authenticated connection."""
        client = self._client_factory(self._settings)
        try:
            async with client:
                yield CommandDispatcher(client)
        except NotFoundError as exc:
            logger.info("%s: %s", operation, exc)
            raise
        except RouterError as exc:
            logger.error("%s failed: %s", operation, exc)
            raise

    async def _leases(self, dispatcher: CommandDispatcher) -> list[LeaseRecord]:
        return [map_lease(row) for row in await dispatcher.print(LEASE_PATH)]

    async def _sessions(self, dispatcher: CommandDispatcher) -> list[PPPSession]:
        return [map_session(row) for row in await dispatcher.print(PPP_ACTIVE_PATH)]

    async def _secrets(self, dispatcher: CommandDispatcher) -> list[PPPSecret]:
        return [map_secret(row) for row in await dispatcher.print(PPP_SECRET_PATH)]

    async def fetch_leases(self) -> list[LeaseRecord]:
        """Return every DHCP lease; ``status`` is ``online`` only for bound leases."""
        async with self._session("fetch_leases") as dispatcher:
            return await self._leases(dispatcher)

    async def fetch_pppoe_clients(self) -> list[PPPoEClient]:
        """Return active PPP sessions joined with the profile of their secret."""
        async with self._session("fetch_pppoe_clients") as dispatcher:
            sessions = await self._sessions(dispatcher)
            secrets = await self._secrets(dispatcher)
        return attach_profiles(sessions, secrets)

    async def fetch_stats(self) -> AggregatedStats:
        """Count leases, sessions and secrets, stamped with the current time."""
        async with self._session("fetch_stats") as dispatcher:
            leases = await self._leases(dispatcher)
            sessions = await self._sessions(dispatcher)
            secrets = await self._secrets(dispatcher)

        active_clients = sum(1 for lease in leases if lease.online)
        return AggregatedStats(
            total_clients=len(leases),
            active_clients=active_clients,
            total_pppoe=len(secrets),
            active_pppoe=len(sessions),
            total_active=active_clients + len(sessions),
            last_update=datetime.now(UTC),
        )

    async def fetch_system_resources(self) -> SystemResourceSnapshot:
        """Return CPU, memory, uptime and firmware details."""
        async with self._session("fetch_system_resources") as dispatcher:
            rows = await dispatcher.print(RESOURCE_PATH)
            if not rows:
                raise RouterCommandError("Router returned no system resource data")
        return map_resource(rows[0])

    async def disconnect_session(self, username: str) -> bool:
        """Terminate the active PPP session of *username*.

        When several sessions share the name only the first one listed by
        the router is removed.

        Raises:
            SessionNotFoundError: No active session has that username.
        """
        async with self._session("disconnect_session") as dispatcher:
            rows = await dispatcher.print(PPP_ACTIVE_PATH, {"name": username})
            if not rows:
                raise SessionNotFoundError(username)
            if len(rows) > 1:
                logger.warning(
                    "%d active sessions for %s; disconnecting the first (%s)",
                    len(rows),
                    username,
                    rows[0].get(".id"),
                )
            session_id = rows[0].get(".id")
            if not session_id:
                raise RouterCommandError(f"Active session of {username} has no .id")
            await dispatcher.remove(PPP_ACTIVE_PATH, session_id)
        logger.info("Disconnected PPP session of %s", username)
        return True
