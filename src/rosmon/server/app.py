"""JSON HTTP API for the monitoring dashboard.

A thin adapter: each route calls one :class:`TelemetryAggregator`
operation and serializes the result.  Router failures become
``500 {"error", "message"}``; a missing disconnect target becomes 404.

Routes:
  - ``GET  /api/health``
  - ``GET  /api/static-clients``
  - ``GET  /api/pppoe-clients``
  - ``GET  /api/stats``
  - ``GET  /api/system-resources``
  - ``POST /api/pppoe-disconnect/{username}``
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from rosmon.api.errors import NotFoundError, RouterError
from rosmon.output.json_output import serialize

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request

    from rosmon.telemetry.aggregator import TelemetryAggregator

logger = logging.getLogger(__name__)


def _failure(error: str, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": error, "message": str(exc)}, status_code=500)


def _fetch_route(
    fetch: Callable[[], Awaitable[Any]],
    error: str,
) -> Callable[[Request], Awaitable[JSONResponse]]:
    """Build a GET handler that serializes the result of *fetch*."""

    async def _handler(request: Request) -> JSONResponse:
        try:
            result = await fetch()
        except RouterError as exc:
            logger.error("%s: %s", error, exc)
            return _failure(error, exc)
        return JSONResponse(serialize(result))

    return _handler


def create_app(
    aggregator: TelemetryAggregator,
    *,
    allowed_origins: list[str] | None = None,
) -> Starlette:
    """Build the Starlette application bound to *aggregator*."""

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "message": "Mikrotik Monitor API is running"})

    async def disconnect(request: Request) -> JSONResponse:
        username = request.path_params["username"]
        try:
            await aggregator.disconnect_session(username)
        except NotFoundError:
            return JSONResponse({"error": "Session not found"}, status_code=404)
        except RouterError as exc:
            logger.error("Failed to disconnect %s: %s", username, exc)
            return _failure("Failed to disconnect client", exc)
        return JSONResponse({"success": True, "message": f"User {username} disconnected"})

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route(
            "/api/static-clients",
            _fetch_route(aggregator.fetch_leases, "Failed to fetch static clients"),
            methods=["GET"],
        ),
        Route(
            "/api/pppoe-clients",
            _fetch_route(aggregator.fetch_pppoe_clients, "Failed to fetch PPPoE clients"),
            methods=["GET"],
        ),
        Route(
            "/api/stats",
            _fetch_route(aggregator.fetch_stats, "Failed to fetch statistics"),
            methods=["GET"],
        ),
        Route(
            "/api/system-resources",
            _fetch_route(aggregator.fetch_system_resources, "Failed to fetch system resources"),
            methods=["GET"],
        ),
        Route("/api/pppoe-disconnect/{username}", disconnect, methods=["POST"]),
    ]
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=allowed_origins or ["*"],
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    ]
    return Starlette(routes=routes, middleware=middleware)
