"""JSON envelopes for CLI output.

Successful commands print ``{"ok": true, "command", "router", "data",
"timestamp"}``; failures print ``{"ok": false, "command", "router",
"error": {"code", "message"}, "timestamp"}``.  Record keys use the same
camelCase names as the HTTP API so scripts can consume either.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel


def serialize(obj: Any) -> Any:
    """Return a JSON-ready view of *obj*.

    Models are dumped with their aliases (``callerID``, ``totalPPPoE``);
    lists, tuples and dicts are walked; datetimes become ISO-8601 strings.
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True)
    if isinstance(obj, (list, tuple)):
        return [serialize(item) for item in obj]
    if isinstance(obj, dict):
        return {key: serialize(value) for key, value in obj.items()}
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj


def _envelope(ok: bool, command: str, router: str | None, **body: Any) -> str:
    envelope: dict[str, Any] = {"ok": ok, "command": command}
    if router is not None:
        envelope["router"] = router
    envelope.update(body)
    envelope["timestamp"] = datetime.now(UTC).isoformat()
    return json.dumps(envelope, indent=2, default=str)


def format_json_response(*, data: Any, command: str, router: str | None = None) -> str:
    """Envelope for a successful *command*; *router* is ``host:port`` when known."""
    return _envelope(True, command, router, data=serialize(data))


def format_json_error(
    *,
    code: str,
    message: str,
    command: str,
    router: str | None = None,
    **extra: Any,
) -> str:
    """Envelope for a failed *command*; *extra* keys join ``code`` and ``message``."""
    return _envelope(
        False, command, router, error={"code": code, "message": message, **extra}
    )
