"""Command builders on top of :class:`ProtocolClient`."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rosmon.protocol.sentence import attribute_word, query_word

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from rosmon.api.client import ProtocolClient

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Return *path* with exactly one leading ``/`` and no trailing ``/``."""
    stripped = path.strip().strip("/")
    if not stripped:
        raise ValueError("Empty menu path")
    return "/" + stripped


def build_print_command(
    path: str,
    filters: Mapping[str, object] | None = None,
    proplist: Iterable[str] | None = None,
) -> list[str]:
    """Words for ``<path>/print`` with ANDed ``?key=value`` filters."""
    words = [normalize_path(path) + "/print"]
    if proplist:
        words.append(attribute_word(".proplist", ",".join(proplist)))
    for key, value in (filters or {}).items():
        words.append(query_word(key, value))
    return words


def build_command(path: str, attributes: Mapping[str, object] | None = None) -> list[str]:
    """Words for an arbitrary command with ``=key=value`` attributes."""
    words = [normalize_path(path)]
    for key, value in (attributes or {}).items():
        words.append(attribute_word(key, value))
    return words


class CommandDispatcher:
    """Print and execute RouterOS menu commands (composition over ProtocolClient)."""

    def __init__(self, client: ProtocolClient) -> None:
        self._client = client

    async def print(  # noqa: A003
        self,
        path: str,
        filters: Mapping[str, object] | None = None,
        *,
        proplist: Iterable[str] | None = None,
    ) -> list[dict[str, str]]:
        """Return every row of *path*, in router order.

        Keys the router omits are absent from the row dicts; callers apply
        their own defaults.
        """
        result = await self._client.call(build_print_command(path, filters, proplist))
        logger.debug("%s/print returned %d rows", normalize_path(path), len(result.rows))
        return result.rows

    async def execute(
        self,
        path: str,
        attributes: Mapping[str, object] | None = None,
    ) -> dict[str, str] | None:
        """Run a command and return its ``!done`` attributes, if any."""
        result = await self._client.call(build_command(path, attributes))
        return result.done or None

    async def remove(self, path: str, item_id: str) -> dict[str, str] | None:
        """Remove the item with ``.id`` *item_id* from menu *path*."""
        return await self.execute(normalize_path(path) + "/remove", {".id": item_id})
