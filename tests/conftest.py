"""Shared fixtures: an in-process RouterOS API server speaking the real framing."""

from __future__ import annotations

import asyncio
import hashlib
from typing import Any

import pytest
import pytest_asyncio

from rosmon.models.config import RouterSettings
from rosmon.protocol.codec import decode_sentence, encode_sentence

ROUTER_USER = "monitor"
ROUTER_PASSWORD = "s3cret"


class FakeRouter:
    """Minimal RouterOS API server for protocol and aggregator tests.

    * ``tables`` maps a menu path (``"/ppp/active"``) to its rows.
    * ``traps`` maps a full command (``"/ppp/active/print"``) to a trap message.
    * ``unfinished_traps`` is like ``traps`` but never sends the closing ``!done``.
    * ``silent`` lists commands that never get a reply.
    * ``hangup`` lists commands after which the server drops the connection.
    * ``raw_replies`` maps a command to raw bytes sent instead of a reply.
    """

    def __init__(self, *, legacy_login: bool = False) -> None:
        self.legacy_login = legacy_login
        self.challenge = bytes(range(16))
        self.tables: dict[str, list[dict[str, str]]] = {}
        self.traps: dict[str, str] = {}
        self.unfinished_traps: dict[str, str] = {}
        self.silent: set[str] = set()
        self.hangup: set[str] = set()
        self.raw_replies: dict[str, bytes] = {}
        self.commands: list[list[str]] = []
        self.removed: list[str] = []
        self.connections = 0
        self.port = 0
        self._server: asyncio.Server | None = None

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    def settings(self, **overrides: Any) -> RouterSettings:
        values: dict[str, Any] = {
            "host": "127.0.0.1",
            "port": self.port,
            "user": ROUTER_USER,
            "password": ROUTER_PASSWORD,
            "timeout": 2.0,
        }
        values.update(overrides)
        return RouterSettings(**values)

    def commands_named(self, name: str) -> list[list[str]]:
        return [c for c in self.commands if c and c[0] == name]

    # -- Server side --------------------------------------------------------

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        authed = False
        try:
            while True:
                try:
                    words = await decode_sentence(reader)
                except Exception:
                    break
                if words is None:
                    break
                self.commands.append(words)
                command, attrs, queries, tag = _parse(words)

                if command == "/login":
                    authed = await self._login(writer, attrs)
                    continue
                if not authed:
                    await _reply(writer, ["!trap", "=message=not logged in"], tag)
                    continue
                if command in self.hangup:
                    break
                if command in self.silent:
                    continue
                if command in self.raw_replies:
                    writer.write(self.raw_replies[command])
                    await writer.drain()
                    continue
                await self._command(writer, command, attrs, queries, tag)
        finally:
            writer.close()

    async def _login(self, writer: asyncio.StreamWriter, attrs: dict[str, str]) -> bool:
        name_ok = attrs.get("name") == ROUTER_USER
        if self.legacy_login and "response" not in attrs:
            await _reply(writer, ["!done", f"=ret={self.challenge.hex()}"])
            return False
        if self.legacy_login:
            expected = "00" + hashlib.md5(
                b"\x00" + ROUTER_PASSWORD.encode() + self.challenge
            ).hexdigest()
            ok = name_ok and attrs["response"] == expected
        else:
            ok = name_ok and attrs.get("password") == ROUTER_PASSWORD
        if ok:
            await _reply(writer, ["!done"])
            return True
        await _reply(writer, ["!trap", "=message=invalid user name or password (6)"])
        await _reply(writer, ["!done"])
        return False

    async def _command(
        self,
        writer: asyncio.StreamWriter,
        command: str,
        attrs: dict[str, str],
        queries: dict[str, str],
        tag: str | None,
    ) -> None:
        if command in self.traps:
            await _reply(writer, ["!trap", f"=message={self.traps[command]}"], tag)
            await _reply(writer, ["!done"], tag)
            return
        if command in self.unfinished_traps:
            await _reply(writer, ["!trap", f"=message={self.unfinished_traps[command]}"], tag)
            return

        path, _, verb = command.rpartition("/")
        if verb == "print":
            rows = [
                row
                for row in self.tables.get(path, [])
                if all(row.get(k) == v for k, v in queries.items())
            ]
            for row in rows:
                await _reply(writer, ["!re", *(f"={k}={v}" for k, v in row.items())], tag)
            await _reply(writer, ["!done"], tag)
        elif verb == "remove":
            item_id = attrs.get(".id", "")
            table = self.tables.get(path, [])
            before = len(table)
            self.tables[path] = [row for row in table if row.get(".id") != item_id]
            if len(self.tables[path]) == before:
                await _reply(writer, ["!trap", "=message=no such item"], tag)
            else:
                self.removed.append(item_id)
            await _reply(writer, ["!done"], tag)
        else:
            await _reply(writer, ["!trap", "=message=no such command", "=category=0"], tag)
            await _reply(writer, ["!done"], tag)


def _parse(words: list[str]) -> tuple[str, dict[str, str], dict[str, str], str | None]:
    attrs: dict[str, str] = {}
    queries: dict[str, str] = {}
    tag: str | None = None
    for word in words[1:]:
        if word.startswith(".tag="):
            tag = word[5:]
        elif word.startswith("="):
            key, _, value = word[1:].partition("=")
            attrs[key] = value
        elif word.startswith("?"):
            key, _, value = word[1:].partition("=")
            queries[key] = value
    return words[0], attrs, queries, tag


async def _reply(writer: asyncio.StreamWriter, words: list[str], tag: str | None = None) -> None:
    if tag is not None:
        words = [words[0], f".tag={tag}", *words[1:]]
    writer.write(encode_sentence(words))
    await writer.drain()


@pytest_asyncio.fixture()
async def router() -> Any:
    """A running :class:`FakeRouter` with modern (plain password) login."""
    fake = FakeRouter()
    await fake.start()
    yield fake
    await fake.stop()


@pytest_asyncio.fixture()
async def legacy_router() -> Any:
    """A running :class:`FakeRouter` that uses the pre-6.43 challenge login."""
    fake = FakeRouter(legacy_login=True)
    await fake.start()
    yield fake
    await fake.stop()


@pytest.fixture()
def router_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set environment variables so RouterSettings works without a .env file."""
    env = {
        "MIKROTIK_HOST": "192.0.2.1",
        "MIKROTIK_PORT": "8728",
        "MIKROTIK_USER": ROUTER_USER,
        "MIKROTIK_PASSWORD": ROUTER_PASSWORD,
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env
