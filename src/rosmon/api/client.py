"""Asyncio client for the RouterOS binary API (TCP 8728).

Implements the API session lifecycle:

1. Open a TCP connection to the router
2. Send ``/login`` with name and password
3. Receive ``!done`` (RouterOS 6.43+) and be authenticated, or receive
   ``!done =ret=<challenge>`` (older firmware) and answer with
   ``=response=00<md5(0x00 + password + challenge)>`` and receive ``!done``
4. Send tagged commands; route ``!re`` / ``!done`` / ``!trap`` replies to
   the command that owns their ``.tag``

Reply types:
  - ``!re``     one result row
  - ``!done``   command finished (may carry attributes, e.g. ``=ret=``)
  - ``!trap``   command failed, ``=message=`` holds the reason
  - ``!empty``  print matched no rows (RouterOS 7.18+)
  - ``!fatal``  router is closing the connection

The client never reconnects on its own; each connection is owned by one
caller and closing it fails every command still in flight.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import hashlib
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from rosmon.api.errors import (
    AuthError,
    CommandTimeoutError,
    ConnectError,
    ConnectionLostError,
    RouterCommandError,
    RouterError,
)
from rosmon.protocol.codec import SentenceDecoder, encode_sentence
from rosmon.protocol.sentence import (
    REPLY_DONE,
    REPLY_EMPTY,
    REPLY_FATAL,
    REPLY_RE,
    REPLY_TRAP,
    REPLY_TYPES,
    Sentence,
    attribute_word,
    tag_word,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rosmon.models.config import RouterSettings

logger = logging.getLogger(__name__)

_READ_CHUNK = 65536
_SECRET_KEYS = ("=password=", "=response=")
# Trapped tags still waiting for their !done; oldest are forgotten first.
_MAX_TRAPPED = 64


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class CommandResult:
    """Rows and final ``!done`` attributes of one completed command."""

    rows: list[dict[str, str]] = field(default_factory=list)
    done: dict[str, str] = field(default_factory=dict)


@dataclass
class PendingCommand:
    """A tagged command waiting for its reply stream to finish."""

    tag: str
    command: str
    future: asyncio.Future[CommandResult]
    rows: list[dict[str, str]] = field(default_factory=list)

    def handle(self, sentence: Sentence) -> None:
        if self.future.done():
            return
        if sentence.reply == REPLY_RE:
            self.rows.append(dict(sentence.attributes))
        elif sentence.reply == REPLY_DONE:
            self.future.set_result(CommandResult(rows=self.rows, done=dict(sentence.attributes)))
        elif sentence.reply == REPLY_TRAP:
            self.future.set_exception(
                RouterCommandError(sentence.message, category=sentence.category)
            )
        elif sentence.reply != REPLY_EMPTY:
            logger.warning(
                "Unexpected reply %r for %s (tag %s)", sentence.reply, self.command, self.tag
            )


def _challenge_response(password: str, challenge: str) -> str:
    """Answer a pre-6.43 login challenge: ``00`` + md5(0x00 + password + challenge)."""
    try:
        raw_challenge = bytes.fromhex(challenge)
    except ValueError as exc:
        raise AuthError(f"Router sent a malformed login challenge: {challenge!r}") from exc
    digest = hashlib.md5(b"\x00" + password.encode("utf-8") + raw_challenge).hexdigest()
    return "00" + digest


def _redact(words: Sequence[str]) -> list[str]:
    """Hide credentials before logging a sentence."""
    out: list[str] = []
    for word in words:
        for prefix in _SECRET_KEYS:
            if word.startswith(prefix):
                word = prefix + "***"
                break
        out.append(word)
    return out


class ProtocolClient:
    """One authenticated API connection to a RouterOS device.

    Use as an async context manager so the connection is always closed::

        async with ProtocolClient(settings) as client:
            result = await client.call(["/system/resource/print"])
    """

    def __init__(self, settings: RouterSettings) -> None:
        self._settings = settings
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._state = ConnectionState.DISCONNECTED
        self._decoder = SentenceDecoder()
        self._inbox: deque[list[str]] = deque()
        self._pending: dict[str, PendingCommand] = {}
        self._trapped: dict[str, None] = {}
        self._read_lock = asyncio.Lock()
        self._tag_counter = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ConnectionState.READY

    @property
    def pending_count(self) -> int:
        """Number of commands currently awaiting replies."""
        return len(self._pending)

    @property
    def timeout(self) -> float:
        return self._settings.timeout

    def _next_tag(self) -> str:
        """Return a tag unique among this connection's commands."""
        self._tag_counter += 1
        return str(self._tag_counter)

    # -- Lifecycle ----------------------------------------------------------

    async def connect(self) -> None:
        """Open the TCP connection.

        Raises :class:`ConfigError` for an unusable host/port and
        :class:`ConnectError` when the router cannot be reached.
        """
        self._settings.validate_target()
        host, port = self._settings.host, self._settings.port
        self._state = ConnectionState.CONNECTING
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self.timeout,
            )
        except OSError as exc:
            self._state = ConnectionState.CLOSED
            reason = str(exc) or f"timed out after {self.timeout:g}s"
            raise ConnectError(f"Failed to connect to router at {host}:{port}: {reason}") from exc
        logger.info("Connected to router API at %s:%d", host, port)

    async def login(self) -> None:
        """Authenticate, supporting both the plain and the challenge handshake.

        On failure the connection is closed and :class:`AuthError` raised.
        """
        if self._writer is None:
            raise ConnectError("login() called before connect()")
        self._state = ConnectionState.AUTHENTICATING
        user = self._settings.user
        try:
            reply = await self._login_exchange(
                [
                    "/login",
                    attribute_word("name", user),
                    attribute_word("password", self._settings.password),
                ]
            )
            challenge = reply.attributes.get("ret")
            if challenge is not None:
                logger.debug("Router requested challenge-response login")
                response = _challenge_response(self._settings.password, challenge)
                reply = await self._login_exchange(
                    ["/login", attribute_word("name", user), attribute_word("response", response)]
                )
                if "ret" in reply.attributes:
                    raise AuthError("Unsupported login handshake: router repeated the challenge")
        except RouterError as exc:
            await self._abort(exc)
            raise

        self._state = ConnectionState.READY
        logger.info("Logged in to router as %s", user)

    async def _login_exchange(self, words: list[str]) -> Sentence:
        await self._write(words)
        try:
            reply = await asyncio.wait_for(self.receive(), timeout=self.timeout)
        except TimeoutError:
            raise CommandTimeoutError(
                f"No login reply within {self.timeout:g}s"
            ) from None
        if reply is None:
            raise AuthError("Router closed the connection during login")
        if reply.reply in (REPLY_TRAP, REPLY_FATAL):
            raise AuthError(f"Login failed: {reply.message}")
        if reply.reply != REPLY_DONE:
            raise AuthError(f"Unsupported login handshake: unexpected {reply.reply!r} reply")
        return reply

    async def close(self) -> None:
        """Close the connection, failing any command still in flight."""
        if self._state is ConnectionState.CLOSED:
            return
        await self._abort(ConnectionLostError("Connection closed"), quiet=True)
        logger.debug("Router API connection closed")

    async def __aenter__(self) -> ProtocolClient:
        await self.connect()
        try:
            await self.login()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -- Wire I/O -----------------------------------------------------------

    async def send(self, words: Sequence[str], tag: str | None = None) -> None:
        """Send one command sentence, appending ``.tag=`` when *tag* is given."""
        self._require_ready()
        out = list(words)
        if tag is not None:
            out.append(tag_word(tag))
        await self._write(out)

    async def receive(self) -> Sentence | None:
        """Return the next inbound sentence, or ``None`` at end of stream.

        Raises:
            ConnectionLostError: On a read failure or EOF mid-sentence.
            ProtocolFramingError: If the stream is not validly framed.
        """
        assert self._reader is not None
        while not self._inbox:
            try:
                data = await self._reader.read(_READ_CHUNK)
            except OSError as exc:
                raise ConnectionLostError(f"Read from router failed: {exc}") from exc
            if not data:
                self._decoder.finish()
                return None
            self._inbox.extend(self._decoder.feed(data))
        words = self._inbox.popleft()
        logger.debug("<<< %s", words)
        return Sentence.from_words(words)

    async def _write(self, words: list[str]) -> None:
        if self._writer is None:
            raise ConnectionLostError("Connection is closed")
        logger.debug(">>> %s", _redact(words))
        try:
            self._writer.write(encode_sentence(words))
            await asyncio.wait_for(self._writer.drain(), timeout=self.timeout)
        except OSError as exc:
            err = ConnectionLostError(f"Write to router failed: {exc or 'timed out'}")
            await self._abort(err)
            raise err from exc

    def _require_ready(self) -> None:
        if self._state is not ConnectionState.READY:
            raise ConnectionLostError(f"Connection is not ready (state: {self._state.value})")

    # -- Commands -----------------------------------------------------------

    async def call(self, words: Sequence[str]) -> CommandResult:
        """Send a tagged command and wait for its ``!done``.

        The wait is bounded by the configured timeout; on expiry the
        connection is torn down and :class:`CommandTimeoutError` raised.

        Raises:
            RouterCommandError: The router replied with ``!trap``.
            ConnectionLostError: The connection failed before ``!done``.
        """
        self._require_ready()
        tag = self._next_tag()
        pending = PendingCommand(
            tag=tag,
            command=words[0],
            future=asyncio.get_running_loop().create_future(),
        )
        self._pending[tag] = pending
        try:
            await self.send(words, tag)
            return await asyncio.wait_for(self._wait_for(pending), timeout=self.timeout)
        except TimeoutError:
            err = CommandTimeoutError(f"No reply to {words[0]} within {self.timeout:g}s")
            await self._abort(err)
            raise err from None
        finally:
            self._pending.pop(tag, None)
            if pending.future.done() and not pending.future.cancelled():
                pending.future.exception()  # mark retrieved

    async def _wait_for(self, pending: PendingCommand) -> CommandResult:
        while not pending.future.done():
            async with self._read_lock:
                if pending.future.done():
                    break
                try:
                    sentence = await self.receive()
                except RouterError as exc:
                    await self._abort(exc)
                    break
                if sentence is None:
                    await self._abort(ConnectionLostError("Router closed the connection"))
                    break
                if sentence.reply == REPLY_FATAL:
                    await self._abort(
                        ConnectionLostError(f"Router closed the session: {sentence.message}")
                    )
                    break
                self._dispatch(sentence)
        return pending.future.result()

    def _dispatch(self, sentence: Sentence) -> None:
        if sentence.reply not in REPLY_TYPES:
            logger.warning("Ignoring sentence with unknown reply type %r", sentence.reply)
            return
        tag = sentence.tag
        pending = self._pending.get(tag) if tag is not None else None
        if pending is None:
            if tag in self._trapped and sentence.reply == REPLY_DONE:
                del self._trapped[tag]
            else:
                logger.debug("Dropping %s reply for unknown tag %s", sentence.reply, tag)
            return
        pending.handle(sentence)
        if sentence.reply == REPLY_TRAP:
            # The router follows a trap with a !done for the same tag.
            self._trapped[pending.tag] = None
            while len(self._trapped) > _MAX_TRAPPED:
                del self._trapped[next(iter(self._trapped))]

    async def _abort(self, exc: RouterError, *, quiet: bool = False) -> None:
        """Fail all pending commands with *exc* and close the transport."""
        if self._state is not ConnectionState.CLOSED:
            self._state = ConnectionState.CLOSING
        for pending in self._pending.values():
            if not pending.future.done():
                pending.future.set_exception(exc)
        if self._writer is not None:
            writer, self._writer = self._writer, None
            writer.close()
            with contextlib.suppress(Exception):
                await writer.wait_closed()
            if not quiet:
                logger.warning("Router connection aborted: %s", exc)
        self._state = ConnectionState.CLOSED
