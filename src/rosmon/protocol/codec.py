"""Word and sentence framing for the RouterOS API.

Every word on the wire is a length prefix followed by that many bytes.
The prefix is variable-length; the high bits of the first byte say how many
bytes follow::

    0xxxxxxx                              len < 0x80
    10xxxxxx xxxxxxxx                     len < 0x4000
    110xxxxx xxxxxxxx xxxxxxxx            len < 0x200000
    1110xxxx xxxxxxxx xxxxxxxx xxxxxxxx   len < 0x10000000

Leading bytes from ``0xF0`` up are reserved control bytes, so no word is
longer than ``MAX_WORD_LENGTH``.  A sentence is a run of words terminated
by a zero-length word.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from rosmon.api.errors import ConnectionLostError, ProtocolFramingError

if TYPE_CHECKING:
    from collections.abc import Iterable

MAX_WORD_LENGTH = 0x0FFFFFFF


def encode_length(length: int) -> bytes:
    """Return the length prefix for a word of *length* bytes."""
    if length < 0:
        raise ProtocolFramingError(f"Negative word length: {length}")
    if length < 0x80:
        return bytes((length,))
    if length < 0x4000:
        return (length | 0x8000).to_bytes(2, "big")
    if length < 0x200000:
        return (length | 0xC00000).to_bytes(3, "big")
    if length < 0x10000000:
        return (length | 0xE0000000).to_bytes(4, "big")
    raise ProtocolFramingError(f"Word too long: {length} bytes (max {MAX_WORD_LENGTH})")


def encode_word(word: str | bytes) -> bytes:
    """Encode one word (text is sent as UTF-8)."""
    raw = word.encode("utf-8") if isinstance(word, str) else word
    return encode_length(len(raw)) + raw


def encode_sentence(words: Iterable[str | bytes]) -> bytes:
    """Encode *words* followed by the zero-length terminator."""
    return b"".join(encode_word(w) for w in words) + b"\x00"


def _prefix(first: int) -> tuple[int, int]:
    """Return ``(prefix_size, high_bits)`` for a prefix's leading byte."""
    if first < 0x80:
        return 1, first
    if first < 0xC0:
        return 2, first & 0x3F
    if first < 0xE0:
        return 3, first & 0x1F
    if first < 0xF0:
        return 4, first & 0x0F
    raise ProtocolFramingError(f"Reserved control byte 0x{first:02X} in length prefix")


def _finish_length(value: int, tail: bytes | bytearray) -> int:
    for b in tail:
        value = (value << 8) | b
    return value


def _decode_text(raw: bytes | bytearray) -> str:
    return bytes(raw).decode("utf-8", errors="replace")


async def decode_word(reader: asyncio.StreamReader) -> bytes | None:
    """Read one word from *reader*.

    Returns ``None`` on a clean end of stream before the first prefix byte.

    Raises:
        ProtocolFramingError: If the length prefix is malformed.
        ConnectionLostError: If the stream ends in the middle of a word.
    """
    first = await reader.read(1)
    if not first:
        return None
    size, value = _prefix(first[0])
    try:
        length = _finish_length(value, await reader.readexactly(size - 1))
        return await reader.readexactly(length)
    except asyncio.IncompleteReadError as exc:
        raise ConnectionLostError("Connection closed in the middle of a word") from exc


async def decode_sentence(reader: asyncio.StreamReader) -> list[str] | None:
    """Read one sentence from *reader*.

    Returns ``None`` when the stream ends cleanly on a sentence boundary.
    """
    words: list[str] = []
    while True:
        word = await decode_word(reader)
        if word is None:
            if words:
                raise ConnectionLostError("Connection closed in the middle of a sentence")
            return None
        if not word:
            return words
        words.append(_decode_text(word))


class SentenceDecoder:
    """Incremental decoder for a byte stream that arrives in arbitrary chunks.

    Bytes are buffered until a whole word is available, and words are
    buffered until the terminating empty word completes a sentence, so the
    result never depends on how the transport split the stream.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._words: list[str] = []
        self._error: ProtocolFramingError | None = None

    @property
    def pending_bytes(self) -> int:
        """Bytes received but not yet part of a complete word."""
        return len(self._buffer)

    @property
    def in_sentence(self) -> bool:
        """``True`` when a sentence has started but not yet terminated."""
        return bool(self._words) or bool(self._buffer)

    def feed(self, data: bytes) -> list[list[str]]:
        """Add *data* to the buffer and return every sentence it completes.

        A malformed prefix raises :class:`ProtocolFramingError`.  Sentences
        completed earlier in the same chunk are returned first and the error
        is raised by the next call to :meth:`feed` or :meth:`finish`.
        """
        if self._error is not None:
            raise self._error
        self._buffer.extend(data)
        sentences: list[list[str]] = []
        while self._buffer:
            try:
                size, value = _prefix(self._buffer[0])
            except ProtocolFramingError as exc:
                if not sentences:
                    raise
                self._error = exc
                break
            if len(self._buffer) < size:
                break
            length = _finish_length(value, self._buffer[1:size])
            end = size + length
            if len(self._buffer) < end:
                break
            word = self._buffer[size:end]
            del self._buffer[:end]
            if length == 0:
                sentences.append(self._words)
                self._words = []
            else:
                self._words.append(_decode_text(word))
        return sentences

    def finish(self) -> None:
        """Check the stream at end of input.

        Raises:
            ProtocolFramingError: A malformed prefix was seen earlier.
            ConnectionLostError: The input stopped inside a sentence.
        """
        if self._error is not None:
            raise self._error
        if self.in_sentence:
            raise ConnectionLostError("Connection closed in the middle of a sentence")
