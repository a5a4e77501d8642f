"""RouterOS API wire protocol — word/sentence framing and reply parsing."""

from __future__ import annotations

from rosmon.protocol.codec import (
    MAX_WORD_LENGTH,
    SentenceDecoder,
    decode_sentence,
    decode_word,
    encode_length,
    encode_sentence,
    encode_word,
)
from rosmon.protocol.sentence import Sentence

__all__ = [
    "MAX_WORD_LENGTH",
    "Sentence",
    "SentenceDecoder",
    "decode_sentence",
    "decode_word",
    "encode_length",
    "encode_sentence",
    "encode_word",
]
