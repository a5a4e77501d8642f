"""Typed view over decoded API sentences, and builders for outgoing words."""

from __future__ import annotations

from dataclasses import dataclass, field

REPLY_RE = "!re"
REPLY_DONE = "!done"
REPLY_TRAP = "!trap"
REPLY_FATAL = "!fatal"
REPLY_EMPTY = "!empty"

REPLY_TYPES = frozenset({REPLY_RE, REPLY_DONE, REPLY_TRAP, REPLY_FATAL, REPLY_EMPTY})

_TAG_PREFIX = ".tag="


@dataclass(frozen=True)
class Sentence:
    """A decoded sentence: reply marker, attributes and optional tag.

    ``!fatal`` carries its reason as a bare word rather than an attribute;
    it is kept in :attr:`extra`.
    """

    reply: str
    attributes: dict[str, str] = field(default_factory=dict)
    tag: str | None = None
    extra: tuple[str, ...] = ()

    @classmethod
    def from_words(cls, words: list[str]) -> Sentence:
        if not words:
            return cls(reply="")
        attributes: dict[str, str] = {}
        tag: str | None = None
        extra: list[str] = []
        for word in words[1:]:
            if word.startswith(_TAG_PREFIX):
                tag = word[len(_TAG_PREFIX) :]
            elif word.startswith("="):
                key, _, value = word[1:].partition("=")
                attributes[key] = value
            else:
                extra.append(word)
        return cls(reply=words[0], attributes=attributes, tag=tag, extra=tuple(extra))

    @property
    def message(self) -> str:
        """The human-readable message of a ``!trap`` or ``!fatal`` reply."""
        if "message" in self.attributes:
            return self.attributes["message"]
        return " ".join(self.extra) or "unknown error"

    @property
    def category(self) -> int | None:
        raw = self.attributes.get("category")
        return int(raw) if raw is not None and raw.isdigit() else None


def attribute_word(key: str, value: object) -> str:
    return f"={key}={value}"


def query_word(key: str, value: object) -> str:
    return f"?{key}={value}"


def tag_word(tag: str) -> str:
    return f"{_TAG_PREFIX}{tag}"
