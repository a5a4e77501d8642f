"""Exception hierarchy for router API failures."""

from __future__ import annotations


class RouterError(Exception):
    """Base class for every error raised while talking to the router."""


class ConfigError(RouterError):
    """Missing or invalid connection settings."""


class ConnectError(RouterError):
    """The TCP connection to the router could not be established."""


class AuthError(RouterError):
    """The router rejected the credentials or the login handshake."""


class ProtocolFramingError(RouterError):
    """The byte stream does not follow the word/sentence framing rules."""


class RouterCommandError(RouterError):
    """The router answered a command with a ``!trap`` reply."""

    def __init__(self, message: str, category: int | None = None) -> None:
        super().__init__(message)
        self.category = category


class ConnectionLostError(RouterError):
    """The connection failed while commands were in flight."""


class CommandTimeoutError(ConnectionLostError):
    """No complete reply arrived within the configured timeout."""


class NotFoundError(RouterError):
    """The requested router object does not exist."""


class SessionNotFoundError(NotFoundError):
    """No active PPP session matches the requested username."""

    def __init__(self, username: str) -> None:
        super().__init__(f"No active session for user {username!r}")
        self.username = username
