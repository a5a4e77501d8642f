from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from rosmon.api.errors import ConfigError


class RouterSettings(BaseSettings):
    """Router connection settings populated from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MIKROTIK_",
        extra="ignore",
    )

    host: str = "192.168.88.1"
    port: int = 8728
    user: str = "admin"
    password: str = ""
    timeout: float = 10.0
    allowed_origins: str = "*"

    def validate_target(self) -> None:
        """Raise :class:`ConfigError` unless host and port are usable."""
        if not self.host.strip():
            raise ConfigError("No router host configured. Set MIKROTIK_HOST or pass --host.")
        if not 1 <= self.port <= 65535:
            raise ConfigError(f"Invalid router API port: {self.port}")
        if self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}")

    @property
    def origins(self) -> list[str]:
        """Allowed CORS origins as a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
