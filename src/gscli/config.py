# Settings — environment-driven configuration for gscli.
# Created: 2026-10-03

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "gscli"
CLIENT_CREDENTIAL_ENV = "GOOGLE_CLIENT_CREDENTIAL_FILE"


class Settings(BaseSettings):
    """gscli settings, read from ``GSCLI_*`` environment variables.

    The client credential file path keeps its historical, unprefixed
    variable name (``GOOGLE_CLIENT_CREDENTIAL_FILE``).
    """

    model_config = SettingsConfigDict(
        env_prefix="GSCLI_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    config_dir: Path = DEFAULT_CONFIG_DIR
    client_credential_file: str | None = Field(
        default=None, validation_alias=CLIENT_CREDENTIAL_ENV
    )
    log_level: str = "WARNING"
    http_timeout: float = 15.0


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


def get_config_dir() -> Path:
    """Get the gscli config directory (not created)."""
    return get_settings().config_dir.expanduser()
