"""Centralised configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/spanmark/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class AnchorConfig(BaseModel):
    """Anchoring and decoration defaults."""

    context_chars: int = Field(default=50, ge=0, le=50)
    default_color: str = "#fff9e6"

    @field_validator("default_color")
    @classmethod
    def _color_is_hex(cls, value: str) -> str:
        if not value.startswith("#") or len(value) not in (4, 7):
            msg = f"default_color must be a #rgb or #rrggbb value, got {value!r}"
            raise ValueError(msg)
        return value


class StorageConfig(BaseModel):
    """Where per-page annotation records are kept."""

    data_dir: Path = Path("data/annotations")


class SessionConfig(BaseModel):
    """Timing and filtering for the interactive page session."""

    selection_debounce_ms: int = Field(default=10, ge=0)
    load_delay_ms: int = Field(default=300, ge=0)
    min_selection_chars: int = Field(default=2, ge=1)


class AppConfig(BaseModel):
    """Application runtime configuration."""

    log_dir: Path = Path("logs")


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Application settings with automatic .env loading and type validation.

    Environment variables use the ``SPANMARK_`` prefix and a double-underscore
    delimiter for nesting: ``SPANMARK_STORAGE__DATA_DIR``,
    ``SPANMARK_SESSION__LOAD_DELAY_MS``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_prefix="SPANMARK_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    anchor: AnchorConfig = AnchorConfig()
    storage: StorageConfig = StorageConfig()
    session: SessionConfig = SessionConfig()
    app: AppConfig = AppConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
