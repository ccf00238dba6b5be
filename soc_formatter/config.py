"""
Alert formatter configuration.

Nothing is required at startup: every setting has a working default so the
engine can run from a bare environment. Engine functions accept the tunable
values as keyword arguments and only fall back to get_settings() when the
caller leaves them out.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Tenants whose alerts expose the raw occurrence timestamp.
_DEFAULT_ALLOWED_TENANTS = ["selene", "belmont", "orion", "siycha"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Field extraction
    # ------------------------------------------------------------------
    allowed_tenants: list[str] = Field(default_factory=lambda: list(_DEFAULT_ALLOWED_TENANTS))
    display_timezone: Optional[str] = None  # IANA name; None = host local time

    # ------------------------------------------------------------------
    # Template selection / fuzzy search
    # ------------------------------------------------------------------
    template_match_threshold: float = 0.5   # fuzzy score must be strictly greater
    search_max_depth: int = 32

    # ------------------------------------------------------------------
    # Whitelist parsing
    # ------------------------------------------------------------------
    whitelist_max_tokens: int = 20

    # App
    log_level: str = "INFO"
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    @field_validator("template_match_threshold")
    @classmethod
    def _threshold_in_unit_range(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("template_match_threshold must be between 0 and 1")
        return value

    @field_validator("search_max_depth")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("whitelist_max_tokens")
    @classmethod
    def _token_cap(cls, value: int) -> int:
        # Stored rules hold at most 20 tokens.
        if not 1 <= value <= 20:
            raise ValueError("whitelist_max_tokens must be between 1 and 20")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    In tests, clear the cache with get_settings.cache_clear() after
    patching environment variables, or instantiate Settings() directly
    with _env_file=None to avoid reading the .env file.
    """
    return Settings()
