"""Dispatch engine configuration."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from service_dispatch.rotation import MAX_SAFE_CURSOR


class DispatchSettings(BaseSettings):
    """Validated configuration loaded from ``DISPATCH_*`` environment / .env file."""

    model_config = SettingsConfigDict(
        env_prefix="DISPATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Health ───────────────────────────────────────────────
    default_cooldown_s: float = Field(default=60.0, gt=0)
    key_cooldown_s: float = Field(default=60.0, gt=0)

    # ── Selection ────────────────────────────────────────────
    # 0 rebuilds the lists every call; the raw snapshot waits for invalidate()
    config_cache_ttl_s: float = Field(default=1.0, ge=0)
    rotation_wrap_threshold: int = Field(default=MAX_SAFE_CURSOR, ge=1)

    # ── Observability ────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool = False
    metrics_enabled: bool = True

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()


def get_settings(**overrides: Any) -> DispatchSettings:
    """Factory that allows test-time overrides."""
    return DispatchSettings(**overrides)
