"""Centralised engine settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from healthtwin.models import REQUIRED_STATES_BY_MODE, AvatarMode, State

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """All runtime configuration for the HealthTwin engine.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  Variables live in the ``HEALTHTWIN_``
    namespace (stripped automatically by *pydantic-settings*).
    """

    model_config = SettingsConfigDict(
        env_prefix="HEALTHTWIN_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Avatar media ──────────────────────────────────────────
    avatar_mode: AvatarMode = AvatarMode.PREBUILT
    trusted_media_providers: list[str] = ["prebuilt_", "nanobana_"]

    # ── Trend window ──────────────────────────────────────────
    future_days_default: int = 7
    future_days_min: int = 1
    future_days_max: int = 30

    # ── Advice provider ───────────────────────────────────────
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    advice_timeout_seconds: float = 15.0
    advice_cache_enabled: bool = True

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("avatar_mode", mode="before")
    @classmethod
    def _mode_aliases(cls, v: object) -> object:
        if isinstance(v, str):
            raw = v.strip().lower()
            if raw in ("nanobana", "live"):
                return AvatarMode.LIVE
            return AvatarMode.PREBUILT
        return v

    @property
    def required_states(self) -> tuple[State, ...]:
        """State universe for the configured avatar mode."""
        return REQUIRED_STATES_BY_MODE[self.avatar_mode]

    def clamp_window_days(self, days: int | None) -> int:
        """Clamp a caller-supplied trend window to the configured bounds."""
        if days is None:
            return self.future_days_default
        return max(self.future_days_min, min(self.future_days_max, int(days)))


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
