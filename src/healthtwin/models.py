"""Shared Pydantic models used across the engine."""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ── Enums ─────────────────────────────────────────────────────


class State(str, Enum):
    """Discrete behavioural state assigned to a day or to avatar media."""

    HAPPY = "happy"
    SAD = "sad"
    SLEEPY = "sleepy"
    TIRED = "tired"


class AvatarMode(str, Enum):
    """Deployment mode for avatar media.

    ``prebuilt`` serves seeded assets for three states; ``live`` generates
    media through the external provider for all four.
    """

    PREBUILT = "prebuilt"
    LIVE = "live"


# ── State universes ───────────────────────────────────────────

FUTURE_STATES: tuple[State, ...] = (State.HAPPY, State.SAD, State.SLEEPY)
PREBUILT_STATES: tuple[State, ...] = (State.HAPPY, State.SAD, State.SLEEPY)
LIVE_STATES: tuple[State, ...] = (State.HAPPY, State.SAD, State.SLEEPY, State.TIRED)

REQUIRED_STATES_BY_MODE: dict[AvatarMode, tuple[State, ...]] = {
    AvatarMode.PREBUILT: PREBUILT_STATES,
    AvatarMode.LIVE: LIVE_STATES,
}


def parse_state(value: Any) -> State | None:
    """Return the :class:`State` for *value*, or ``None`` if unrecognised."""
    if isinstance(value, State):
        return value
    if not isinstance(value, str):
        return None
    try:
        return State(value.strip().lower())
    except ValueError:
        return None


def _to_number(value: Any, fallback: float = 0.0) -> float:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return fallback
    return n if math.isfinite(n) else fallback


# ── Persisted records ─────────────────────────────────────────


class HealthRecord(BaseModel):
    """A persisted per-day health document as stored by the caller."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: datetime
    sleep_hours: float = Field(0.0, alias="sleepHours")
    heart_rate: float = Field(0.0, alias="heartRate")
    steps: float = 0.0
    water_litres: float = Field(0.0, alias="waterLitres")
    energy_score: float = Field(0.0, alias="energyScore")

    @field_validator("sleep_hours", "heart_rate", "steps", "water_litres", "energy_score", mode="before")
    @classmethod
    def _lenient_number(cls, v: Any) -> float:
        return _to_number(v)


class MoodRecord(BaseModel):
    """A persisted per-day mood check-in."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: datetime
    mood: str | None = None
    energy_level: float | None = Field(None, alias="energyLevel")
    stress_level: float | None = Field(None, alias="stressLevel")

    @field_validator("energy_level", "stress_level", mode="before")
    @classmethod
    def _lenient_optional(cls, v: Any) -> float | None:
        if v is None:
            return None
        n = _to_number(v, fallback=math.nan)
        return None if math.isnan(n) else n


# ── Canonical signal ─────────────────────────────────────────


class SignalTuple(BaseModel):
    """Normalised health + mood signals for one user on one UTC day.

    Missing numeric fields are ``0``; mood-derived scales are ``None``
    when the user did not check in.
    """

    model_config = ConfigDict(frozen=True)

    sleep_hours: float = 0.0
    heart_rate: float = 0.0
    steps: float = 0.0
    water_litres: float = 0.0
    energy_score: float = 0.0
    mood_label: str | None = None
    mood_energy: float | None = None
    stress_level: float | None = None
