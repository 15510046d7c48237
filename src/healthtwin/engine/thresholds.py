"""Threshold tables shared by every call site of the engine.

The state classifier is used both for avatar media selection and for the
future-trend projection; both read :data:`STATE_THRESHOLDS` so the two can
never drift apart.  The advice synthesizer has its own, coarser bands in
:data:`ADVICE_THRESHOLDS`.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StateThresholds:
    """Fixed constants for :func:`healthtwin.engine.classifier.classify`."""

    # Sleep deficit: 0 < sleep <= this → sleepy
    sleep_deficit_hours: float = 4.0

    # Fatigue / low-energy triggers
    fatigue_mood_label: str = "tired"
    fatigue_energy_score: float = 45.0  # 0 < energy <= this
    fatigue_mood_energy: float = 4.0  # 0 < mood energy <= this
    fatigue_stress_level: float = 7.0  # stress >= this
    fatigue_heart_rate: float = 95.0  # bpm >= this

    # Positive signals (each adds one)
    positive_steps: float = 8000.0
    positive_sleep_hours: float = 7.0
    positive_water_litres: float = 2.0
    positive_energy_score: float = 70.0
    positive_mood_energy: float = 7.0
    positive_signals_required: int = 2


STATE_THRESHOLDS = StateThresholds()


@dataclass(frozen=True)
class Band:
    """Three-tier band: ``great`` > ``good`` > ``low``."""

    great: float
    good: float
    low: float


@dataclass(frozen=True)
class AdviceThresholds:
    steps: Band = Band(great=9000, good=7000, low=4000)
    sleep: Band = Band(great=7.5, good=6.5, low=5.5)
    water: Band = Band(great=2.0, good=1.5, low=1.0)
    energy_low: float = 35.0  # 0-100 scale
    stress_high: float = 7.0  # 1-10 scale


ADVICE_THRESHOLDS = AdviceThresholds()

# Averaging defaults used when a field is absent from a record
ADVICE_DEFAULT_HEART_RATE = 72.0
ADVICE_DEFAULT_MOOD_ENERGY = 5.0
ADVICE_DEFAULT_STRESS = 5.0

# Logging-consistency tiers (days logged in the batch)
LOGGING_DAYS_GREAT = 6
LOGGING_DAYS_GOOD = 4
