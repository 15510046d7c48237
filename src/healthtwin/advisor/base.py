"""Abstract base class for external weekly-advice providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from statistics import fmean
from typing import Sequence

from pydantic import BaseModel

from healthtwin.models import SignalTuple


class WeeklySummary(BaseModel):
    """Aggregated week of signals handed to a text provider.

    Only aggregate figures are included; no user identifiers.
    """

    days_logged: int
    avg_steps: int
    avg_sleep: float
    avg_water: float
    avg_heart_rate: int
    mood_lines: list[str]

    @classmethod
    def from_signals(
        cls,
        health: Sequence[SignalTuple],
        mood: Sequence[SignalTuple],
    ) -> WeeklySummary:
        def avg(values: list[float]) -> float:
            return fmean(values) if values else 0.0

        mood_lines = [
            f"{s.mood_label or 'unlabelled'} "
            f"(energy: {s.mood_energy if s.mood_energy is not None else '?'}/10, "
            f"stress: {s.stress_level if s.stress_level is not None else '?'}/10)"
            for s in mood
        ]
        return cls(
            days_logged=len(health),
            avg_steps=round(avg([s.steps for s in health])),
            avg_sleep=round(avg([s.sleep_hours for s in health]), 1),
            avg_water=round(avg([s.water_litres for s in health]), 1),
            avg_heart_rate=round(avg([s.heart_rate for s in health])),
            mood_lines=mood_lines,
        )


class AdviceProvider(ABC):
    """Contract for a generative-text provider of weekly advice.

    Providers return the raw response text; parsing and validation are done
    by the caller so every provider is held to the same output contract.
    """

    name: str

    @abstractmethod
    async def generate(self, summary: WeeklySummary) -> str:
        """Return the provider's raw (ideally JSON) response for *summary*."""

    async def close(self) -> None:
        """Release any resources held by the provider."""
