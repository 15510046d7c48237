"""Weekly advice service: external provider with rule-based fallback.

The service gathers the last seven UTC days of records, asks the
configured :class:`AdviceProvider` for a weekly analysis and validates the
response.  Whenever the provider is missing, raises, times out or returns
unusable text, the deterministic synthesizer is used instead.  Results are
cached in memory per ``(user_id, week_key)``; writing a new week for a
user evicts that user's older weeks.
"""

from __future__ import annotations

import asyncio
import random
from datetime import datetime
from typing import Sequence

import structlog

from healthtwin.advisor.base import AdviceProvider, WeeklySummary
from healthtwin.advisor.llm import parse_advice_response
from healthtwin.config import get_settings
from healthtwin.engine.advice import RandomSource, synthesize
from healthtwin.engine.models import AdviceBundle
from healthtwin.engine.signals import (
    as_utc,
    bucket_by_day,
    normalize_signal,
    shift_utc_days,
    to_utc_day_start,
    week_key,
)
from healthtwin.models import HealthRecord, MoodRecord, SignalTuple

logger = structlog.get_logger(__name__)

WEEK_DAYS = 7


def weekly_signals(
    health_records: Sequence[HealthRecord],
    mood_records: Sequence[MoodRecord],
    *,
    today: datetime | None = None,
) -> tuple[list[SignalTuple], list[SignalTuple]]:
    """Collapse the last seven UTC days of records into per-day signals.

    Returns ``(health_signals, mood_signals)``, each ordered oldest first
    with at most one entry per day.
    """
    end = shift_utc_days(to_utc_day_start(today), 1)
    start = shift_utc_days(end, -WEEK_DAYS)

    in_window_health = [r for r in health_records if start <= as_utc(r.date) < end]
    in_window_mood = [r for r in mood_records if start <= as_utc(r.date) < end]
    health_by_day = bucket_by_day(sorted(in_window_health, key=lambda r: as_utc(r.date)))
    mood_by_day = bucket_by_day(sorted(in_window_mood, key=lambda r: as_utc(r.date)))

    health_signals = [normalize_signal(health_by_day[k], None) for k in sorted(health_by_day)]
    mood_signals = [normalize_signal(None, mood_by_day[k]) for k in sorted(mood_by_day)]
    return health_signals, mood_signals


class WeeklyAdviceService:
    """Produces one :class:`AdviceBundle` per user per ISO week."""

    def __init__(
        self,
        provider: AdviceProvider | None = None,
        *,
        timeout: float | None = None,
        cache_enabled: bool | None = None,
        random_source: RandomSource = random.random,
    ) -> None:
        settings = get_settings()
        self._provider = provider
        self._timeout = timeout if timeout is not None else settings.advice_timeout_seconds
        self._cache_enabled = (
            cache_enabled if cache_enabled is not None else settings.advice_cache_enabled
        )
        self._random_source = random_source
        self._cache: dict[tuple[str, str], AdviceBundle] = {}

    @property
    def provider(self) -> AdviceProvider | None:
        return self._provider

    def clear_cache(self, user_id: str | None = None) -> None:
        """Drop cached analyses for *user_id* (or every user)."""
        if user_id is None:
            self._cache.clear()
            return
        for key in [k for k in self._cache if k[0] == user_id]:
            del self._cache[key]

    async def analyse(
        self,
        user_id: str,
        health_records: Sequence[HealthRecord],
        mood_records: Sequence[MoodRecord],
        *,
        today: datetime | None = None,
    ) -> AdviceBundle:
        """Return this week's analysis for *user_id*, using the cache if warm."""
        key = (user_id, week_key(today))
        if self._cache_enabled and key in self._cache:
            logger.debug("advisor.cache_hit", user_id=user_id, week=key[1])
            return self._cache[key].model_copy(update={"from_cache": True})

        health, mood = weekly_signals(health_records, mood_records, today=today)
        bundle = await self._from_provider(health, mood)
        if bundle is None:
            bundle = synthesize(health, mood, random_source=self._random_source)

        if self._cache_enabled:
            # one cached week per user
            for stale in [k for k in self._cache if k[0] == user_id and k != key]:
                del self._cache[stale]
            self._cache[key] = bundle
        logger.info(
            "advisor.analysis_complete",
            user_id=user_id,
            week=key[1],
            days_logged=bundle.days_logged,
            fallback=bundle.from_fallback,
        )
        return bundle

    async def _from_provider(
        self,
        health: list[SignalTuple],
        mood: list[SignalTuple],
    ) -> AdviceBundle | None:
        if self._provider is None:
            return None

        summary = WeeklySummary.from_signals(health, mood)
        try:
            raw = await asyncio.wait_for(self._provider.generate(summary), timeout=self._timeout)
        except TimeoutError:
            logger.warning(
                "advisor.provider_timeout",
                provider=self._provider.name,
                timeout=self._timeout,
            )
            return None
        except Exception as exc:
            logger.warning(
                "advisor.provider_failed",
                provider=self._provider.name,
                error=str(exc),
            )
            return None

        bundle = parse_advice_response(raw)
        if bundle is None:
            logger.warning("advisor.provider_unusable", provider=self._provider.name)
            return None
        return bundle.model_copy(
            update={"days_logged": len(health), "low_confidence": len(health) == 0}
        )

    async def close(self) -> None:
        if self._provider is not None:
            await self._provider.close()
