"""Trend projector — dominant, current and projected state over a window.

Projection is two-stage: per-state counts over the window decide the
dominant state, then a bounded recency weight (+2 for the current state,
+1 for the most recent tracked day) decides the projected state.  A single
strong recent signal can therefore override a longer-run average without
erasing it.

Ties favour concern over comfort (``sad`` before ``sleepy`` before
``happy``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Mapping, Sequence

import structlog

from healthtwin.engine.classifier import classify, round_half_up
from healthtwin.engine.models import (
    ClassificationResult,
    DayState,
    ProjectionReasoning,
    TrendProjection,
)
from healthtwin.engine.signals import (
    as_utc,
    bucket_by_day,
    normalize_signal,
    shift_utc_days,
    to_utc_day_start,
    utc_day_key,
)
from healthtwin.models import FUTURE_STATES, HealthRecord, MoodRecord, SignalTuple, State

logger = structlog.get_logger(__name__)

DOMINANT_TIE_BREAK: tuple[State, ...] = (State.SAD, State.SLEEPY, State.HAPPY)
CURRENT_STATE_WEIGHT = 2
LAST_KNOWN_DAY_WEIGHT = 1


def select_top_state(
    counts: Mapping[State, int],
    tie_break_order: Sequence[State],
) -> State:
    """Return the state with the highest count, ties broken by preference."""
    if not counts:
        return State.SAD
    top = max(counts.values())
    winners = [state for state, n in counts.items() if n == top]
    for preferred in tie_break_order:
        if preferred in winners:
            return preferred
    return winners[0]


def project(
    window: Sequence[ClassificationResult | None],
    current: ClassificationResult,
    *,
    day_keys: Sequence[str] | None = None,
    days: int | None = None,
    universe: Sequence[State] = FUTURE_STATES,
) -> TrendProjection:
    """Project the near-future dominant state from a window of days.

    Parameters
    ----------
    window
        Day-ordered classifications, oldest first; ``None`` marks a day
        without any record.
    current
        Classification of the most recent record in the whole history,
        which may lie outside the window.
    day_keys
        Optional ``YYYY-MM-DD`` keys aligned with *window*, echoed in
        ``daily_states``.
    days
        Window size reported in the insight text (defaults to ``len(window)``).
    universe
        States always present in the breakdown, even with a zero count.
    """
    days = days if days is not None else len(window)
    if day_keys is not None and len(day_keys) != len(window):
        raise ValueError("day_keys must align with window")

    breakdown: dict[State, int] = {state: 0 for state in universe}
    last_known: State | None = None
    daily: list[DayState] = []
    for i, result in enumerate(window):
        key = day_keys[i] if day_keys is not None else str(i)
        if result is None:
            daily.append(DayState(date=key))
            continue
        breakdown[result.state] = breakdown.get(result.state, 0) + 1
        last_known = result.state
        daily.append(DayState(date=key, state=result.state, reason=result.reasoning))

    analyzed = sum(breakdown.values())
    current_state = current.state

    if analyzed == 0:
        period = f"{days}-day " if days > 0 else ""
        projection = TrendProjection(
            days=days,
            current_state=current_state,
            state_breakdown=breakdown,
            daily_states=daily,
            reasoning=ProjectionReasoning(
                dominant="No dominant state yet (insufficient data)",
                current=current.reasoning,
                projection="No tracked days in the window, so no projection was made",
            ),
            insight=(
                f"No {period}activity data found yet. Log your health or mood "
                "for a few days so a trend can be projected."
            ),
        )
        logger.info("trend.no_data", days=days, current=current_state.value)
        return projection

    dominant = select_top_state(breakdown, DOMINANT_TIE_BREAK)

    weighted = dict(breakdown)
    weighted[current_state] = weighted.get(current_state, 0) + CURRENT_STATE_WEIGHT
    if last_known is not None:
        weighted[last_known] = weighted.get(last_known, 0) + LAST_KNOWN_DAY_WEIGHT

    projected = select_top_state(
        weighted,
        (current_state, dominant, *DOMINANT_TIE_BREAK),
    )

    dominant_days = breakdown[dominant]
    dominant_percent = round_half_up(dominant_days / analyzed * 100)

    projection = TrendProjection(
        days=days,
        analyzed_days=analyzed,
        has_data=True,
        dominant_state=dominant,
        dominant_percent=dominant_percent,
        current_state=current_state,
        projected_state=projected,
        state_breakdown=breakdown,
        weighted_votes=weighted,
        daily_states=daily,
        reasoning=ProjectionReasoning(
            dominant=f"{dominant.value} appeared on {dominant_days}/{analyzed} tracked days",
            current=current.reasoning,
            projection=(
                f"Projection weights combine {days}-day dominance + "
                "current-day behavior continuity"
            ),
        ),
        insight=(
            f'In the last {days} days, "{dominant.value}" was dominant '
            f"({dominant_percent}% of tracked days). If your current pattern "
            f'continues, you are likely to feel "{projected.value}" most of the '
            "time from next week onward."
        ),
    )

    logger.info(
        "trend.projection_complete",
        days=days,
        analyzed=analyzed,
        dominant=dominant.value,
        current=current_state.value,
        projected=projected.value,
    )
    return projection


def _latest(records: Sequence[HealthRecord] | Sequence[MoodRecord]):
    return max(records, key=lambda r: as_utc(r.date)) if records else None


def project_window(
    health_records: Sequence[HealthRecord],
    mood_records: Sequence[MoodRecord],
    *,
    days: int,
    today: datetime | str | None = None,
    latest_health: HealthRecord | None = None,
    latest_mood: MoodRecord | None = None,
    universe: Sequence[State] = FUTURE_STATES,
) -> TrendProjection:
    """Classify each UTC day of the window ending at *today* and project.

    Records outside the window are ignored for the per-day states.  The
    current state comes from *latest_health* / *latest_mood* when given,
    otherwise from the most recent of the supplied records.
    """
    end = to_utc_day_start(today)
    since = shift_utc_days(end, -(days - 1))
    until = shift_utc_days(end, 1)

    def in_window(record: HealthRecord | MoodRecord) -> bool:
        return since <= to_utc_day_start(record.date) < until

    health_by_day = bucket_by_day(
        sorted((r for r in health_records if in_window(r)), key=lambda r: as_utc(r.date))
    )
    mood_by_day = bucket_by_day(
        sorted((r for r in mood_records if in_window(r)), key=lambda r: as_utc(r.date))
    )

    window: list[ClassificationResult | None] = []
    keys: list[str] = []
    for i in range(days):
        key = utc_day_key(shift_utc_days(since, i))
        keys.append(key)
        signal = normalize_signal(health_by_day.get(key), mood_by_day.get(key))
        window.append(classify(signal, universe) if signal is not None else None)

    latest_signal = normalize_signal(
        latest_health or _latest(health_records),
        latest_mood or _latest(mood_records),
    )
    current = classify(latest_signal or SignalTuple(), universe)

    return project(window, current, day_keys=keys, days=days, universe=universe)
