"""Signal normalisation and UTC calendar-day helpers.

Raw health / mood documents are turned into :class:`SignalTuple` objects,
and bucketed by UTC day key (``YYYY-MM-DD``).  Two records landing on
different day keys are different days, even if they are hours apart.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta
from typing import Iterable, TypeVar

from healthtwin.models import HealthRecord, MoodRecord, SignalTuple

_ISO_DAY_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_R = TypeVar("_R", HealthRecord, MoodRecord)


# ── Normalisation ─────────────────────────────────────────────


def normalize_signal(
    health: HealthRecord | None,
    mood: MoodRecord | None,
) -> SignalTuple | None:
    """Merge one day's health and mood records into a :class:`SignalTuple`.

    Returns ``None`` when neither record exists, which represents a
    "no data" day rather than a day with data but no triggered rule.
    """
    if health is None and mood is None:
        return None

    mood_label = None
    if mood is not None and isinstance(mood.mood, str) and mood.mood.strip():
        mood_label = mood.mood.strip().lower()

    return SignalTuple(
        sleep_hours=health.sleep_hours if health else 0.0,
        heart_rate=health.heart_rate if health else 0.0,
        steps=health.steps if health else 0.0,
        water_litres=health.water_litres if health else 0.0,
        energy_score=health.energy_score if health else 0.0,
        mood_label=mood_label,
        mood_energy=mood.energy_level if mood else None,
        stress_level=mood.stress_level if mood else None,
    )


# ── UTC day helpers ───────────────────────────────────────────


def parse_day_key(value: str) -> datetime | None:
    """Parse a strict ``YYYY-MM-DD`` key into a UTC midnight datetime."""
    if not _ISO_DAY_KEY.match(value):
        return None
    try:
        d = date.fromisoformat(value)
    except ValueError:
        return None
    return datetime(d.year, d.month, d.day, tzinfo=UTC)


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime (naive values are assumed UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_utc_day_start(value: str | datetime | None = None) -> datetime:
    """Return UTC midnight for *value* (``None`` means now).

    Naive datetimes are assumed to be UTC.  Raises :class:`ValueError`
    for unparseable strings.
    """
    if value is None:
        dt = datetime.now(UTC)
    elif isinstance(value, str):
        parsed = parse_day_key(value)
        if parsed is not None:
            return parsed
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        dt = value
    return as_utc(dt).replace(hour=0, minute=0, second=0, microsecond=0)


def shift_utc_days(base: datetime, delta_days: int) -> datetime:
    return base + timedelta(days=delta_days)


def utc_day_range(value: str | datetime | None = None) -> tuple[datetime, datetime]:
    """Return ``(start, end)`` of the UTC day containing *value*."""
    start = to_utc_day_start(value)
    return start, shift_utc_days(start, 1)


def utc_day_key(value: datetime) -> str:
    return to_utc_day_start(value).date().isoformat()


def week_key(value: datetime | None = None) -> str:
    """ISO calendar-week key (``YYYY-Www``) used to cache weekly advice."""
    year, week, _ = to_utc_day_start(value).isocalendar()
    return f"{year}-W{week:02d}"


def bucket_by_day(records: Iterable[_R]) -> dict[str, _R]:
    """Map UTC day key → record.  Later records overwrite earlier ones."""
    by_day: dict[str, _R] = {}
    for record in records:
        by_day[utc_day_key(record.date)] = record
    return by_day
