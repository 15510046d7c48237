"""Tests for signal normalisation and UTC day helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from healthtwin.engine.signals import (
    bucket_by_day,
    normalize_signal,
    parse_day_key,
    to_utc_day_start,
    utc_day_key,
    utc_day_range,
    week_key,
)
from healthtwin.models import HealthRecord, MoodRecord, State, parse_state


class TestNormalizeSignal:
    def test_no_records_is_no_data(self):
        assert normalize_signal(None, None) is None

    def test_health_only(self):
        health = HealthRecord(date=datetime(2025, 3, 1, tzinfo=UTC), sleepHours=6.5, steps=4200)
        signal = normalize_signal(health, None)
        assert signal.sleep_hours == 6.5
        assert signal.steps == 4200
        assert signal.water_litres == 0.0
        assert signal.mood_label is None
        assert signal.mood_energy is None
        assert signal.stress_level is None

    def test_mood_only_defaults_metrics_to_zero(self):
        mood = MoodRecord(date=datetime(2025, 3, 1, tzinfo=UTC), mood="  Tired ", energyLevel=3)
        signal = normalize_signal(None, mood)
        assert signal.sleep_hours == 0.0
        assert signal.heart_rate == 0.0
        assert signal.mood_label == "tired"
        assert signal.mood_energy == 3

    def test_non_numeric_values_become_zero(self):
        health = HealthRecord.model_validate({
            "date": "2025-03-01T08:00:00Z",
            "sleepHours": "abc",
            "steps": None,
            "waterLitres": "1.5",
        })
        signal = normalize_signal(health, None)
        assert signal.sleep_hours == 0.0
        assert signal.steps == 0.0
        assert signal.water_litres == 1.5

    def test_blank_mood_label_is_none(self):
        mood = MoodRecord(date=datetime(2025, 3, 1, tzinfo=UTC), mood="   ")
        assert normalize_signal(None, mood).mood_label is None


class TestDayHelpers:
    def test_parse_day_key_strict(self):
        assert parse_day_key("2025-03-01") == datetime(2025, 3, 1, tzinfo=UTC)
        assert parse_day_key("2025-3-1") is None
        assert parse_day_key("2025-02-30") is None

    def test_day_start_converts_offsets_to_utc(self):
        local = datetime(2025, 3, 2, 1, 30, tzinfo=timezone(timedelta(hours=3)))
        assert to_utc_day_start(local) == datetime(2025, 3, 1, tzinfo=UTC)

    def test_day_start_accepts_iso_strings(self):
        assert to_utc_day_start("2025-03-01T23:59:59Z") == datetime(2025, 3, 1, tzinfo=UTC)

    def test_day_start_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_utc_day_start("not a date")

    def test_day_range(self):
        start, end = utc_day_range("2025-03-01")
        assert end - start == timedelta(days=1)

    def test_naive_datetimes_are_utc(self):
        assert utc_day_key(datetime(2025, 3, 1, 23, 0)) == "2025-03-01"

    def test_week_key(self):
        assert week_key(datetime(2025, 3, 14, tzinfo=UTC)) == "2025-W11"
        assert week_key(datetime(2024, 12, 30, tzinfo=UTC)) == "2025-W01"

    def test_bucket_by_day_last_wins(self):
        records = [
            HealthRecord(date=datetime(2025, 3, 1, 6, tzinfo=UTC), steps=100),
            HealthRecord(date=datetime(2025, 3, 1, 20, tzinfo=UTC), steps=900),
            HealthRecord(date=datetime(2025, 3, 2, 6, tzinfo=UTC), steps=50),
        ]
        by_day = bucket_by_day(records)
        assert set(by_day) == {"2025-03-01", "2025-03-02"}
        assert by_day["2025-03-01"].steps == 900


class TestParseState:
    def test_known(self):
        assert parse_state(" Happy ") == State.HAPPY
        assert parse_state(State.TIRED) == State.TIRED

    def test_unknown(self):
        assert parse_state("angry") is None
        assert parse_state(None) is None
        assert parse_state(3) is None
