"""Tests for the rule-based wellness advice synthesizer."""

from __future__ import annotations

import random

import pytest

from healthtwin.engine.advice import (
    DISCLAIMER,
    NO_DATA_NARRATIVE,
    OUTCOMES,
    SLEEP_PHRASES,
    TIPS,
    rank_tip_categories,
    select_tips,
    synthesize,
    weakest_metric,
)
from healthtwin.engine.models import TipCategory
from healthtwin.models import SignalTuple


def _health(n: int, **kwargs) -> list[SignalTuple]:
    return [SignalTuple(**kwargs) for _ in range(n)]


def _mood(n: int, **kwargs) -> list[SignalTuple]:
    return [SignalTuple(**kwargs) for _ in range(n)]


class TestRankTipCategories:
    def test_priority_order(self):
        categories = rank_tip_categories(
            avg_steps=3000, avg_sleep=6.0, avg_water=0.5, avg_stress=9, avg_energy=50
        )
        assert categories == [
            TipCategory.STEPS_LOW,
            TipCategory.WATER_LOW,
            TipCategory.STRESS_HIGH,
            TipCategory.SLEEP_GOOD,
        ]

    def test_low_and_good_are_exclusive(self):
        categories = rank_tip_categories(5.0, 5.0, 1.2, None, None)
        assert TipCategory.SLEEP_LOW in categories
        assert TipCategory.SLEEP_GOOD not in categories
        assert TipCategory.WATER_GOOD in categories

    def test_missing_metrics_contribute_nothing(self):
        assert rank_tip_categories(None, None, None, None, None) == []

    def test_thresholds_are_strict(self):
        # exactly on the band edges: no low / good tips, stress not above 7
        assert rank_tip_categories(7000, 6.5, 1.5, 7, 35) == []


class TestSelectTips:
    def test_one_phrase_per_category_then_backfill(self, seeded_random):
        tips, used = select_tips([TipCategory.SLEEP_LOW, TipCategory.SLEEP_LOW], seeded_random)
        assert len(tips) == 3
        assert used == [TipCategory.SLEEP_LOW, TipCategory.GENERAL, TipCategory.GENERAL]
        assert tips[0] in TIPS[TipCategory.SLEEP_LOW]
        assert sum(t in TIPS[TipCategory.SLEEP_LOW] for t in tips) == 1
        assert len(set(tips)) == 3

    def test_caps_at_three(self, seeded_random):
        categories = [
            TipCategory.SLEEP_LOW,
            TipCategory.STEPS_LOW,
            TipCategory.WATER_LOW,
            TipCategory.STRESS_HIGH,
        ]
        tips, used = select_tips(categories, seeded_random)
        assert used == categories[:3]
        assert len(tips) == 3


class TestWeakestMetric:
    def test_smallest_ratio(self):
        assert weakest_metric(avg_steps=8000, avg_sleep=5.0, avg_water=1.9) == "sleep"

    def test_all_great(self):
        assert weakest_metric(avg_steps=9000, avg_sleep=7.5, avg_water=2.0) is None

    def test_no_data(self):
        assert weakest_metric(None, None, None) is None


class TestSynthesize:
    def test_empty_input(self, seeded_random):
        bundle = synthesize([], [], random_source=seeded_random)
        assert bundle.narrative == NO_DATA_NARRATIVE
        assert bundle.low_confidence
        assert bundle.days_logged == 0
        assert len(bundle.tips) == 3
        assert all(t in TIPS[TipCategory.GENERAL] for t in bundle.tips)
        assert bundle.predicted_outcome in OUTCOMES["general"]
        assert bundle.disclaimer == DISCLAIMER
        assert bundle.from_fallback

    def test_low_sleep_week(self, seeded_random):
        health = _health(7, sleep_hours=5.0, steps=10000, water_litres=2.5)
        bundle = synthesize(health, [], random_source=seeded_random)
        assert bundle.tip_categories[0] == TipCategory.SLEEP_LOW
        assert bundle.tips[0] in TIPS[TipCategory.SLEEP_LOW]
        assert bundle.weakest_metric == "sleep"
        assert bundle.predicted_outcome in OUTCOMES["sleep"]
        assert any(bundle.narrative.startswith(p) for p in SLEEP_PHRASES["low"])
        assert "great job logging consistently" in bundle.narrative

    def test_mood_drives_stress_and_energy(self, seeded_random):
        health = _health(2, sleep_hours=8, steps=10000, water_litres=2.5)
        mood = _mood(2, mood_energy=2, stress_level=9)
        bundle = synthesize(health, mood, random_source=seeded_random)
        assert bundle.tip_categories[:2] == [TipCategory.STRESS_HIGH, TipCategory.ENERGY_LOW]
        assert "You logged 2 day(s) this week." in bundle.narrative
        assert bundle.weakest_metric is None
        assert bundle.predicted_outcome in OUTCOMES["general"]

    def test_missing_mood_fields_use_defaults(self, seeded_random):
        health = _health(1, sleep_hours=8, steps=10000, water_litres=2.5)
        bundle = synthesize(health, _mood(3), random_source=seeded_random)
        assert TipCategory.STRESS_HIGH not in bundle.tip_categories
        assert TipCategory.ENERGY_LOW not in bundle.tip_categories

    def test_reproducible_with_seeded_random(self):
        health = _health(4, sleep_hours=6, steps=3000, water_litres=1.0)
        a = synthesize(health, [], random_source=random.Random(7).random)
        b = synthesize(health, [], random_source=random.Random(7).random)
        assert a == b

    @pytest.mark.parametrize("days", [0, 1, 4, 7])
    def test_tip_count_bounded(self, days, seeded_random):
        health = _health(days, sleep_hours=4, steps=1000, water_litres=0.2)
        bundle = synthesize(health, _mood(days, stress_level=10, mood_energy=1), random_source=seeded_random)
        assert 1 <= len(bundle.tips) <= 3
