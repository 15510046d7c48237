"""Tests for the state classifier."""

from __future__ import annotations

import pytest

from healthtwin.engine.classifier import classify, count_positive_signals
from healthtwin.engine.models import ClassificationRule
from healthtwin.models import FUTURE_STATES, LIVE_STATES, PREBUILT_STATES, SignalTuple, State


class TestSleepDeficit:
    def test_short_sleep_beats_positive_metrics(self):
        signal = SignalTuple(sleep_hours=3, steps=9000, water_litres=2.5, energy_score=80)
        result = classify(signal, PREBUILT_STATES)
        assert result.state == State.SLEEPY
        assert result.rule == ClassificationRule.SLEEP_DEFICIT
        assert result.reasoning == "Sleep is low (3h)"

    def test_boundary_is_inclusive(self):
        assert classify(SignalTuple(sleep_hours=4), LIVE_STATES).state == State.SLEEPY

    def test_zero_sleep_is_missing_not_deficit(self):
        result = classify(SignalTuple(sleep_hours=0), LIVE_STATES)
        assert result.state != State.SLEEPY

    def test_skipped_when_sleepy_not_allowed(self):
        result = classify(SignalTuple(sleep_hours=2), (State.HAPPY, State.SAD))
        assert result.state == State.SAD


class TestFatigue:
    def test_stress_without_tired_falls_back_to_sad(self):
        result = classify(SignalTuple(stress_level=8), PREBUILT_STATES)
        assert result.state == State.SAD
        assert result.reasoning == "Low-energy/stress signal from stress level 8/10"

    def test_tired_when_allowed(self):
        result = classify(SignalTuple(stress_level=8), LIVE_STATES)
        assert result.state == State.TIRED
        assert result.reasoning == "Low-energy/fatigue signal from stress level 8/10"

    def test_mood_label_is_checked_first(self):
        signal = SignalTuple(mood_label="tired", energy_score=20, heart_rate=100)
        assert classify(signal, LIVE_STATES).reasoning == "Low-energy/fatigue signal from mood: tired"

    @pytest.mark.parametrize(
        ("signal", "source"),
        [
            (SignalTuple(energy_score=44.6), "energy score 45"),
            (SignalTuple(mood_energy=4), "mood energy 4/10"),
            (SignalTuple(heart_rate=95), "heart rate 95 bpm"),
        ],
    )
    def test_sources(self, signal, source):
        assert classify(signal, LIVE_STATES).reasoning.endswith(source)

    def test_energy_score_rounds_half_up(self):
        result = classify(SignalTuple(energy_score=44.5), LIVE_STATES)
        assert result.reasoning == "Low-energy/fatigue signal from energy score 45"

    def test_fatigue_beats_positive_activity(self):
        signal = SignalTuple(sleep_hours=8, steps=12000, water_litres=3, heart_rate=100)
        assert classify(signal, LIVE_STATES).state == State.TIRED


class TestPositiveActivity:
    def test_two_signals_is_happy(self, healthy_day):
        result = classify(healthy_day, FUTURE_STATES)
        assert result.state == State.HAPPY
        assert result.rule == ClassificationRule.POSITIVE_ACTIVITY
        assert result.reasoning == "Positive daily metrics (4 strong signals)"

    def test_one_signal_is_not_enough(self):
        result = classify(SignalTuple(steps=12000), FUTURE_STATES)
        assert result.state == State.SAD
        assert result.reasoning == "Default low/neutral activity state"

    def test_count_includes_mood_energy(self):
        assert count_positive_signals(SignalTuple(steps=8000, mood_energy=7)) == 2


class TestClamping:
    @pytest.mark.parametrize(
        "signal",
        [
            SignalTuple(),
            SignalTuple(sleep_hours=2),
            SignalTuple(stress_level=9),
            SignalTuple(sleep_hours=8, steps=10000),
        ],
    )
    @pytest.mark.parametrize(
        "allowed",
        [
            FUTURE_STATES,
            LIVE_STATES,
            (State.HAPPY,),
            (State.SLEEPY, State.TIRED),
        ],
    )
    def test_result_always_in_allowed_set(self, signal, allowed):
        assert classify(signal, allowed).state in allowed

    def test_sad_absent_falls_back_to_first_allowed(self):
        assert classify(SignalTuple(), (State.SLEEPY, State.HAPPY)).state == State.SLEEPY

    def test_empty_universe_is_sad(self):
        assert classify(SignalTuple(), ()).state == State.SAD

    def test_deterministic(self, healthy_day):
        assert classify(healthy_day, LIVE_STATES) == classify(healthy_day, LIVE_STATES)
