"""State classifier — priority-ordered threshold rules over one day's signals.

Rules are evaluated in a fixed order and the first match wins:

=================  ===========================================  ================
Rule               Trigger                                      State
=================  ===========================================  ================
Sleep deficit      0 < sleep <= 4 h                             sleepy
Fatigue            mood "tired", energy <= 45, mood energy       tired → sad →
                   <= 4, stress >= 7 or heart rate >= 95         first allowed
Positive activity  >= 2 of steps, sleep, water, energy,          happy
                   mood-energy above their positive thresholds
Default            nothing else matched                          sad → first
=================  ===========================================  ================

The classifier never returns a state outside the caller's allowed set.
Thresholds are fixed (:data:`STATE_THRESHOLDS`) so that repeated calls,
and the avatar and trend call sites, always agree.
"""

from __future__ import annotations

import math
from typing import Iterable

from healthtwin.engine.models import ClassificationResult, ClassificationRule
from healthtwin.engine.thresholds import STATE_THRESHOLDS
from healthtwin.models import SignalTuple, State

_T = STATE_THRESHOLDS


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (``44.5`` → ``45``)."""
    return math.floor(value + 0.5)


def _fmt(value: float) -> str:
    """Render a number without a trailing ``.0``."""
    return f"{value:g}"


def _fatigue_source(signal: SignalTuple) -> str | None:
    """Return the first matching fatigue condition, in fixed order."""
    energy = signal.energy_score
    mood_energy = signal.mood_energy or 0.0
    stress = signal.stress_level or 0.0

    if signal.mood_label == _T.fatigue_mood_label:
        return f"mood: {_T.fatigue_mood_label}"
    if 0 < energy <= _T.fatigue_energy_score:
        return f"energy score {round_half_up(energy)}"
    if 0 < mood_energy <= _T.fatigue_mood_energy:
        return f"mood energy {_fmt(mood_energy)}/10"
    if stress >= _T.fatigue_stress_level:
        return f"stress level {_fmt(stress)}/10"
    if signal.heart_rate >= _T.fatigue_heart_rate:
        return f"heart rate {_fmt(signal.heart_rate)} bpm"
    return None


def count_positive_signals(signal: SignalTuple) -> int:
    """Number of metrics at or above their positive threshold."""
    mood_energy = signal.mood_energy or 0.0
    return sum((
        signal.steps >= _T.positive_steps,
        signal.sleep_hours >= _T.positive_sleep_hours,
        signal.water_litres >= _T.positive_water_litres,
        signal.energy_score >= _T.positive_energy_score,
        mood_energy >= _T.positive_mood_energy,
    ))


def classify(
    signal: SignalTuple,
    available_states: Iterable[State],
) -> ClassificationResult:
    """Classify one day's signals into a state from *available_states*.

    Parameters
    ----------
    signal
        The normalised signals of a day that has data.  Days without any
        record are represented upstream as ``state=None`` and must not be
        passed here.
    available_states
        Ordered universe of allowed states for the calling mode.  Its first
        entry is the last-resort fallback; an empty universe falls back to
        ``sad``.

    Returns
    -------
    ClassificationResult
        The state, a deterministic reasoning string and the rule that fired.
    """
    allowed = tuple(dict.fromkeys(available_states))

    def fallback_sad_like() -> State:
        if State.SAD in allowed:
            return State.SAD
        return allowed[0] if allowed else State.SAD

    # 1. Sleep deficit
    if 0 < signal.sleep_hours <= _T.sleep_deficit_hours and State.SLEEPY in allowed:
        return ClassificationResult(
            state=State.SLEEPY,
            reasoning=f"Sleep is low ({_fmt(signal.sleep_hours)}h)",
            rule=ClassificationRule.SLEEP_DEFICIT,
        )

    # 2. Fatigue / low energy
    source = _fatigue_source(signal)
    if source is not None:
        if State.TIRED in allowed:
            return ClassificationResult(
                state=State.TIRED,
                reasoning=f"Low-energy/fatigue signal from {source}",
                rule=ClassificationRule.FATIGUE,
            )
        return ClassificationResult(
            state=fallback_sad_like(),
            reasoning=f"Low-energy/stress signal from {source}",
            rule=ClassificationRule.FATIGUE,
        )

    # 3. Positive activity
    positives = count_positive_signals(signal)
    if positives >= _T.positive_signals_required and State.HAPPY in allowed:
        return ClassificationResult(
            state=State.HAPPY,
            reasoning=f"Positive daily metrics ({positives} strong signals)",
            rule=ClassificationRule.POSITIVE_ACTIVITY,
        )

    # 4. Default
    return ClassificationResult(
        state=fallback_sad_like(),
        reasoning="Default low/neutral activity state",
        rule=ClassificationRule.DEFAULT,
    )
