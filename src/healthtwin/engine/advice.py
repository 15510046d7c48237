"""Wellness advice synthesizer — rule-based fallback for the weekly analysis.

Analyses a batch of daily signals and produces a narrative paragraph, up
to three prioritised tips and a motivational outcome sentence.  It runs
whenever the external text provider is absent, fails, times out or returns
unusable output.

Category selection and priority ordering are deterministic; the wording
inside each category is picked at random for variety.  Pass a seeded
``random_source`` to make the wording reproducible.
"""

from __future__ import annotations

import random
from statistics import fmean
from typing import Callable, Sequence, TypeVar

import structlog

from healthtwin.engine.models import AdviceBundle, TipCategory
from healthtwin.engine.thresholds import (
    ADVICE_DEFAULT_HEART_RATE,
    ADVICE_DEFAULT_MOOD_ENERGY,
    ADVICE_DEFAULT_STRESS,
    ADVICE_THRESHOLDS,
    LOGGING_DAYS_GOOD,
    LOGGING_DAYS_GREAT,
    Band,
)
from healthtwin.models import SignalTuple

logger = structlog.get_logger(__name__)

RandomSource = Callable[[], float]

_T = TypeVar("_T")

DISCLAIMER = (
    "⚠️ This is general wellness guidance only and is not medical advice. "
    "Please consult a healthcare professional for medical concerns."
)

MAX_TIPS = 3

# ── Narrative phrases keyed by performance tier ───────────────

STEP_PHRASES: dict[str, list[str]] = {
    "great": [
        "Your step count has been impressive, you're clearly keeping active throughout the day.",
        "You've been crushing your movement goals with great step numbers this week.",
        "Your daily steps show you're making physical activity a real priority.",
    ],
    "good": [
        "Your activity level has been solid, and a bit more movement could take you to the next level.",
        "You're moving well, though there's room to push that step count a little higher.",
        "Decent activity this week. A short walk each evening would make a real difference.",
    ],
    "low": [
        "Your step count has been lower than ideal, but even small walks can have a big impact.",
        "Movement has been limited this week. Try breaking up sitting time with short strolls.",
        "Your activity level is something to focus on; gentle, consistent movement is key.",
    ],
}

SLEEP_PHRASES: dict[str, list[str]] = {
    "great": [
        "Your sleep has been excellent. Consistent rest is one of the biggest factors in energy and focus.",
        "You've been sleeping well, which sets a strong foundation for everything else.",
        "Great sleep pattern this week; your body is clearly getting the recovery it needs.",
    ],
    "good": [
        "Your sleep is decent, though nudging it closer to 7-8 hours would noticeably boost your energy.",
        "Sleep has been okay but slightly under the ideal range. An earlier bedtime could help.",
        "You're getting reasonable sleep, though your energy could improve with just 30 more minutes per night.",
    ],
    "low": [
        "Sleep has been your biggest challenge this week and is likely affecting your mood and energy directly.",
        "Your sleep hours are below what your body needs to recover; this should be your top focus.",
        "Limited sleep this week. Even a small improvement here will cascade into better energy and mood.",
    ],
}

# ── Tips library keyed by category ────────────────────────────

TIPS: dict[TipCategory, list[str]] = {
    TipCategory.SLEEP_LOW: [
        "Set a consistent bedtime alarm 30 minutes earlier than usual. Consistency matters more than total hours at first.",
        "Avoid screens for 30 minutes before bed. Try reading or light stretching instead to wind down.",
        "Keep your bedroom cool and dark; temperature regulation significantly improves sleep depth.",
    ],
    TipCategory.SLEEP_GOOD: [
        "Try to go to bed and wake at the same time every day, even on weekends, to lock in your sleep rhythm.",
        "A 10-minute wind-down routine (journaling, deep breathing) can improve your sleep quality noticeably.",
    ],
    TipCategory.STEPS_LOW: [
        "Add a 15-minute walk after meals. It's one of the easiest ways to increase your daily step count.",
        "Take the stairs instead of the lift and park further away; these micro-habits add up quickly.",
        "Set a reminder every 90 minutes to stand up and walk for 5 minutes. This alone can add 2,000+ steps.",
    ],
    TipCategory.STEPS_GOOD: [
        "Challenge yourself with one longer walk per week. Even 30 minutes makes a meaningful difference.",
        "Try a walking meeting or listening to podcasts while walking to make extra steps feel effortless.",
    ],
    TipCategory.WATER_LOW: [
        "Start each morning with a full glass of water before anything else to kickstart hydration for the day.",
        "Set phone reminders to drink water at 10am, 1pm, 4pm, and 7pm. This alone will significantly improve intake.",
        "Keep a visible 1-litre water bottle on your desk; visibility makes drinking it near-automatic.",
    ],
    TipCategory.WATER_GOOD: [
        "Try adding a slice of lemon or cucumber to your water to make it more appealing and increase intake naturally.",
    ],
    TipCategory.STRESS_HIGH: [
        "Spend 5 minutes on box breathing when stress peaks: inhale 4s, hold 4s, exhale 4s, hold 4s.",
        "Try a 10-minute mindfulness session before bed; many apps have free starter programmes.",
        'Schedule one "no-obligation" hour per day where you give yourself permission to fully relax.',
    ],
    TipCategory.ENERGY_LOW: [
        "Eat a protein-rich breakfast within an hour of waking to stabilise energy levels through the morning.",
        "Avoid caffeine after 2pm; it disrupts sleep quality even if you don't feel its effects at night.",
    ],
    TipCategory.GENERAL: [
        "Log your health data daily this week. The more data your Digital Twin has, the more accurate its insights become.",
        "Track your mood alongside your physical metrics; the pattern between them often reveals your biggest lever for improvement.",
        "Share your weekly analysis with a friend or accountability partner. Social commitment doubles follow-through rates.",
    ],
}

TIP_PRIORITIES: dict[TipCategory, int] = {
    TipCategory.SLEEP_LOW: 10,
    TipCategory.STEPS_LOW: 9,
    TipCategory.WATER_LOW: 8,
    TipCategory.STRESS_HIGH: 7,
    TipCategory.SLEEP_GOOD: 6,
    TipCategory.ENERGY_LOW: 6,
    TipCategory.STEPS_GOOD: 5,
    TipCategory.WATER_GOOD: 4,
}

# ── Outcome sentences keyed by weakest metric ─────────────────

OUTCOMES: dict[str, list[str]] = {
    "sleep": [
        "In two weeks of better sleep, you're likely to feel noticeably sharper, more patient, and more motivated throughout the day.",
        "With consistent sleep improvements, expect to wake up feeling genuinely rested within 10-14 days.",
    ],
    "steps": [
        "With just 2 more weeks of regular movement, your energy levels typically rise and afternoon slumps become much less common.",
        "In two weeks of consistent activity, most people report better mood, less stiffness, and more natural daytime energy.",
    ],
    "water": [
        "Better hydration usually shows results within a week, with clearer thinking and better energy among the first effects.",
    ],
    "general": [
        "Following these habits for just two weeks can noticeably shift how you feel each morning.",
        "In two weeks of applying even one of these tips consistently, most people feel a meaningful positive shift in their daily energy and mood.",
        "Small consistent changes compound quickly. Two weeks from now, you'll likely notice real differences in your energy and focus.",
    ],
}

NO_DATA_NARRATIVE = (
    "No health data has been logged for this period yet, so this analysis is "
    "low confidence. Log your sleep, steps and water for a few days and your "
    "Digital Twin will be able to spot real patterns."
)


# ── Helpers ───────────────────────────────────────────────────


def _pick(options: Sequence[_T], random_source: RandomSource) -> _T:
    index = min(int(random_source() * len(options)), len(options) - 1)
    return options[index]


def _mean(values: list[float]) -> float | None:
    return fmean(values) if values else None


def _tier(value: float, band: Band) -> str:
    if value >= band.great:
        return "great"
    if value >= band.good:
        return "good"
    return "low"


def _logging_note(days_logged: int) -> str:
    if days_logged >= LOGGING_DAYS_GREAT:
        return (
            "You've done a great job logging consistently, so your Digital Twin "
            "has a clear picture of your week."
        )
    if days_logged >= LOGGING_DAYS_GOOD:
        return (
            f"You logged {days_logged} out of 7 days. Good effort, though daily "
            "logging would give even sharper insights."
        )
    return (
        f"You logged {days_logged} day(s) this week. Try to log daily so your "
        "Twin can track patterns more accurately."
    )


# ── Selection ─────────────────────────────────────────────────


def rank_tip_categories(
    avg_steps: float | None,
    avg_sleep: float | None,
    avg_water: float | None,
    avg_stress: float | None,
    avg_energy: float | None,
) -> list[TipCategory]:
    """Candidate tip categories, highest priority first.

    Each metric contributes at most one category (low and good bands are
    mutually exclusive).  Metrics without data contribute nothing.
    """
    t = ADVICE_THRESHOLDS
    candidates: list[TipCategory] = []

    for value, band, low_cat, good_cat in (
        (avg_sleep, t.sleep, TipCategory.SLEEP_LOW, TipCategory.SLEEP_GOOD),
        (avg_steps, t.steps, TipCategory.STEPS_LOW, TipCategory.STEPS_GOOD),
        (avg_water, t.water, TipCategory.WATER_LOW, TipCategory.WATER_GOOD),
    ):
        if value is None:
            continue
        if value < band.low:
            candidates.append(low_cat)
        elif value < band.good:
            candidates.append(good_cat)

    if avg_stress is not None and avg_stress > t.stress_high:
        candidates.append(TipCategory.STRESS_HIGH)
    if avg_energy is not None and avg_energy < t.energy_low:
        candidates.append(TipCategory.ENERGY_LOW)

    # sorted() is stable: equal priorities keep insertion order
    return sorted(candidates, key=lambda c: TIP_PRIORITIES[c], reverse=True)


def select_tips(
    categories: Sequence[TipCategory],
    random_source: RandomSource,
) -> tuple[list[str], list[TipCategory]]:
    """Pick one phrase per distinct category, then backfill from general tips."""
    tips: list[str] = []
    used: list[TipCategory] = []

    for category in categories:
        if len(tips) >= MAX_TIPS:
            break
        if category in used:
            continue
        used.append(category)
        tips.append(_pick(TIPS[category], random_source))

    general_pool = list(TIPS[TipCategory.GENERAL])
    while len(tips) < MAX_TIPS and general_pool:
        phrase = general_pool.pop(min(int(random_source() * len(general_pool)), len(general_pool) - 1))
        if phrase in tips:
            continue
        tips.append(phrase)
        used.append(TipCategory.GENERAL)

    return tips, used


def weakest_metric(
    avg_steps: float | None,
    avg_sleep: float | None,
    avg_water: float | None,
) -> str | None:
    """Metric with the smallest ratio to its "great" threshold.

    Returns ``None`` when no metric has data or every metric is already at
    or above its "great" threshold.
    """
    t = ADVICE_THRESHOLDS
    ratios = {
        name: value / band.great
        for name, value, band in (
            ("sleep", avg_sleep, t.sleep),
            ("steps", avg_steps, t.steps),
            ("water", avg_water, t.water),
        )
        if value is not None
    }
    if not ratios:
        return None
    name, ratio = min(ratios.items(), key=lambda kv: kv[1])
    return name if ratio < 1.0 else None


# ── Main entry point ─────────────────────────────────────────


def synthesize(
    health_signals: Sequence[SignalTuple],
    mood_signals: Sequence[SignalTuple],
    *,
    random_source: RandomSource = random.random,
) -> AdviceBundle:
    """Build a wellness :class:`AdviceBundle` from a batch of daily signals.

    Parameters
    ----------
    health_signals
        One signal per day that had a health record.
    mood_signals
        One signal per day that had a mood check-in.
    random_source
        Zero-argument callable returning a float in ``[0, 1)``; used only to
        choose wording within a category.

    Returns
    -------
    AdviceBundle
        Never raises; an empty batch yields a low-confidence default bundle.
    """
    days_logged = len(health_signals)

    avg_steps = _mean([s.steps for s in health_signals])
    avg_sleep = _mean([s.sleep_hours for s in health_signals])
    avg_water = _mean([s.water_litres for s in health_signals])
    avg_hr = _mean([s.heart_rate or ADVICE_DEFAULT_HEART_RATE for s in health_signals])
    avg_mood_energy = _mean([s.mood_energy or ADVICE_DEFAULT_MOOD_ENERGY for s in mood_signals])
    avg_energy = avg_mood_energy * 10 if avg_mood_energy is not None else None
    avg_stress = _mean([s.stress_level or ADVICE_DEFAULT_STRESS for s in mood_signals])

    categories = rank_tip_categories(avg_steps, avg_sleep, avg_water, avg_stress, avg_energy)
    tips, used = select_tips(categories, random_source)
    weakest = weakest_metric(avg_steps, avg_sleep, avg_water)
    outcome = _pick(OUTCOMES[weakest or "general"], random_source)

    if days_logged == 0:
        narrative = NO_DATA_NARRATIVE
    else:
        sleep_phrase = _pick(SLEEP_PHRASES[_tier(avg_sleep, ADVICE_THRESHOLDS.sleep)], random_source)
        step_phrase = _pick(STEP_PHRASES[_tier(avg_steps, ADVICE_THRESHOLDS.steps)], random_source)
        narrative = f"{sleep_phrase} {step_phrase} {_logging_note(days_logged)}"

    bundle = AdviceBundle(
        narrative=narrative,
        tips=tips,
        predicted_outcome=outcome,
        disclaimer=DISCLAIMER,
        tip_categories=used,
        weakest_metric=weakest,
        days_logged=days_logged,
        low_confidence=days_logged == 0,
        from_fallback=True,
    )

    logger.info(
        "advice.synthesized",
        days_logged=days_logged,
        mood_days=len(mood_signals),
        categories=[c.value for c in used],
        weakest=weakest,
        avg_heart_rate=round(avg_hr, 1) if avg_hr is not None else None,
    )
    return bundle
