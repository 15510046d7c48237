"""Pydantic models for the behavioural & wellness inference engine.

These models represent:
- Per-day classification results with a reconstructable rule
- Trend projections over a trailing window of days
- Avatar identity, candidate media and the resolved media binding
- Wellness advice bundles
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from healthtwin.models import State

# ── Classification ────────────────────────────────────────────


class ClassificationRule(str, Enum):
    """Which classifier rule produced a state."""

    SLEEP_DEFICIT = "sleep_deficit"
    FATIGUE = "fatigue"
    POSITIVE_ACTIVITY = "positive_activity"
    DEFAULT = "default"


class ClassificationResult(BaseModel):
    """Classifier output: one state plus a deterministic justification."""

    model_config = ConfigDict(frozen=True)

    state: State
    reasoning: str
    rule: ClassificationRule


# ── Trend projection ──────────────────────────────────────────


class DayState(BaseModel):
    """Classification of a single calendar day (``state`` is ``None`` without data)."""

    date: str
    state: State | None = None
    reason: str | None = None


class ProjectionReasoning(BaseModel):
    dominant: str
    current: str
    projection: str


class TrendProjection(BaseModel):
    """Dominant / current / projected state over a trailing window.

    ``dominant_state`` and ``projected_state`` are ``None`` when no day
    in the window carried data; ``has_data`` tells callers to render the
    "no data yet" insight instead of a prediction.
    """

    days: int
    analyzed_days: int = 0
    has_data: bool = False
    dominant_state: State | None = None
    dominant_percent: int = 0
    current_state: State
    projected_state: State | None = None
    state_breakdown: dict[State, int] = Field(default_factory=dict)
    weighted_votes: dict[State, int] = Field(default_factory=dict)
    daily_states: list[DayState] = Field(default_factory=list)
    reasoning: ProjectionReasoning
    insight: str


# ── Avatar media ──────────────────────────────────────────────


class MediaProvenance(str, Enum):
    """How a media item came to exist for its state."""

    GENERATED = "generated"
    REUSED = "reused"  # same state, earlier generation
    SURROGATE = "surrogate"  # borrowed from another state
    SEEDED = "seeded"  # pre-built asset
    UNKNOWN = "unknown"


class AvatarIdentity(BaseModel):
    """The currently active avatar image and its content fingerprint."""

    model_config = ConfigDict(frozen=True)

    avatar_image_url: str
    fingerprint: str

    @classmethod
    def from_image_url(cls, avatar_image_url: str) -> AvatarIdentity:
        from healthtwin.engine.media import compute_avatar_fingerprint

        return cls(
            avatar_image_url=avatar_image_url,
            fingerprint=compute_avatar_fingerprint(avatar_image_url),
        )


class AvatarMediaItem(BaseModel):
    """A candidate looping video for one avatar state.

    ``source_fingerprint`` is a back-reference to the avatar identity the
    media was generated from; items never own the avatar.
    """

    state: State
    video_url: str | None = None
    source_fingerprint: str | None = None
    provider: str = ""
    provenance: MediaProvenance = MediaProvenance.UNKNOWN
    duration: float = 8.0
    metadata: dict[str, Any] = Field(default_factory=dict)


class GeneratedMedia(BaseModel):
    """Raw output of an external media generator for one state."""

    video_url: str
    duration: float = 8.0
    provider: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class MediaStatus(BaseModel):
    """Setup progress for the required state universe."""

    has_avatar: bool
    avatar_fingerprint: str | None = None
    required_states: list[State]
    generated_states: list[State] = Field(default_factory=list)
    pending_states: list[State] = Field(default_factory=list)
    ready: bool = False


class MediaBinding(BaseModel):
    """A single playable media item resolved for the current avatar."""

    state: State
    video_url: str | None = None
    video_by_state: dict[State, str] = Field(default_factory=dict)
    image_url: str | None = None
    avatar_fingerprint: str | None = None
    reasoning: str
    required_states: list[State] = Field(default_factory=list)
    available_states: list[State] = Field(default_factory=list)
    ready: bool = False
    setup_required: bool = False


# ── Wellness advice ───────────────────────────────────────────


class TipCategory(str, Enum):
    """Source category of a wellness tip; at most one tip per category."""

    SLEEP_LOW = "sleep_low"
    SLEEP_GOOD = "sleep_good"
    STEPS_LOW = "steps_low"
    STEPS_GOOD = "steps_good"
    WATER_LOW = "water_low"
    WATER_GOOD = "water_good"
    STRESS_HIGH = "stress_high"
    ENERGY_LOW = "energy_low"
    GENERAL = "general"


class AdviceBundle(BaseModel):
    """Narrative, up to three tips, an outcome sentence and a disclaimer."""

    narrative: str
    tips: list[str] = Field(default_factory=list, max_length=3)
    predicted_outcome: str
    disclaimer: str
    tip_categories: list[TipCategory] = Field(default_factory=list)
    weakest_metric: str | None = None
    days_logged: int = 0
    low_confidence: bool = False
    from_fallback: bool = False
    from_cache: bool = False
