"""Behavioural & wellness inference engine.

Deterministic threshold / priority rules that turn sparse daily health and
mood telemetry into states, trends, avatar media bindings and advice.

Architecture
------------
1. **Signal normalisation** (`signals.py`)
   - Raw health / mood records → canonical :class:`SignalTuple`
   - UTC calendar-day bucketing and week keys

2. **State classifier** (`classifier.py`)
   - Priority-ordered rules: sleep deficit → fatigue → positive activity
     → default, clamped to the caller's allowed states

3. **Trend projector** (`trend.py`)
   - Per-state counts over a window, dominant state with a fixed tie-break,
     bounded recency weighting for the projected state

4. **Avatar media binder** (`media.py`)
   - Fingerprint binding between generated media and the active avatar,
     resolution fallback chain, reuse / surrogate media on failed generation

5. **Wellness advice synthesizer** (`advice.py`)
   - Averages, tiered narrative, prioritised tips, weakest-metric outcome

All components are pure and synchronous apart from the media generation
loop, which awaits the external generator.  Thresholds live in
`thresholds.py` and are shared by every call site.
"""

from healthtwin.engine.advice import synthesize
from healthtwin.engine.classifier import classify
from healthtwin.engine.media import (
    AvatarMediaBinder,
    MediaGenerator,
    MediaUnavailableError,
    compute_avatar_fingerprint,
)
from healthtwin.engine.models import (
    AdviceBundle,
    AvatarIdentity,
    AvatarMediaItem,
    ClassificationResult,
    ClassificationRule,
    DayState,
    MediaBinding,
    MediaProvenance,
    MediaStatus,
    TipCategory,
    TrendProjection,
)
from healthtwin.engine.signals import normalize_signal
from healthtwin.engine.trend import project, project_window

__all__ = [
    "AdviceBundle",
    "AvatarIdentity",
    "AvatarMediaBinder",
    "AvatarMediaItem",
    "ClassificationResult",
    "ClassificationRule",
    "DayState",
    "MediaBinding",
    "MediaGenerator",
    "MediaProvenance",
    "MediaStatus",
    "MediaUnavailableError",
    "TipCategory",
    "TrendProjection",
    "classify",
    "compute_avatar_fingerprint",
    "normalize_signal",
    "project",
    "project_window",
    "synthesize",
]
