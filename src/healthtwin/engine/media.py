"""Avatar media binder — bind generated media to the current avatar identity.

Media items carry a back-reference (``source_fingerprint``) to the avatar
image they were generated from.  Whenever the avatar is regenerated its
fingerprint changes and every item bound to the old fingerprint stops
being usable until new media is produced.

Usability rule
--------------
An item is usable iff it has a media URL, is not a known stock placeholder,
and one of:

1. its recorded fingerprint equals the current avatar fingerprint
   (authoritative whenever both are present);
2. the URL is an embedded ``data:video/`` blob;
3. its provider tag starts with a trusted prefix (legacy / seeded media)
   and no fingerprint mismatch can be proven.
"""

from __future__ import annotations

import hashlib
import re
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, Iterable, Mapping, Sequence

import structlog

from healthtwin.engine.models import (
    AvatarIdentity,
    AvatarMediaItem,
    GeneratedMedia,
    MediaBinding,
    MediaProvenance,
    MediaStatus,
)
from healthtwin.models import LIVE_STATES, State, parse_state

logger = structlog.get_logger(__name__)

# ── Constants ─────────────────────────────────────────────────

STOCK_VIDEO_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^https://storage\.googleapis\.com/gtv-videos-bucket/sample/", re.IGNORECASE),
)

DEFAULT_TRUSTED_PROVIDERS: tuple[str, ...] = ("prebuilt_", "nanobana_")

# Fixed resolution order after the requested and inferred states
RESOLUTION_ORDER: tuple[State, ...] = (State.HAPPY, State.SAD, State.SLEEPY, State.TIRED)

_EMBEDDED_VIDEO_PREFIX = "data:video/"

_PROVENANCE_BY_PROVIDER_SUFFIX = {
    "_reused": MediaProvenance.REUSED,
    "_surrogate": MediaProvenance.SURROGATE,
}


class MediaUnavailableError(LookupError):
    """No usable media exists to stand in for a failed generation."""


# ── Fingerprinting ────────────────────────────────────────────


def compute_avatar_fingerprint(avatar_image_url: str) -> str:
    """SHA-256 hex digest of the avatar image reference."""
    return hashlib.sha256(avatar_image_url.encode("utf-8")).hexdigest()


def is_stock_placeholder(video_url: str | None) -> bool:
    """True for empty URLs and known stock / sample videos."""
    if not video_url:
        return True
    return any(p.match(video_url) for p in STOCK_VIDEO_PATTERNS)


def _infer_provenance(provider: str) -> MediaProvenance:
    for suffix, provenance in _PROVENANCE_BY_PROVIDER_SUFFIX.items():
        if provider.endswith(suffix):
            return provenance
    if provider.startswith("prebuilt_"):
        return MediaProvenance.SEEDED
    if provider:
        return MediaProvenance.GENERATED
    return MediaProvenance.UNKNOWN


def media_item_from_record(record: Mapping[str, Any]) -> AvatarMediaItem | None:
    """Build an :class:`AvatarMediaItem` from a persisted animation document.

    Returns ``None`` when the document's state is not recognised.
    """
    state = parse_state(record.get("stateType", record.get("state")))
    if state is None:
        return None

    metadata = record.get("generationMetadata")
    metadata = dict(metadata) if isinstance(metadata, Mapping) else {}
    provider = metadata.get("provider")
    provider = provider if isinstance(provider, str) else ""
    fingerprint = metadata.get("avatarFingerprint")
    video_url = record.get("videoUrl", record.get("video_url"))

    return AvatarMediaItem(
        state=state,
        video_url=video_url if isinstance(video_url, str) and video_url else None,
        source_fingerprint=fingerprint if isinstance(fingerprint, str) and fingerprint else None,
        provider=provider,
        provenance=_infer_provenance(provider),
        duration=float(record.get("duration") or 8.0),
        metadata=metadata,
    )


# ── Generation contract ───────────────────────────────────────


class MediaGenerator(ABC):
    """Contract for the external generative-media provider."""

    provider: str = "nanobana_google"

    @abstractmethod
    async def generate(self, avatar_image_url: str, state: State) -> GeneratedMedia:
        """Produce a looping video of the avatar in *state*."""


# ── Binder ────────────────────────────────────────────────────


class AvatarMediaBinder:
    """Filter and resolve avatar media for one deployment mode.

    Parameters
    ----------
    required_states
        The state universe the active mode must cover (3 or 4 states).
    trusted_providers
        Provider-tag prefixes trusted for media that carries no fingerprint.
    """

    def __init__(
        self,
        required_states: Sequence[State] = LIVE_STATES,
        trusted_providers: Sequence[str] = DEFAULT_TRUSTED_PROVIDERS,
    ) -> None:
        self._required = tuple(dict.fromkeys(required_states))
        self._trusted = tuple(trusted_providers)

    @property
    def required_states(self) -> tuple[State, ...]:
        return self._required

    # ── Usability ─────────────────────────────────────────────

    def is_usable(self, item: AvatarMediaItem, identity: AvatarIdentity | None) -> bool:
        if is_stock_placeholder(item.video_url):
            return False

        if identity is not None and item.source_fingerprint:
            return item.source_fingerprint == identity.fingerprint

        if item.video_url.startswith(_EMBEDDED_VIDEO_PREFIX):
            return True
        return any(item.provider.startswith(prefix) for prefix in self._trusted)

    def usable_items(
        self,
        identity: AvatarIdentity | None,
        items: Iterable[AvatarMediaItem],
    ) -> list[AvatarMediaItem]:
        """Items in the required universe that are usable for *identity*."""
        return [
            item for item in items
            if item.state in self._required and self.is_usable(item, identity)
        ]

    @staticmethod
    def video_by_state(items: Iterable[AvatarMediaItem]) -> dict[State, str]:
        """Map state → URL; later items overwrite earlier ones."""
        mapping: dict[State, str] = {}
        for item in items:
            if item.video_url:
                mapping[item.state] = item.video_url
        return mapping

    # ── Status ────────────────────────────────────────────────

    def status(
        self,
        identity: AvatarIdentity | None,
        items: Iterable[AvatarMediaItem],
    ) -> MediaStatus:
        usable = self.usable_items(identity, items)
        generated = list(dict.fromkeys(item.state for item in usable))
        pending = [s for s in self._required if s not in generated]
        return MediaStatus(
            has_avatar=identity is not None,
            avatar_fingerprint=identity.fingerprint if identity else None,
            required_states=list(self._required),
            generated_states=generated,
            pending_states=pending,
            ready=identity is not None and not pending,
        )

    # ── Resolution ────────────────────────────────────────────

    def resolve(
        self,
        identity: AvatarIdentity | None,
        items: Iterable[AvatarMediaItem],
        *,
        requested_state: State | str | None = None,
        inferred_state: State | None = None,
        inferred_reasoning: str = "",
    ) -> MediaBinding:
        """Resolve one playable item for the requested or inferred state.

        Fallback chain: requested → inferred → happy, sad, sleepy, tired →
        first usable item of any state → ``None``.  A requested state outside
        the required universe is ignored.
        """
        usable = self.usable_items(identity, items)
        by_state = self.video_by_state(usable)

        requested = parse_state(requested_state)
        if requested not in self._required:
            requested = None
        inferred = inferred_state if inferred_state in self._required else None

        candidates = [s for s in (requested, inferred, *RESOLUTION_ORDER) if s in self._required]
        resolved_state = next((s for s in dict.fromkeys(candidates) if s in by_state), None)
        if resolved_state is None:
            resolved_state = inferred or requested or (self._required[0] if self._required else State.SAD)

        video_url = by_state.get(resolved_state)
        if video_url is None and usable:
            video_url = usable[0].video_url

        if requested is not None:
            reasoning = f'Client preview requested "{requested.value}" state'
        else:
            reasoning = inferred_reasoning or "No classified state available"

        binding = MediaBinding(
            state=resolved_state,
            video_url=video_url,
            video_by_state=by_state,
            image_url=identity.avatar_image_url if identity else None,
            avatar_fingerprint=identity.fingerprint if identity else None,
            reasoning=reasoning,
            required_states=list(self._required),
            available_states=list(by_state),
            ready=identity is not None and all(s in by_state for s in self._required),
            setup_required=identity is None and video_url is None,
        )
        logger.info(
            "media.resolved",
            state=resolved_state.value,
            has_video=video_url is not None,
            usable=len(usable),
            ready=binding.ready,
        )
        return binding

    # ── Failure-path reuse ────────────────────────────────────

    def substitute(
        self,
        state: State,
        pool: Sequence[AvatarMediaItem],
        identity: AvatarIdentity,
        reason: str,
    ) -> AvatarMediaItem:
        """Borrow usable media for *state* after its generation failed.

        Prefers an earlier item of the same state (``reused``), otherwise the
        first item of any other state (``surrogate``).  Raises
        :class:`MediaUnavailableError` if *pool* holds nothing usable.
        """
        usable = [item for item in pool if self.is_usable(item, identity)]
        same_state = next((item for item in usable if item.state == state), None)
        source = same_state or (usable[0] if usable else None)
        if source is None:
            raise MediaUnavailableError(
                f'Could not generate avatar media for "{state.value}" and no '
                "avatar-based media is available"
            )

        provenance = MediaProvenance.REUSED if same_state else MediaProvenance.SURROGATE
        base = source.provider.split("_", 1)[0] if source.provider else "nanobana"
        provider = f"{base}_{provenance.value}"
        metadata = {
            **source.metadata,
            "provider": provider,
            "provenance": provenance.value,
            "sourceState": source.state.value,
            "failedState": state.value,
            "avatarFingerprint": identity.fingerprint,
            "reason": reason,
            "generatedAt": datetime.now(UTC).isoformat(),
        }
        logger.warning(
            "media.substituted",
            state=state.value,
            source_state=source.state.value,
            provenance=provenance.value,
            reason=reason,
        )
        return source.model_copy(update={
            "state": state,
            "source_fingerprint": identity.fingerprint,
            "provider": provider,
            "provenance": provenance,
            "metadata": metadata,
        })

    async def generate_media_set(
        self,
        identity: AvatarIdentity,
        existing: Iterable[AvatarMediaItem],
        generator: MediaGenerator,
    ) -> list[AvatarMediaItem]:
        """Generate media for every required state, one state at a time.

        Each failed (or stock / placeholder) generation is replaced by a
        reused or surrogate item; only total absence of usable media
        propagates as :class:`MediaUnavailableError`.
        """
        pool = self.usable_items(identity, existing)
        produced: list[AvatarMediaItem] = []

        for state in self._required:
            try:
                generated = await generator.generate(identity.avatar_image_url, state)
                if is_stock_placeholder(generated.video_url):
                    raise ValueError(f"Provider returned placeholder media for {state.value}")
            except Exception as exc:
                reason = str(exc) or f"Failed generating {state.value}"
                logger.warning("media.generation_failed", state=state.value, error=reason)
                item = self.substitute(state, pool, identity, reason)
            else:
                provider = generated.provider or generator.provider
                item = AvatarMediaItem(
                    state=state,
                    video_url=generated.video_url,
                    source_fingerprint=identity.fingerprint,
                    provider=provider,
                    provenance=MediaProvenance.GENERATED,
                    duration=generated.duration,
                    metadata={
                        **generated.metadata,
                        "provider": provider,
                        "provenance": MediaProvenance.GENERATED.value,
                        "avatarFingerprint": identity.fingerprint,
                    },
                )

            produced.append(item)
            if self.is_usable(item, identity):
                pool.append(item)

        logger.info(
            "media.generation_complete",
            states=[s.value for s in self._required],
            substituted=sum(1 for i in produced if i.provenance != MediaProvenance.GENERATED),
        )
        return produced
