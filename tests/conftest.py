"""Shared pytest fixtures."""

from __future__ import annotations

import random
from datetime import UTC, datetime

import pytest

from healthtwin.engine.media import AvatarMediaBinder
from healthtwin.engine.models import AvatarIdentity, AvatarMediaItem, MediaProvenance
from healthtwin.models import LIVE_STATES, PREBUILT_STATES, SignalTuple, State


@pytest.fixture
def today() -> datetime:
    return datetime(2025, 3, 14, 15, 30, tzinfo=UTC)


@pytest.fixture
def seeded_random():
    return random.Random(42).random


@pytest.fixture
def identity() -> AvatarIdentity:
    return AvatarIdentity.from_image_url("https://cdn.example.com/avatars/u1-v2.png")


@pytest.fixture
def old_identity() -> AvatarIdentity:
    return AvatarIdentity.from_image_url("https://cdn.example.com/avatars/u1-v1.png")


@pytest.fixture
def live_binder() -> AvatarMediaBinder:
    return AvatarMediaBinder(required_states=LIVE_STATES)


@pytest.fixture
def prebuilt_binder() -> AvatarMediaBinder:
    return AvatarMediaBinder(required_states=PREBUILT_STATES)


@pytest.fixture
def bound_items(identity: AvatarIdentity) -> list[AvatarMediaItem]:
    """One generated item per live state, bound to the current avatar."""
    return [
        AvatarMediaItem(
            state=state,
            video_url=f"https://media.example.com/{state.value}.mp4",
            source_fingerprint=identity.fingerprint,
            provider="nanobana_google",
            provenance=MediaProvenance.GENERATED,
        )
        for state in LIVE_STATES
    ]


@pytest.fixture
def healthy_day() -> SignalTuple:
    return SignalTuple(sleep_hours=8, heart_rate=64, steps=10000, water_litres=2.5, energy_score=80)
