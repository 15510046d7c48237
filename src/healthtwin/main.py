"""Command-line entrypoint — run the engine against JSON documents."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from pydantic import BaseModel

from healthtwin.advisor import LLMAdviceProvider, WeeklyAdviceService
from healthtwin.config import get_settings
from healthtwin.engine import AvatarIdentity, AvatarMediaBinder, classify, normalize_signal
from healthtwin.engine.media import media_item_from_record
from healthtwin.engine.trend import project_window
from healthtwin.logger import setup_logging
from healthtwin.models import FUTURE_STATES, HealthRecord, MoodRecord, SignalTuple


def _load(path: str) -> dict[str, Any]:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def _emit(model: BaseModel) -> None:
    print(model.model_dump_json(indent=2))


def _records(doc: dict[str, Any]) -> tuple[list[HealthRecord], list[MoodRecord]]:
    health = [HealthRecord.model_validate(r) for r in doc.get("health", [])]
    mood = [MoodRecord.model_validate(r) for r in doc.get("mood", [])]
    return health, mood


# ── Commands ──────────────────────────────────────────────────


def _cmd_classify(doc: dict[str, Any]) -> None:
    settings = get_settings()
    health = HealthRecord.model_validate(doc["health"]) if doc.get("health") else None
    mood = MoodRecord.model_validate(doc["mood"]) if doc.get("mood") else None
    signal = normalize_signal(health, mood) or SignalTuple()
    _emit(classify(signal, settings.required_states))


def _cmd_project(doc: dict[str, Any], days: int | None, today: str | None) -> None:
    settings = get_settings()
    health, mood = _records(doc)
    _emit(project_window(
        health,
        mood,
        days=settings.clamp_window_days(days),
        today=today,
        universe=FUTURE_STATES,
    ))


def _cmd_media(doc: dict[str, Any], requested: str | None) -> None:
    settings = get_settings()
    binder = AvatarMediaBinder(settings.required_states, settings.trusted_media_providers)
    image_url = doc.get("avatarImageUrl")
    identity = AvatarIdentity.from_image_url(image_url) if image_url else None
    items = [i for i in map(media_item_from_record, doc.get("animations", [])) if i is not None]

    health = HealthRecord.model_validate(doc["health"]) if doc.get("health") else None
    mood = MoodRecord.model_validate(doc["mood"]) if doc.get("mood") else None
    signal = normalize_signal(health, mood)
    inferred = classify(signal, settings.required_states) if signal is not None else None

    _emit(binder.resolve(
        identity,
        items,
        requested_state=requested,
        inferred_state=inferred.state if inferred else None,
        inferred_reasoning=inferred.reasoning if inferred else "",
    ))


async def _cmd_advice(doc: dict[str, Any], user_id: str) -> None:
    settings = get_settings()
    provider = LLMAdviceProvider() if settings.openai_api_key else None
    service = WeeklyAdviceService(provider)
    health, mood = _records(doc)
    try:
        _emit(await service.analyse(user_id, health, mood))
    finally:
        await service.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="healthtwin",
        description="Behavioural & wellness inference engine.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── classify ──────────────────────────────────────────────
    p = sub.add_parser("classify", help="Classify one day's health/mood record.")
    p.add_argument("input", help="JSON file with 'health' and/or 'mood' objects ('-' for stdin).")

    # ── project ───────────────────────────────────────────────
    p = sub.add_parser("project", help="Project the future state over a window.")
    p.add_argument("input", help="JSON file with 'health' and 'mood' lists.")
    p.add_argument("--days", type=int, default=None)
    p.add_argument("--today", default=None, help="Window end day (YYYY-MM-DD).")

    # ── media ─────────────────────────────────────────────────
    p = sub.add_parser("media", help="Resolve avatar media for the current state.")
    p.add_argument("input", help="JSON file with 'avatarImageUrl' and 'animations'.")
    p.add_argument("--state", default=None, help="Explicitly requested state.")

    # ── advice ────────────────────────────────────────────────
    p = sub.add_parser("advice", help="Weekly wellness analysis.")
    p.add_argument("input", help="JSON file with 'health' and 'mood' lists.")
    p.add_argument("--user-id", default="local")

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    doc = _load(args.input)
    if args.command == "classify":
        _cmd_classify(doc)
    elif args.command == "project":
        _cmd_project(doc, args.days, args.today)
    elif args.command == "media":
        _cmd_media(doc, args.state)
    elif args.command == "advice":
        asyncio.run(_cmd_advice(doc, args.user_id))


if __name__ == "__main__":
    main()
