"""Tests for the command-line entrypoint."""

from __future__ import annotations

import io
import json
import sys

import pytest
import structlog
from structlog.testing import capture_logs

from healthtwin import main as cli
from healthtwin.engine.media import compute_avatar_fingerprint
from healthtwin.logger import setup_logging


@pytest.fixture(autouse=True)
def logs(monkeypatch):
    """Capture engine log events so stdout carries only the JSON result."""
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    with capture_logs() as captured:
        yield captured


def _write(tmp_path, doc) -> str:
    path = tmp_path / "input.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    return str(path)


def test_classify(tmp_path, capsys):
    path = _write(tmp_path, {"health": {"date": "2025-03-14T08:00:00Z", "sleepHours": 3}})
    cli.main(["classify", path])
    out = json.loads(capsys.readouterr().out)
    assert out["state"] == "sleepy"
    assert out["reasoning"] == "Sleep is low (3h)"


def test_project(tmp_path, capsys, logs):
    doc = {
        "health": [
            {"date": "2025-03-13T08:00:00Z", "sleepHours": 8, "steps": 10000},
            {"date": "2025-03-14T08:00:00Z", "sleepHours": 8, "steps": 9000},
        ],
        "mood": [],
    }
    cli.main(["project", _write(tmp_path, doc), "--days", "90", "--today", "2025-03-14"])
    out = json.loads(capsys.readouterr().out)
    assert out["days"] == 30
    assert out["dominant_state"] == "happy"
    assert out["analyzed_days"] == 2
    assert "trend.projection_complete" in [e["event"] for e in logs]


def test_media(tmp_path, capsys, logs):
    image = "https://cdn.example.com/avatars/u1.png"
    fp = compute_avatar_fingerprint(image)
    doc = {
        "avatarImageUrl": image,
        "animations": [
            {"stateType": s, "videoUrl": f"https://x/{s}.mp4", "generationMetadata": {"avatarFingerprint": fp}}
            for s in ("happy", "sad", "sleepy")
        ],
        "health": {"date": "2025-03-14T08:00:00Z", "sleepHours": 2},
    }
    cli.main(["media", _write(tmp_path, doc)])
    out = json.loads(capsys.readouterr().out)
    assert out["state"] == "sleepy"
    assert out["video_url"] == "https://x/sleepy.mp4"
    assert "media.resolved" in [e["event"] for e in logs]


def test_no_command_exits(capsys):
    with pytest.raises(SystemExit):
        cli.main([])


def test_setup_logging_writes_to_stderr(monkeypatch, capsys):
    stream = io.StringIO()
    monkeypatch.setattr(sys, "stderr", stream)
    try:
        setup_logging("INFO")
        structlog.get_logger("healthtwin.cli").info("cli.started", command="project")
    finally:
        structlog.reset_defaults()

    assert "cli.started" in stream.getvalue()
    assert capsys.readouterr().out == ""
