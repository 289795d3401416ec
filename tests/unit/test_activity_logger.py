"""Unit tests for the JSONL activity logger."""

from __future__ import annotations

import json

from app_logging.activity_logger import ActivityLogger


def _records(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_events_are_appended_as_json_lines(tmp_path):
    logger = ActivityLogger("supervisor", log_path=tmp_path / "activity.jsonl")

    logger.info("analysis_started", run_id="run-1", repo="acme/shop@main")
    logger.error("analysis_failed", exc=ValueError("boom"), run_id="run-1")

    records = _records(tmp_path / "activity.jsonl")
    assert [r["event"] for r in records] == ["analysis_started", "analysis_failed"]
    assert records[0]["agent"] == "supervisor"
    assert records[0]["repo"] == "acme/shop@main"
    assert records[1]["level"] == "ERROR"
    assert records[1]["error_type"] == "ValueError"
    assert records[1]["error_message"] == "boom"


def test_bound_context_is_stamped_on_every_event(tmp_path):
    base = ActivityLogger("verification", log_path=tmp_path / "activity.jsonl")
    log = base.bind(run_id="run-7", repo="acme/shop@dev")

    log.warning("verification_degraded", hypotheses=2)
    base.info("unbound_event", run_id=None)

    bound, unbound = _records(tmp_path / "activity.jsonl")
    assert bound["run_id"] == "run-7"
    assert bound["hypotheses"] == 2
    assert bound["level"] == "WARNING"
    assert "run_id" not in unbound
