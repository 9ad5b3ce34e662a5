"""Tests for activity logging and run summaries."""

import json
import os
from datetime import datetime, timedelta

from epicrunner.tracking.activity_logger import (
    ActivityLogger,
    EventType,
    generate_run_id,
)
from epicrunner.tracking.run_summary import RunSummary, load_latest_summary, write_summary


class TestActivityLogger:
    """Test the JSONL activity log."""

    def test_log_event_writes_jsonl(self, tmp_path):
        logger = ActivityLogger("run-1", tmp_path / "activity")

        logger.log_event(EventType.RUN_START, "Run started", epic_id="EP-1")
        logger.log_event(
            EventType.ATTEMPT_END,
            "Attempt 1 ended",
            epic_id="EP-1",
            attempt=1,
            status="success",
            duration_ms=1200,
            exit_code=0,
        )

        lines = (tmp_path / "activity" / "run-1.jsonl").read_text().splitlines()
        assert len(lines) == 2
        second = json.loads(lines[1])
        assert second["event_type"] == "attempt_end"
        assert second["attempt"] == 1
        assert second["status"] == "success"
        assert second["duration_ms"] == 1200
        assert second["data"] == {"exit_code": 0}

    def test_read_events_round_trip(self, tmp_path):
        logger = ActivityLogger("run-1", tmp_path)
        logger.log_event(EventType.ABORT, "Aborted", epic_id="EP-1", threshold=3)

        events = logger.read_events()

        assert len(events) == 1
        assert events[0].event_type == EventType.ABORT
        assert events[0].run_id == "run-1"
        assert events[0].data == {"threshold": 3}

    def test_read_events_without_file(self, tmp_path):
        assert ActivityLogger("run-2", tmp_path).read_events() == []

    def test_generate_run_id(self):
        assert generate_run_id("lb-42", datetime(2026, 3, 4, 5, 6, 7)) == "lb-42-20260304-050607"


class TestRunSummary:
    """Test run summary persistence."""

    def _summary(self, run_id, outcome="exhausted"):
        start = datetime(2026, 1, 1, 9, 0, 0)
        return RunSummary(
            run_id=run_id,
            epic_id="EP-1",
            outcome=outcome,
            start_time=start,
            end_time=start + timedelta(minutes=30),
            attempts=2,
            succeeded=2,
        )

    def test_duration(self):
        assert self._summary("r").duration == 1800

    def test_write_summary(self, tmp_path):
        path = write_summary(self._summary("run-1"), tmp_path / "summaries")

        assert path == tmp_path / "summaries" / "run-1.json"
        data = json.loads(path.read_text())
        assert data["outcome"] == "exhausted"
        assert data["succeeded"] == 2

    def test_load_latest_summary(self, tmp_path):
        older = write_summary(self._summary("run-1", "aborted"), tmp_path)
        newer = write_summary(self._summary("run-2"), tmp_path)
        os.utime(older, (1_000_000, 1_000_000))
        os.utime(newer, (2_000_000, 2_000_000))

        latest = load_latest_summary(tmp_path)

        assert json.loads(latest)["run_id"] == "run-2"

    def test_load_latest_summary_empty(self, tmp_path):
        assert load_latest_summary(tmp_path) is None
        assert load_latest_summary(tmp_path / "missing") is None
