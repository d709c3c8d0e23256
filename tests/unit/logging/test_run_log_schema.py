from __future__ import annotations

import json
from pathlib import Path

from mdtsync.logging import JsonlRunLogger, RunEvent, summarize_counts, utc_timestamp


def _event(run_id: str, timestamp: str, ok: bool = True, operation: str = "check") -> RunEvent:
    return RunEvent(
        timestamp=timestamp,
        run_id=run_id,
        operation=operation,
        ok=ok,
        error_code=None if ok else "IO_ERROR",
        counts={"stale": 0},
    )


def test_run_log_writes_jsonl_schema(tmp_path: Path) -> None:
    logger = JsonlRunLogger(path=tmp_path / ".mdt" / "runs.jsonl")

    logger.append(_event("run-1", utc_timestamp()))

    lines = logger.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    event = json.loads(lines[0])
    assert set(event.keys()) == {"counts", "error_code", "ok", "operation", "run_id", "timestamp"}
    assert event["run_id"] == "run-1"
    assert event["ok"] is True
    assert event["error_code"] is None
    assert event["timestamp"].endswith("Z")


def test_read_filters_by_timestamp_and_limit(tmp_path: Path) -> None:
    logger = JsonlRunLogger(path=tmp_path / "runs.jsonl")
    for index, stamp in enumerate(
        ["2026-01-01T00:00:00.000Z", "2026-01-02T00:00:00.000Z", "2026-01-03T00:00:00.000Z"]
    ):
        logger.append(_event(f"run-{index}", stamp))
    with logger.path.open("a", encoding="utf-8") as handle:
        handle.write("not json\n\n")

    assert [item.run_id for item in logger.read()] == ["run-0", "run-1", "run-2"]
    assert [item.run_id for item in logger.read(since="2026-01-02")] == ["run-1", "run-2"]
    assert [item.run_id for item in logger.read(limit=1)] == ["run-2"]
    assert logger.read(limit=0) == []


def test_read_missing_log_is_empty(tmp_path: Path) -> None:
    assert JsonlRunLogger(path=tmp_path / "absent.jsonl").read() == []


def test_summarize_counts_keeps_integer_counters() -> None:
    summary = summarize_counts(
        {"stale": 2, "dry_run": True, "files": ["a", "b"], "label": "x"}
    )

    assert summary == {"dry_run": 1, "files_count": 2, "stale": 2}
    assert list(summary) == ["dry_run", "files_count", "stale"]


def test_read_filters_by_operation_and_skips_foreign_lines(tmp_path: Path) -> None:
    logger = JsonlRunLogger(path=tmp_path / "runs.jsonl")
    logger.append(_event("run-a", "2026-01-01T00:00:00.000Z"))
    logger.append(_event("run-b", "2026-01-02T00:00:00.000Z", operation="update"))
    with logger.path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps({"run_id": "run-c", "ok": "yes"}) + "\n")

    events = logger.read(operation="update")

    assert [item.run_id for item in events] == ["run-b"]
    assert events[0].counts == {"stale": 0}
    assert [item.run_id for item in logger.read()] == ["run-a", "run-b"]
