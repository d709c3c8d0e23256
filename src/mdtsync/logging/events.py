"""Run log: one JSON line per ``mdt`` command under ``<root>/.mdt/runs.jsonl``."""

from __future__ import annotations

import json
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

RUN_LOG_FILE_NAME = "runs.jsonl"


@dataclass(slots=True, frozen=True)
class RunEvent:
    """Outcome and counters of a single command run."""

    timestamp: str
    run_id: str
    operation: str
    ok: bool
    error_code: str | None = None
    counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp,
            "run_id": self.run_id,
            "operation": self.operation,
            "ok": self.ok,
            "error_code": self.error_code,
            "counts": dict(self.counts),
        }

    @classmethod
    def from_dict(cls, payload: object) -> RunEvent | None:
        if not isinstance(payload, dict):
            return None
        text_fields = [payload.get(key) for key in ("timestamp", "run_id", "operation")]
        if not all(isinstance(value, str) for value in text_fields):
            return None
        ok = payload.get("ok")
        error_code = payload.get("error_code")
        counts = payload.get("counts", {})
        if not isinstance(ok, bool):
            return None
        if error_code is not None and not isinstance(error_code, str):
            return None
        if not isinstance(counts, dict):
            return None
        return cls(
            timestamp=str(text_fields[0]),
            run_id=str(text_fields[1]),
            operation=str(text_fields[2]),
            ok=ok,
            error_code=error_code,
            counts={
                str(key): value
                for key, value in counts.items()
                if isinstance(value, int) and not isinstance(value, bool)
            },
        )


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def summarize_counts(counts: dict[str, object]) -> dict[str, int]:
    """Reduce mixed result counters to integers in sorted key order.

    Booleans become 0/1 and sized collections contribute ``<key>_count``;
    anything else is dropped.
    """
    summary: dict[str, int] = {}
    for key in sorted(counts):
        value = counts[key]
        if isinstance(value, (list, tuple, dict)):
            summary[f"{key}_count"] = len(value)
        elif isinstance(value, int):
            summary[key] = int(value)
    return summary


class JsonlRunLogger:
    """Append-only JSONL run log with a bounded tail reader."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: RunEvent) -> None:
        """Append one event as a single sorted-key JSON line."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(event.to_dict(), sort_keys=True))
            handle.write("\n")

    def read(
        self,
        since: str | None = None,
        limit: int = 50,
        operation: str | None = None,
    ) -> list[RunEvent]:
        """Return up to ``limit`` most recent events, oldest first.

        Blank, corrupt, or foreign lines are skipped. ``since`` is an inclusive
        ISO-8601 lower bound compared as text.
        """
        if limit < 1 or not self._path.is_file():
            return []
        tail: deque[RunEvent] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8") as handle:
            for raw in handle:
                event = _decode_line(raw)
                if event is None:
                    continue
                if since is not None and event.timestamp < since:
                    continue
                if operation is not None and event.operation != operation:
                    continue
                tail.append(event)
        return list(tail)


def _decode_line(raw: str) -> RunEvent | None:
    text = raw.strip()
    if not text:
        return None
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return None
    return RunEvent.from_dict(payload)
