"""Structured logging utilities."""

from .events import RUN_LOG_FILE_NAME, JsonlRunLogger, RunEvent, summarize_counts, utc_timestamp

__all__ = ["RUN_LOG_FILE_NAME", "JsonlRunLogger", "RunEvent", "summarize_counts", "utc_timestamp"]
