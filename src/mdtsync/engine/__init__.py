"""Rendering, staleness checks, and in-place consumer updates."""

from .matching import (
    CheckResult,
    FileUpdate,
    StaleEntry,
    UpdateResult,
    check,
    compute_updates,
    unified_diff,
    update,
    write_updates,
)
from .padding import pad_content
from .render import find_undefined_variables, has_template_syntax, render_template

__all__ = [
    "CheckResult",
    "FileUpdate",
    "StaleEntry",
    "UpdateResult",
    "check",
    "compute_updates",
    "find_undefined_variables",
    "has_template_syntax",
    "pad_content",
    "render_template",
    "unified_diff",
    "update",
    "write_updates",
]
