"""Keep shared documentation blocks in sync across a project."""

from .config import ConfigOverrides, PaddingConfig, ScanConfig, load_effective_config
from .diagnostics import ProjectDiagnostic
from .engine import (
    CheckResult,
    StaleEntry,
    UpdateResult,
    check,
    compute_updates,
    update,
    write_updates,
)
from .errors import MdtError, ParseError, ProjectRootError, RenderError, TransformerError
from .index import Project, ScanResult, inspect_cache, scan_project

__all__ = [
    "CheckResult",
    "ConfigOverrides",
    "MdtError",
    "PaddingConfig",
    "ParseError",
    "Project",
    "ProjectDiagnostic",
    "ProjectRootError",
    "RenderError",
    "ScanConfig",
    "ScanResult",
    "StaleEntry",
    "TransformerError",
    "UpdateResult",
    "check",
    "compute_updates",
    "inspect_cache",
    "load_effective_config",
    "scan_project",
    "update",
    "write_updates",
]
