"""Non-fatal findings collected while scanning and matching a project."""

from __future__ import annotations

from dataclasses import dataclass

MISSING_CLOSING_TAG = "MISSING_CLOSING_TAG"
UNMATCHED_CLOSING_TAG = "UNMATCHED_CLOSING_TAG"
MALFORMED_BLOCK = "MALFORMED_BLOCK"
INVALID_TOKEN_SEQUENCE = "INVALID_TOKEN_SEQUENCE"
DUPLICATE_PROVIDER = "DUPLICATE_PROVIDER"
MISSING_PROVIDER = "MISSING_PROVIDER"
UNKNOWN_TRANSFORMER = "UNKNOWN_TRANSFORMER"
INVALID_TRANSFORMER_ARGS = "INVALID_TRANSFORMER_ARGS"
RENDER_ERROR = "RENDER_ERROR"
UNDEFINED_VARIABLE = "UNDEFINED_VARIABLE"
UNUSED_PROVIDER = "UNUSED_PROVIDER"
FILE_TOO_LARGE = "FILE_TOO_LARGE"
IO_ERROR = "IO_ERROR"
FILE_CHANGED = "FILE_CHANGED"

WARNING_KINDS = frozenset({UNDEFINED_VARIABLE, UNUSED_PROVIDER, FILE_TOO_LARGE})


@dataclass(slots=True, frozen=True)
class ProjectDiagnostic:
    """One finding attached to a file position; never aborts a scan."""

    kind: str
    file: str
    line: int
    column: int
    message: str
    severity: str = "error"

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready mapping."""
        return {
            "kind": self.kind,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "severity": self.severity,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> ProjectDiagnostic | None:
        """Rebuild a diagnostic from cached JSON, or None when malformed."""
        kind = payload.get("kind")
        file = payload.get("file")
        line = payload.get("line")
        column = payload.get("column")
        message = payload.get("message")
        severity = payload.get("severity")
        if not isinstance(kind, str) or not isinstance(file, str):
            return None
        if not isinstance(line, int) or not isinstance(column, int):
            return None
        if not isinstance(message, str) or not isinstance(severity, str):
            return None
        return cls(
            kind=kind,
            file=file,
            line=line,
            column=column,
            message=message,
            severity=severity,
        )


def make_diagnostic(
    kind: str, file: str, line: int, column: int, message: str
) -> ProjectDiagnostic:
    """Build a diagnostic with the default severity for its kind."""
    severity = "warning" if kind in WARNING_KINDS else "error"
    return ProjectDiagnostic(
        kind=kind,
        file=file,
        line=line,
        column=column,
        message=message,
        severity=severity,
    )


def diagnostic_sort_key(diagnostic: ProjectDiagnostic) -> tuple[str, int, int, str, str]:
    """Return deterministic sort key for diagnostics."""
    return (
        diagnostic.file,
        diagnostic.line,
        diagnostic.column,
        diagnostic.kind,
        diagnostic.message,
    )
