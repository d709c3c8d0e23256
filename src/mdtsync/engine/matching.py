"""Consumer/provider matching, staleness checks, and in-place updates."""

from __future__ import annotations

import difflib
from bisect import bisect_left
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from mdtsync.config import PaddingConfig
from mdtsync.diagnostics import (
    FILE_CHANGED,
    IO_ERROR,
    MALFORMED_BLOCK,
    MISSING_PROVIDER,
    RENDER_ERROR,
    UNDEFINED_VARIABLE,
    ProjectDiagnostic,
    diagnostic_sort_key,
    make_diagnostic,
)
from mdtsync.engine.padding import pad_content
from mdtsync.engine.render import find_undefined_variables, render_template
from mdtsync.errors import RenderError, TransformerError
from mdtsync.index.models import ConsumerEntry, Project
from mdtsync.index.scanner import folded_newline_offsets, read_source_text
from mdtsync.parsing.models import Span
from mdtsync.transformers import apply_transformers


@dataclass(slots=True, frozen=True)
class StaleEntry:
    """A consumer whose content differs from its provider's rendered output."""

    block_name: str
    file: str
    line: int
    column: int
    current_content: str
    expected_content: str
    diff: str

    def to_dict(self) -> dict[str, object]:
        return {
            "block_name": self.block_name,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "current_content": self.current_content,
            "expected_content": self.expected_content,
            "diff": self.diff,
        }


@dataclass(slots=True, frozen=True)
class CheckResult:
    """Outcome of comparing every consumer with its provider."""

    is_ok: bool
    stale: tuple[StaleEntry, ...]
    unresolved: tuple[ConsumerEntry, ...]
    diagnostics: tuple[ProjectDiagnostic, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "is_ok": self.is_ok,
            "stale": [entry.to_dict() for entry in self.stale],
            "unresolved": [
                {
                    "block_name": entry.name,
                    "file": entry.file,
                    "line": entry.line,
                    "column": entry.column,
                }
                for entry in self.unresolved
            ],
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
        }


@dataclass(slots=True, frozen=True)
class FileUpdate:
    """New whole-file content plus the rewritten content spans in it."""

    path: str
    full_path: Path
    content: str
    spans: tuple[Span, ...]


@dataclass(slots=True, frozen=True)
class UpdateResult:
    """Files to rewrite, how many consumer blocks change, and how many could not."""

    updated_count: int
    updated_files: dict[str, FileUpdate] = field(default_factory=dict)
    diagnostics: tuple[ProjectDiagnostic, ...] = ()
    skipped_count: int = 0

    @property
    def is_ok(self) -> bool:
        return self.skipped_count == 0

    def to_dict(self) -> dict[str, object]:
        return {
            "is_ok": self.is_ok,
            "updated_count": self.updated_count,
            "updated_files": sorted(self.updated_files),
            "skipped_count": self.skipped_count,
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
        }


@dataclass(slots=True, frozen=True)
class _Expectation:
    consumer: ConsumerEntry
    expected: str


@dataclass(slots=True)
class _Plan:
    fresh_or_stale: list[_Expectation] = field(default_factory=list)
    unresolved: list[ConsumerEntry] = field(default_factory=list)
    diagnostics: list[ProjectDiagnostic] = field(default_factory=list)
    render_errors: int = 0


def check(
    project: Project,
    data: Mapping[str, object] | None = None,
    padding: PaddingConfig | None = None,
) -> CheckResult:
    """Report stale and unresolved consumers without touching any file."""
    plan = _plan(project, data, padding)
    stale: list[StaleEntry] = []
    for item in plan.fresh_or_stale:
        consumer = item.consumer
        if consumer.current_content == item.expected:
            continue
        stale.append(
            StaleEntry(
                block_name=consumer.name,
                file=consumer.file,
                line=consumer.line,
                column=consumer.column,
                current_content=consumer.current_content,
                expected_content=item.expected,
                diff=unified_diff(consumer.current_content, item.expected, consumer.file),
            )
        )
    return CheckResult(
        is_ok=not stale and plan.render_errors == 0,
        stale=tuple(stale),
        unresolved=tuple(plan.unresolved),
        diagnostics=_merge_diagnostics(project, plan.diagnostics),
    )


def compute_updates(
    project: Project,
    data: Mapping[str, object] | None = None,
    padding: PaddingConfig | None = None,
) -> UpdateResult:
    """Compute rewritten file contents for every stale consumer.

    Each file is read whole and stale spans are spliced in ascending order.
    Bytes outside the spans are copied as stored; inserted text takes the
    line ending of the line its block closes on. A span whose text no longer
    matches what the scan saw is left alone.
    """
    plan = _plan(project, data, padding)
    diagnostics = list(plan.diagnostics)
    by_file: dict[str, list[_Expectation]] = {}
    for item in plan.fresh_or_stale:
        if item.consumer.current_content != item.expected:
            by_file.setdefault(item.consumer.file, []).append(item)
    consumers_by_file: dict[str, list[ConsumerEntry]] = {}
    for consumer in project.consumers:
        consumers_by_file.setdefault(consumer.file, []).append(consumer)

    updated_files: dict[str, FileUpdate] = {}
    updated_count = 0
    skipped_count = plan.render_errors
    for rel in sorted(by_file):
        full_path = project.root / rel
        try:
            raw = read_source_text(full_path)
        except (OSError, UnicodeDecodeError) as exc:
            diagnostics.append(make_diagnostic(IO_ERROR, rel, 1, 1, f"Cannot read file: {exc}"))
            skipped_count += len(by_file[rel])
            continue

        text = raw.replace("\r\n", "\n")
        folded = folded_newline_offsets(raw)
        pieces: list[str] = []
        spans: list[Span] = []
        cursor = 0
        raw_cursor = 0
        written = 0
        for item in sorted(by_file[rel], key=lambda entry: entry.consumer.content_span.start):
            consumer = item.consumer
            span = consumer.content_span
            crossing = _interleaved_names(consumer, consumers_by_file[rel])
            if crossing:
                diagnostics.append(
                    _consumer_diagnostic(
                        MALFORMED_BLOCK,
                        consumer,
                        f"Block '{consumer.name}' interleaves with "
                        f"{', '.join(repr(name) for name in crossing)}; left unchanged.",
                    )
                )
                skipped_count += 1
                continue
            if span.start < cursor:
                diagnostics.append(
                    _consumer_diagnostic(
                        MALFORMED_BLOCK,
                        consumer,
                        f"Block '{consumer.name}' overlaps a block updated earlier in this "
                        "file; left unchanged.",
                    )
                )
                skipped_count += 1
                continue
            if text[span.start : span.end] != consumer.current_content:
                diagnostics.append(
                    _consumer_diagnostic(
                        FILE_CHANGED,
                        consumer,
                        f"Block '{consumer.name}' changed on disk since the scan; left unchanged.",
                    )
                )
                skipped_count += 1
                continue
            raw_start = span.start + bisect_left(folded, span.start)
            raw_end = span.end + bisect_left(folded, span.end)
            replacement = _match_line_ending(item.expected, raw, raw_end)
            kept = raw[raw_cursor:raw_start]
            pieces.append(kept)
            pieces.append(replacement)
            written += len(kept)
            spans.append(Span(written, written + len(replacement)))
            written += len(replacement)
            cursor = span.end
            raw_cursor = raw_end

        if not spans:
            continue
        pieces.append(raw[raw_cursor:])
        content = "".join(pieces)
        updated_files[rel] = FileUpdate(
            path=rel,
            full_path=full_path,
            content=content,
            spans=tuple(spans),
        )
        updated_count += len(spans)

    return UpdateResult(
        updated_count=updated_count,
        updated_files=updated_files,
        diagnostics=_merge_diagnostics(project, diagnostics),
        skipped_count=skipped_count,
    )


def write_updates(result: UpdateResult) -> None:
    """Write every updated file whole; raises OSError on the first failure."""
    for rel in sorted(result.updated_files):
        update_entry = result.updated_files[rel]
        with update_entry.full_path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(update_entry.content)


def update(
    project: Project,
    data: Mapping[str, object] | None = None,
    padding: PaddingConfig | None = None,
    *,
    dry_run: bool = False,
) -> UpdateResult:
    """Compute updates and write them unless ``dry_run``; counts are identical."""
    result = compute_updates(project, data, padding)
    if not dry_run:
        write_updates(result)
    return result


def unified_diff(current: str, expected: str, path: str) -> str:
    """Return a unified diff from current to expected consumer content."""
    return "".join(
        difflib.unified_diff(
            _diff_lines(current),
            _diff_lines(expected),
            fromfile=f"{path} (current)",
            tofile=f"{path} (expected)",
        )
    )


def _diff_lines(text: str) -> list[str]:
    lines = text.splitlines(keepends=True)
    if lines and not lines[-1].endswith("\n"):
        lines[-1] = f"{lines[-1]}\n"
    return lines


def _match_line_ending(expected: str, raw: str, raw_end: int) -> str:
    newline_at = raw.find("\n", raw_end)
    if newline_at == -1:
        crlf = "\r\n" in raw
    else:
        crlf = newline_at > 0 and raw[newline_at - 1] == "\r"
    return expected.replace("\n", "\r\n") if crlf else expected


def _plan(
    project: Project,
    data: Mapping[str, object] | None,
    padding: PaddingConfig | None,
) -> _Plan:
    plan = _Plan()
    rendered: dict[str, str | RenderError] = {}
    for consumer in project.consumers:
        provider = project.providers.get(consumer.name)
        if provider is None:
            plan.unresolved.append(consumer)
            plan.diagnostics.append(
                _consumer_diagnostic(
                    MISSING_PROVIDER,
                    consumer,
                    f"No provider named '{consumer.name}' exists.",
                )
            )
            continue

        if provider.name not in rendered:
            try:
                rendered[provider.name] = render_template(provider.content, data)
            except RenderError as exc:
                rendered[provider.name] = exc
            for name in find_undefined_variables(provider.content, data):
                plan.diagnostics.append(
                    make_diagnostic(
                        UNDEFINED_VARIABLE,
                        provider.file,
                        provider.block.line,
                        provider.block.column,
                        f"Provider '{provider.name}' references undefined variable '{name}'.",
                    )
                )

        source = rendered[provider.name]
        if isinstance(source, RenderError):
            plan.render_errors += 1
            plan.diagnostics.append(_consumer_diagnostic(RENDER_ERROR, consumer, source.message))
            continue
        try:
            expected = apply_transformers(source, consumer.transformers, data)
        except TransformerError as exc:
            plan.render_errors += 1
            plan.diagnostics.append(
                _consumer_diagnostic(
                    RENDER_ERROR,
                    consumer,
                    f"Block '{consumer.name}' cannot be rendered: {exc.message}",
                )
            )
            continue
        if padding is not None:
            expected = pad_content(expected, consumer.current_content, padding)
        plan.fresh_or_stale.append(_Expectation(consumer=consumer, expected=expected))
    return plan


def _interleaved_names(consumer: ConsumerEntry, others: list[ConsumerEntry]) -> list[str]:
    """Names of blocks with exactly one of their two tags inside this block's content."""
    span = consumer.content_span
    names: list[str] = []
    for other in others:
        if other is consumer:
            continue
        open_inside = span.start <= other.block.tag_span.start < span.end
        close_inside = span.start <= other.block.close_span.start < span.end
        if open_inside != close_inside:
            names.append(other.name)
    return sorted(set(names))


def _consumer_diagnostic(kind: str, consumer: ConsumerEntry, message: str) -> ProjectDiagnostic:
    return make_diagnostic(kind, consumer.file, consumer.line, consumer.column, message)


def _merge_diagnostics(
    project: Project, extra: list[ProjectDiagnostic]
) -> tuple[ProjectDiagnostic, ...]:
    return tuple(sorted([*project.diagnostics, *extra], key=diagnostic_sort_key))
