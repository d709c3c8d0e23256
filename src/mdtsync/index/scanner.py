"""Project scan orchestration: discover, parse or reuse, then reduce."""

from __future__ import annotations

import os
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from mdtsync.config import ScanConfig, load_effective_config
from mdtsync.diagnostics import (
    DUPLICATE_PROVIDER,
    IO_ERROR,
    UNUSED_PROVIDER,
    ProjectDiagnostic,
    diagnostic_sort_key,
    make_diagnostic,
)
from mdtsync.errors import ParseError, ProjectRootError
from mdtsync.extractors import ExtractorRegistry, LineTable, build_extractor_registry
from mdtsync.index.cache import (
    CacheTelemetry,
    ProjectIndexCache,
    ScanStats,
    load_cache,
    new_scan_stats,
    project_key,
    save_cache,
)
from mdtsync.index.discovery import discover_files
from mdtsync.index.models import (
    ConsumerEntry,
    DiscoveredFile,
    FileScanResult,
    Project,
    ProviderEntry,
)
from mdtsync.parsing.models import CONSUMER, PROVIDER
from mdtsync.parsing.parser import LENIENT, STRICT, parse_document


@dataclass(slots=True, frozen=True)
class ScanResult:
    """A scanned project plus cache reuse statistics for this scan."""

    project: Project
    stats: ScanStats
    telemetry: CacheTelemetry
    cache_used: bool
    cache_written: bool


def read_source_text(path: Path) -> str:
    """Read UTF-8 text exactly as stored, line endings included."""
    with path.open("r", encoding="utf-8", newline="") as handle:
        return handle.read()


def read_normalized_text(path: Path) -> tuple[str, bool]:
    """Read UTF-8 text with ``\\r\\n`` folded to ``\\n``; report whether CRLF was seen."""
    raw = read_source_text(path)
    if "\r\n" not in raw:
        return raw, False
    return raw.replace("\r\n", "\n"), True


def folded_newline_offsets(raw: str) -> list[int]:
    """Offsets in the folded text of every ``\\n`` that was ``\\r\\n`` in ``raw``."""
    offsets: list[int] = []
    at = raw.find("\r\n")
    while at != -1:
        offsets.append(at - len(offsets))
        at = raw.find("\r\n", at + 2)
    return offsets


def parse_file(
    file: DiscoveredFile,
    config: ScanConfig,
    registry: ExtractorRegistry | None = None,
) -> FileScanResult:
    """Parse one file; every failure is recovered here as a diagnostic.

    Template files are parsed strictly and contribute only providers. Other
    files are parsed leniently and contribute only consumers.
    """
    rel = file.relative_path
    try:
        text, _ = read_normalized_text(file.full_path)
    except (OSError, UnicodeDecodeError) as exc:
        return FileScanResult(
            path=rel,
            diagnostics=(make_diagnostic(IO_ERROR, rel, 1, 1, f"Cannot read file: {exc}"),),
        )

    policy = STRICT if file.is_template else LENIENT
    try:
        outcome = parse_document(rel, text, policy, registry)
    except ParseError as exc:
        line, column = LineTable(text).position(exc.offset)
        return FileScanResult(
            path=rel,
            diagnostics=(make_diagnostic(exc.code, rel, line, column, exc.message),),
        )

    excluded = set(config.exclude.blocks)
    providers: list[ProviderEntry] = []
    consumers: list[ConsumerEntry] = []
    for block in outcome.blocks:
        if block.name in excluded:
            continue
        content = text[block.content_span.start : block.content_span.end]
        if file.is_template and block.kind == PROVIDER:
            providers.append(ProviderEntry(name=block.name, file=rel, content=content, block=block))
        elif not file.is_template and block.kind == CONSUMER:
            consumers.append(
                ConsumerEntry(
                    name=block.name,
                    file=rel,
                    transformers=block.transformers,
                    content_span=block.content_span,
                    current_content=content,
                    block=block,
                )
            )
    return FileScanResult(
        path=rel,
        providers=tuple(providers),
        consumers=tuple(consumers),
        diagnostics=outcome.diagnostics,
    )


def reduce_file_results(
    root: Path,
    results: Sequence[FileScanResult],
    extra_diagnostics: Sequence[ProjectDiagnostic] = (),
) -> Project:
    """Fold per-file results into one project in lexicographic path order.

    The first provider seen for a name wins; later ones are reported as
    duplicates. Providers no consumer references are reported as unused.
    """
    project = Project(root=root)
    diagnostics: list[ProjectDiagnostic] = list(extra_diagnostics)
    ordered = sorted(results, key=lambda item: item.path)
    for result in ordered:
        diagnostics.extend(result.diagnostics)
        for provider in result.providers:
            existing = project.providers.get(provider.name)
            if existing is not None:
                diagnostics.append(
                    make_diagnostic(
                        DUPLICATE_PROVIDER,
                        provider.file,
                        provider.block.line,
                        provider.block.column,
                        f"Provider '{provider.name}' is already defined in {existing.file}; "
                        "this definition is ignored.",
                    )
                )
                continue
            project.providers[provider.name] = provider
        project.consumers.extend(result.consumers)

    referenced = {consumer.name for consumer in project.consumers}
    for name in sorted(project.providers):
        if name in referenced:
            continue
        provider = project.providers[name]
        diagnostics.append(
            make_diagnostic(
                UNUSED_PROVIDER,
                provider.file,
                provider.block.line,
                provider.block.column,
                f"Provider '{name}' has no consumers.",
            )
        )

    project.diagnostics = sorted(diagnostics, key=diagnostic_sort_key)
    project.files = tuple(result.path for result in ordered)
    return project


def scan_project(
    root: Path,
    config: ScanConfig | None = None,
    *,
    workers: int | None = None,
    use_cache: bool = True,
) -> ScanResult:
    """Scan a project tree, reusing cached results for unchanged files."""
    effective = config if config is not None else load_effective_config(root)
    _ensure_readable_root(effective.root)

    cache_enabled = use_cache and effective.cache.enabled
    key = project_key(effective)
    previous = load_cache(effective.root, key) if cache_enabled else None

    discovery = discover_files(effective, previous.files if previous is not None else None)
    registry = build_extractor_registry(effective.exclude.code_fences)

    by_path: dict[str, FileScanResult] = {}
    pending: list[DiscoveredFile] = []
    for file in discovery.files:
        cached = (
            previous.reusable(file.relative_path, file.fingerprint)
            if previous is not None
            else None
        )
        if cached is not None:
            by_path[file.relative_path] = cached
            continue
        pending.append(file)

    for result in _parse_pending(pending, effective, registry, workers):
        by_path[result.path] = result

    results = [by_path[file.relative_path] for file in discovery.files]
    project = reduce_file_results(effective.root, results, discovery.diagnostics)

    reused = len(discovery.files) - len(pending)
    full_project_hit = (
        previous is not None
        and not pending
        and set(previous.files) == {file.relative_path for file in discovery.files}
    )
    stats = new_scan_stats(
        full_project_hit=full_project_hit,
        reused=reused,
        reparsed=len(pending),
        total=len(discovery.files),
    )
    telemetry = previous.telemetry if previous is not None else CacheTelemetry()
    if not cache_enabled:
        telemetry = CacheTelemetry()
    telemetry.record(stats)

    cache_written = False
    if cache_enabled:
        cache = ProjectIndexCache(
            project_key=key,
            files={file.relative_path: file.fingerprint for file in discovery.files},
            file_data={result.path: result for result in results},
            telemetry=telemetry,
        )
        cache_written = save_cache(effective.root, cache)

    return ScanResult(
        project=project,
        stats=stats,
        telemetry=telemetry,
        cache_used=previous is not None,
        cache_written=cache_written,
    )


def _parse_pending(
    pending: list[DiscoveredFile],
    config: ScanConfig,
    registry: ExtractorRegistry,
    workers: int | None,
) -> list[FileScanResult]:
    if workers is not None and workers < 1:
        raise ValueError("workers must be a positive integer.")
    if not pending:
        return []
    if workers is None or workers == 1 or len(pending) == 1:
        return [parse_file(file, config, registry) for file in pending]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda file: parse_file(file, config, registry), pending))


def _ensure_readable_root(root: Path) -> None:
    if not root.is_dir():
        raise ProjectRootError(f"Project root is not a directory: {root}")
    try:
        with os.scandir(root):
            pass
    except OSError as exc:
        raise ProjectRootError(f"Cannot read project root {root}: {exc}") from exc
