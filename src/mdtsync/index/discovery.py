"""Deterministic file discovery for project scans."""

from __future__ import annotations

import fnmatch
import hashlib
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from mdtsync.config import (
    ALLOWED_HIDDEN_DIR_NAMES,
    CONFIG_FILE_CANDIDATES,
    SCANNABLE_EXTENSIONS,
    SKIPPED_DIR_NAMES,
    TEMPLATE_SUFFIX,
    ScanConfig,
)
from mdtsync.diagnostics import FILE_TOO_LARGE, ProjectDiagnostic, make_diagnostic
from mdtsync.index.models import DiscoveredFile, FileFingerprint

_BINARY_SNIFF_BYTES = 4096


@dataclass(slots=True, frozen=True)
class DiscoveryResult:
    """Files to scan in path order plus diagnostics for skipped files."""

    files: tuple[DiscoveredFile, ...]
    diagnostics: tuple[ProjectDiagnostic, ...]
    excluded_by_glob: int
    binary_excluded: int


@dataclass(slots=True, frozen=True)
class _CandidateFile:
    relative_path: str
    full_path: Path
    size: int
    mtime_ns: int


def discover_files(
    config: ScanConfig,
    previous: Mapping[str, FileFingerprint] | None = None,
) -> DiscoveryResult:
    """Discover scannable text files with deterministic ordering.

    Files whose size and mtime match ``previous`` skip the binary sniff.
    """
    root = config.root
    candidates: dict[str, _CandidateFile] = {}
    excluded_by_glob = 0
    for walk_root, templates_only in _walk_roots(config):
        found, excluded = _discover_candidates(
            root=root, start=walk_root, config=config, templates_only=templates_only
        )
        excluded_by_glob += excluded
        for candidate in found:
            candidates.setdefault(candidate.relative_path, candidate)

    prior = previous or {}
    files: list[DiscoveredFile] = []
    diagnostics: list[ProjectDiagnostic] = []
    binary_excluded = 0
    for rel in sorted(candidates):
        candidate = candidates[rel]
        if candidate.size > config.max_file_size:
            diagnostics.append(
                make_diagnostic(
                    FILE_TOO_LARGE,
                    rel,
                    1,
                    1,
                    f"File is {candidate.size} bytes, larger than max_file_size "
                    f"({config.max_file_size}); skipped.",
                )
            )
            continue
        before = prior.get(rel)
        unchanged = (
            before is not None
            and before.size == candidate.size
            and before.mtime_ns == candidate.mtime_ns
        )
        try:
            if not unchanged and is_binary_file(candidate.full_path):
                binary_excluded += 1
                continue
            content_hash = sha256_file(candidate.full_path) if config.cache.verify_hash else None
        except OSError:
            # Unreadable files are reported by the scanner when it opens them.
            content_hash = None
        files.append(
            DiscoveredFile(
                relative_path=rel,
                full_path=candidate.full_path,
                fingerprint=FileFingerprint(
                    size=candidate.size,
                    mtime_ns=candidate.mtime_ns,
                    content_hash=content_hash,
                ),
                is_template=is_template_path(rel),
            )
        )
    return DiscoveryResult(
        files=tuple(files),
        diagnostics=tuple(diagnostics),
        excluded_by_glob=excluded_by_glob,
        binary_excluded=binary_excluded,
    )


def is_template_path(relative_path: str) -> bool:
    """Return True for provider template files such as ``docs/shared.t.md``."""
    return relative_path.endswith(TEMPLATE_SUFFIX)


def should_exclude(relative_path: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a path matches configured exclude globs."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in exclude_globs
    )


def is_scannable(relative_path: str, include_patterns: tuple[str, ...]) -> bool:
    """Return True for known text extensions, templates, and include globs."""
    if is_template_path(relative_path):
        return True
    if Path(relative_path).suffix.lower() in SCANNABLE_EXTENSIONS:
        return True
    return bool(include_patterns) and should_exclude(relative_path, include_patterns)


def _walk_roots(config: ScanConfig) -> list[tuple[Path, bool]]:
    roots: list[tuple[Path, bool]] = [(config.root, False)]
    for raw in config.template_paths:
        path = (config.root / raw).resolve()
        if not path.is_dir() or not path.is_relative_to(config.root):
            continue
        roots.append((path, True))
    return roots


def _is_nested_project(path: Path) -> bool:
    return any((path / candidate).is_file() for candidate in CONFIG_FILE_CANDIDATES)


def _skip_directory(name: str, relative: str, full_path: Path, config: ScanConfig) -> bool:
    if name.startswith(".") and name not in ALLOWED_HIDDEN_DIR_NAMES:
        return True
    if name in SKIPPED_DIR_NAMES:
        return True
    if full_path == config.data_dir:
        return True
    if should_exclude(relative, config.exclude.patterns) or should_exclude(
        f"{relative}/", config.exclude.patterns
    ):
        return True
    return _is_nested_project(full_path)


def _discover_candidates(
    *,
    root: Path,
    start: Path,
    config: ScanConfig,
    templates_only: bool,
) -> tuple[list[_CandidateFile], int]:
    """Walk a tree deterministically, pruning skipped directories."""
    candidates: list[_CandidateFile] = []
    excluded_by_glob = 0
    stack: list[Path] = [start]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if not _skip_directory(entry.name, relative, full_path, config):
                    stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if should_exclude(relative, config.exclude.patterns):
                excluded_by_glob += 1
                continue
            if templates_only and not is_template_path(relative):
                continue
            if not is_scannable(relative, config.include_patterns):
                continue
            try:
                stat = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            candidates.append(
                _CandidateFile(
                    relative_path=relative,
                    full_path=full_path,
                    size=stat.st_size,
                    mtime_ns=stat.st_mtime_ns,
                )
            )
    return candidates, excluded_by_glob


def sha256_file(path: Path) -> str:
    """Compute SHA-256 hash in deterministic chunked reads."""
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        while True:
            chunk = handle.read(1024 * 128)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()


def is_binary_file(path: Path) -> bool:
    """Use deterministic content sniffing to exclude binary files."""
    with path.open("rb") as handle:
        sample = handle.read(_BINARY_SNIFF_BYTES)
    if b"\x00" in sample:
        return True
    try:
        sample.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multi-byte character cut off by the sniff window is still text.
        truncated = len(sample) == _BINARY_SNIFF_BYTES and exc.start >= len(sample) - 3
        return not truncated
    return False
