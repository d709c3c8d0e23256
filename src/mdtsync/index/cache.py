"""Persistent per-file scan cache keyed by fingerprints.

The cache lives at ``<root>/.mdt/cache/index.json``. It is read once at the
start of a scan and written once at the end through a temp file and
``os.replace``. A cache that cannot be read, does not parse, has another
schema version, or was built under other scan settings is ignored.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from mdtsync.config import DATA_DIR_NAME, ScanConfig
from mdtsync.index.models import FileFingerprint, FileScanResult
from mdtsync.logging import utc_timestamp

CACHE_SCHEMA_VERSION = 1
CACHE_FILE_NAME = "index.json"


@dataclass(slots=True, frozen=True)
class ScanStats:
    """Reuse counts for one scan."""

    timestamp: str
    full_project_hit: bool
    reused_files: int
    reparsed_files: int
    total_files: int

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp,
            "full_project_hit": self.full_project_hit,
            "reused_files": self.reused_files,
            "reparsed_files": self.reparsed_files,
            "total_files": self.total_files,
        }

    @classmethod
    def from_dict(cls, payload: object) -> ScanStats | None:
        if not isinstance(payload, dict):
            return None
        timestamp = payload.get("timestamp")
        full_project_hit = payload.get("full_project_hit")
        counts = [payload.get(key) for key in ("reused_files", "reparsed_files", "total_files")]
        if not isinstance(timestamp, str) or not isinstance(full_project_hit, bool):
            return None
        if not all(isinstance(value, int) for value in counts):
            return None
        return cls(
            timestamp=timestamp,
            full_project_hit=full_project_hit,
            reused_files=int(counts[0]),
            reparsed_files=int(counts[1]),
            total_files=int(counts[2]),
        )


@dataclass(slots=True)
class CacheTelemetry:
    """Cumulative counters carried across scans; never affects results."""

    scan_count: int = 0
    full_project_hit_count: int = 0
    reused_file_count_total: int = 0
    reparsed_file_count_total: int = 0
    last_scan: ScanStats | None = None

    def record(self, stats: ScanStats) -> None:
        self.scan_count += 1
        if stats.full_project_hit:
            self.full_project_hit_count += 1
        self.reused_file_count_total += stats.reused_files
        self.reparsed_file_count_total += stats.reparsed_files
        self.last_scan = stats

    def to_dict(self) -> dict[str, object]:
        return {
            "scan_count": self.scan_count,
            "full_project_hit_count": self.full_project_hit_count,
            "reused_file_count_total": self.reused_file_count_total,
            "reparsed_file_count_total": self.reparsed_file_count_total,
            "last_scan": self.last_scan.to_dict() if self.last_scan is not None else None,
        }

    @classmethod
    def from_dict(cls, payload: object) -> CacheTelemetry:
        """Rebuild telemetry, resetting any counter that is missing or malformed."""
        telemetry = cls()
        if not isinstance(payload, dict):
            return telemetry
        for key in (
            "scan_count",
            "full_project_hit_count",
            "reused_file_count_total",
            "reparsed_file_count_total",
        ):
            value = payload.get(key)
            if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                setattr(telemetry, key, value)
        telemetry.last_scan = ScanStats.from_dict(payload.get("last_scan"))
        return telemetry


@dataclass(slots=True)
class ProjectIndexCache:
    """Fingerprints and parse results for every file of the last scan."""

    project_key: str
    files: dict[str, FileFingerprint] = field(default_factory=dict)
    file_data: dict[str, FileScanResult] = field(default_factory=dict)
    telemetry: CacheTelemetry = field(default_factory=CacheTelemetry)
    schema_version: int = CACHE_SCHEMA_VERSION

    def reusable(self, path: str, fingerprint: FileFingerprint) -> FileScanResult | None:
        """Return the cached result when the stored fingerprint still matches."""
        if self.files.get(path) != fingerprint:
            return None
        return self.file_data.get(path)

    def to_dict(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "project_key": self.project_key,
            "files": {path: self.files[path].to_dict() for path in sorted(self.files)},
            "file_data": {path: self.file_data[path].to_dict() for path in sorted(self.file_data)},
            "telemetry": self.telemetry.to_dict(),
        }


@dataclass(slots=True, frozen=True)
class CacheInspection:
    """Read-only report on the cache file."""

    path: str
    exists: bool
    readable: bool
    valid: bool
    schema_version: int | None
    schema_supported: bool
    project_key_matches: bool
    hash_verification_enabled: bool
    file_count: int
    telemetry: dict[str, object] | None

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "exists": self.exists,
            "readable": self.readable,
            "valid": self.valid,
            "schema_version": self.schema_version,
            "schema_supported": self.schema_supported,
            "project_key_matches": self.project_key_matches,
            "hash_verification_enabled": self.hash_verification_enabled,
            "file_count": self.file_count,
            "telemetry": self.telemetry,
        }


def cache_path(root: Path) -> Path:
    return root.resolve() / DATA_DIR_NAME / "cache" / CACHE_FILE_NAME


def project_key(config: ScanConfig) -> str:
    """Cache key for a config under the current schema version."""
    return config.project_key(CACHE_SCHEMA_VERSION)


def load_cache(root: Path, key: str) -> ProjectIndexCache | None:
    """Load the cache, or None when it is missing, corrupt, or stale."""
    payload = _read_payload(cache_path(root))
    if payload is None:
        return None
    if payload.get("schema_version") != CACHE_SCHEMA_VERSION:
        return None
    if payload.get("project_key") != key:
        return None
    return _decode_cache(payload, key)


def save_cache(root: Path, cache: ProjectIndexCache) -> bool:
    """Write the cache atomically; failures leave no temp file and return False."""
    path = cache_path(root)
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=".index-",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            json.dump(cache.to_dict(), handle, sort_keys=True)
            handle.write("\n")
        os.replace(tmp_name, path)
        return True
    except OSError:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        return False


def inspect_cache(config: ScanConfig) -> CacheInspection:
    """Report cache health without modifying anything on disk."""
    path = cache_path(config.root)
    exists = path.is_file()
    readable = False
    payload: dict[str, object] | None = None
    if exists:
        try:
            raw = path.read_text(encoding="utf-8")
            readable = True
            decoded = json.loads(raw)
            payload = decoded if isinstance(decoded, dict) else None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            payload = None

    schema_version: int | None = None
    if payload is not None and isinstance(payload.get("schema_version"), int):
        schema_version = int(payload["schema_version"])
    schema_supported = schema_version == CACHE_SCHEMA_VERSION
    key = project_key(config)
    key_matches = payload is not None and payload.get("project_key") == key
    decoded_cache: ProjectIndexCache | None = None
    if payload is not None and schema_supported and key_matches:
        decoded_cache = _decode_cache(payload, key)
    telemetry: dict[str, object] | None = None
    if payload is not None:
        telemetry = CacheTelemetry.from_dict(payload.get("telemetry")).to_dict()
    return CacheInspection(
        path=str(path),
        exists=exists,
        readable=readable,
        valid=decoded_cache is not None,
        schema_version=schema_version,
        schema_supported=schema_supported,
        project_key_matches=key_matches,
        hash_verification_enabled=config.cache.verify_hash,
        file_count=len(decoded_cache.files) if decoded_cache is not None else 0,
        telemetry=telemetry,
    )


def _read_payload(path: Path) -> dict[str, object] | None:
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def _decode_cache(payload: dict[str, object], key: str) -> ProjectIndexCache | None:
    raw_files = payload.get("files")
    raw_data = payload.get("file_data")
    if not isinstance(raw_files, dict) or not isinstance(raw_data, dict):
        return None
    files: dict[str, FileFingerprint] = {}
    for path, raw in raw_files.items():
        fingerprint = FileFingerprint.from_dict(raw)
        if fingerprint is None:
            return None
        files[path] = fingerprint
    file_data: dict[str, FileScanResult] = {}
    for path, raw in raw_data.items():
        result = FileScanResult.from_dict(raw)
        if result is None or result.path != path:
            return None
        file_data[path] = result
    return ProjectIndexCache(
        project_key=key,
        files=files,
        file_data=file_data,
        telemetry=CacheTelemetry.from_dict(payload.get("telemetry")),
    )


def new_scan_stats(*, full_project_hit: bool, reused: int, reparsed: int, total: int) -> ScanStats:
    return ScanStats(
        timestamp=utc_timestamp(),
        full_project_hit=full_project_hit,
        reused_files=reused,
        reparsed_files=reparsed,
        total_files=total,
    )
