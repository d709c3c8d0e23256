"""Project discovery, scanning, and the incremental index cache."""

from .cache import (
    CACHE_SCHEMA_VERSION,
    CacheInspection,
    CacheTelemetry,
    ProjectIndexCache,
    ScanStats,
    cache_path,
    inspect_cache,
    load_cache,
    project_key,
    save_cache,
)
from .discovery import DiscoveryResult, discover_files, is_template_path, should_exclude
from .models import (
    ConsumerEntry,
    DiscoveredFile,
    FileFingerprint,
    FileScanResult,
    Project,
    ProviderEntry,
)
from .scanner import ScanResult, parse_file, read_normalized_text, reduce_file_results, scan_project

__all__ = [
    "CACHE_SCHEMA_VERSION",
    "CacheInspection",
    "CacheTelemetry",
    "ConsumerEntry",
    "DiscoveredFile",
    "DiscoveryResult",
    "FileFingerprint",
    "FileScanResult",
    "Project",
    "ProjectIndexCache",
    "ProviderEntry",
    "ScanResult",
    "ScanStats",
    "cache_path",
    "discover_files",
    "inspect_cache",
    "is_template_path",
    "load_cache",
    "parse_file",
    "project_key",
    "read_normalized_text",
    "reduce_file_results",
    "save_cache",
    "scan_project",
    "should_exclude",
]
