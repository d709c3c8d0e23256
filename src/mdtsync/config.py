"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import hashlib
import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from mdtsync.extractors.fences import CodeFenceFilter

CONFIG_FILE_CANDIDATES = ("mdt.toml", ".mdt.toml", ".config/mdt.toml")
DATA_DIR_NAME = ".mdt"
TEMPLATE_SUFFIX = ".t.md"
CACHE_VERIFY_HASH_ENV = "MDT_CACHE_VERIFY_HASH"

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_FILE_SIZE_CAP = 1024 * 1024 * 1024
MAX_PADDING_LINES = 100

SCANNABLE_EXTENSIONS = (
    ".md",
    ".mdx",
    ".markdown",
    ".rs",
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".py",
    ".go",
    ".java",
    ".kt",
    ".swift",
    ".c",
    ".cpp",
    ".h",
    ".cs",
)
SKIPPED_DIR_NAMES = ("node_modules", "target")
ALLOWED_HIDDEN_DIR_NAMES = (".templates",)

_TRUTHY_ENV_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(slots=True, frozen=True)
class PaddingConfig:
    """Blank lines between tags and content; ``None`` keeps content inline."""

    before: int | None = 1
    after: int | None = 1


@dataclass(slots=True, frozen=True)
class ExcludeConfig:
    """Files, block names, and fenced code examples left out of scanning."""

    patterns: tuple[str, ...] = ()
    blocks: tuple[str, ...] = ()
    code_fences: CodeFenceFilter = field(default_factory=CodeFenceFilter)


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """Index cache toggles."""

    enabled: bool = True
    verify_hash: bool = False


@dataclass(slots=True, frozen=True)
class ScanConfig:
    """Fully merged project configuration."""

    root: Path
    data_dir: Path
    config_path: Path | None
    max_file_size: int
    exclude: ExcludeConfig
    include_patterns: tuple[str, ...]
    template_paths: tuple[str, ...]
    padding: PaddingConfig | None
    cache: CacheConfig

    def scan_settings(self) -> dict[str, object]:
        """Return the settings that change what a scan produces."""
        return {
            "max_file_size": self.max_file_size,
            "exclude": {
                "patterns": list(self.exclude.patterns),
                "blocks": list(self.exclude.blocks),
                "markdown_codeblocks": {
                    "enabled": self.exclude.code_fences.enabled,
                    "info_strings": list(self.exclude.code_fences.info_strings),
                },
            },
            "include": {"patterns": list(self.include_patterns)},
            "templates": {"paths": list(self.template_paths)},
            "verify_hash": self.cache.verify_hash,
        }

    def project_key(self, schema_version: int) -> str:
        """Stable cache key for these scan settings under a cache schema version."""
        payload = {"schema_version": schema_version, "settings": self.scan_settings()}
        encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()


@dataclass(slots=True, frozen=True)
class ConfigOverrides:
    """Optional command-line overrides applied at highest precedence."""

    cache_enabled: bool | None = None
    verify_hash: bool | None = None
    max_file_size: int | None = None


def default_config(root: Path) -> ScanConfig:
    """Build default config for a given project root."""
    resolved_root = root.resolve()
    return ScanConfig(
        root=resolved_root,
        data_dir=resolved_root / DATA_DIR_NAME,
        config_path=None,
        max_file_size=DEFAULT_MAX_FILE_SIZE,
        exclude=ExcludeConfig(),
        include_patterns=(),
        template_paths=(),
        padding=None,
        cache=CacheConfig(),
    )


def resolve_config_path(root: Path) -> Path | None:
    """Return the first existing config file candidate under ``root``."""
    for candidate in CONFIG_FILE_CANDIDATES:
        path = root / candidate
        if path.is_file():
            return path
    return None


def load_config_file(path: Path) -> dict[str, object]:
    """Load one TOML config file."""
    with path.open("rb") as handle:
        try:
            payload = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(f"{path.name} is not valid TOML: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"{path.name} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field_name}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field_name}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _code_fence_filter(value: object) -> CodeFenceFilter:
    if isinstance(value, bool):
        return CodeFenceFilter(enabled=value)
    if isinstance(value, str):
        return CodeFenceFilter(enabled=True, info_strings=(value,))
    if isinstance(value, list):
        info_strings = _tuple_of_strings(value, "exclude", "markdown_codeblocks")
        return CodeFenceFilter(enabled=bool(info_strings), info_strings=info_strings)
    raise ValueError(
        "Config field 'exclude.markdown_codeblocks' must be a boolean, string, or list of strings."
    )


def _padding_value(value: object, name: str) -> int | None:
    if isinstance(value, bool):
        return 1 if value else None
    if not isinstance(value, int) or value < 0:
        raise ValueError(f"Config field '{name}' must be false, true, or a non-negative integer.")
    if value > MAX_PADDING_LINES:
        raise ValueError(f"Config field '{name}' must be <= {MAX_PADDING_LINES}.")
    return value


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def merge_config(
    base: ScanConfig, payload: dict[str, object], overrides: ConfigOverrides
) -> ScanConfig:
    """Merge defaults, the project config file, then overrides."""
    exclude_payload = _get_table(payload, "exclude")
    include_payload = _get_table(payload, "include")
    templates_payload = _get_table(payload, "templates")
    cache_payload = _get_table(payload, "cache")

    max_file_size = _optional_positive_int_with_cap(
        payload.get("max_file_size"),
        "max_file_size",
        base.max_file_size,
        MAX_FILE_SIZE_CAP,
    )

    exclude = base.exclude
    if exclude_payload:
        exclude = ExcludeConfig(
            patterns=(
                _tuple_of_strings(exclude_payload["patterns"], "exclude", "patterns")
                if "patterns" in exclude_payload
                else base.exclude.patterns
            ),
            blocks=(
                _tuple_of_strings(exclude_payload["blocks"], "exclude", "blocks")
                if "blocks" in exclude_payload
                else base.exclude.blocks
            ),
            code_fences=(
                _code_fence_filter(exclude_payload["markdown_codeblocks"])
                if "markdown_codeblocks" in exclude_payload
                else base.exclude.code_fences
            ),
        )

    include_patterns = base.include_patterns
    if "patterns" in include_payload:
        include_patterns = _tuple_of_strings(include_payload["patterns"], "include", "patterns")

    template_paths = base.template_paths
    if "paths" in templates_payload:
        template_paths = _tuple_of_strings(templates_payload["paths"], "templates", "paths")

    padding = base.padding
    if "padding" in payload:
        padding_payload = _get_table(payload, "padding")
        padding = PaddingConfig(
            before=_padding_value(padding_payload.get("before", 1), "padding.before"),
            after=_padding_value(padding_payload.get("after", 1), "padding.after"),
        )

    cache = CacheConfig(
        enabled=_optional_bool(cache_payload.get("enabled"), "cache.enabled", base.cache.enabled),
        verify_hash=_optional_bool(
            cache_payload.get("verify_hash"), "cache.verify_hash", base.cache.verify_hash
        ),
    )

    merged = ScanConfig(
        root=base.root,
        data_dir=base.data_dir,
        config_path=base.config_path,
        max_file_size=max_file_size,
        exclude=exclude,
        include_patterns=include_patterns,
        template_paths=template_paths,
        padding=padding,
        cache=cache,
    )
    return apply_overrides(merged, overrides)


def apply_overrides(config: ScanConfig, overrides: ConfigOverrides) -> ScanConfig:
    """Apply command-line overrides at highest precedence."""
    max_file_size = _optional_positive_int_with_cap(
        overrides.max_file_size,
        "overrides.max_file_size",
        config.max_file_size,
        MAX_FILE_SIZE_CAP,
    )
    cache = CacheConfig(
        enabled=(
            overrides.cache_enabled
            if overrides.cache_enabled is not None
            else config.cache.enabled
        ),
        verify_hash=(
            overrides.verify_hash if overrides.verify_hash is not None else config.cache.verify_hash
        ),
    )
    return ScanConfig(
        root=config.root,
        data_dir=config.data_dir,
        config_path=config.config_path,
        max_file_size=max_file_size,
        exclude=config.exclude,
        include_patterns=config.include_patterns,
        template_paths=config.template_paths,
        padding=config.padding,
        cache=cache,
    )


def load_effective_config(root: Path, overrides: ConfigOverrides | None = None) -> ScanConfig:
    """Load effective config using merge order defaults -> file -> env -> overrides."""
    base = default_config(root)
    config_path = resolve_config_path(base.root)
    payload: dict[str, object] = {}
    if config_path is not None:
        payload = load_config_file(config_path)
        base = ScanConfig(
            root=base.root,
            data_dir=base.data_dir,
            config_path=config_path,
            max_file_size=base.max_file_size,
            exclude=base.exclude,
            include_patterns=base.include_patterns,
            template_paths=base.template_paths,
            padding=base.padding,
            cache=base.cache,
        )
    effective = overrides or ConfigOverrides()
    if effective.verify_hash is None and env_flag(CACHE_VERIFY_HASH_ENV):
        effective = ConfigOverrides(
            cache_enabled=effective.cache_enabled,
            verify_hash=True,
            max_file_size=effective.max_file_size,
        )
    return merge_config(base, payload, effective)


def env_flag(name: str) -> bool:
    """Return True when an environment variable holds a truthy flag value."""
    return os.environ.get(name, "").strip().lower() in _TRUTHY_ENV_VALUES


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
