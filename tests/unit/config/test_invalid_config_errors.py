from __future__ import annotations

from pathlib import Path

import pytest

from mdtsync.config import ConfigOverrides, load_effective_config


def _write_config(root: Path, *lines: str) -> None:
    (root / "mdt.toml").write_text("\n".join(lines), encoding="utf-8")


def test_invalid_toml_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "[exclude", "patterns = 1")

    with pytest.raises(ValueError, match="not valid TOML"):
        load_effective_config(tmp_path)


def test_invalid_section_type_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, 'exclude = "not-a-table"')

    with pytest.raises(ValueError, match="section 'exclude'"):
        load_effective_config(tmp_path)


def test_non_string_pattern_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "[exclude]", "patterns = [1, 2]")

    with pytest.raises(ValueError, match="exclude.patterns"):
        load_effective_config(tmp_path)


def test_invalid_max_file_size_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, 'max_file_size = "big"')

    with pytest.raises(ValueError, match="max_file_size"):
        load_effective_config(tmp_path)


def test_padding_above_cap_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "[padding]", "before = 101")

    with pytest.raises(ValueError, match="padding.before"):
        load_effective_config(tmp_path)


def test_cache_flag_must_be_boolean(tmp_path: Path) -> None:
    _write_config(tmp_path, "[cache]", 'enabled = "yes"')

    with pytest.raises(ValueError, match="cache.enabled"):
        load_effective_config(tmp_path)


def test_override_must_be_positive(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="overrides.max_file_size"):
        load_effective_config(tmp_path, ConfigOverrides(max_file_size=0))
