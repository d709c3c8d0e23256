from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from mdtsync.config import load_effective_config
from mdtsync.index.discovery import discover_files


def test_unchanged_fingerprint_skips_binary_sniff(tmp_path: Path) -> None:
    target = tmp_path / "docs" / "guide.md"
    target.parent.mkdir(parents=True)
    target.write_text("# Guide\n", encoding="utf-8")
    config = load_effective_config(tmp_path)

    first = discover_files(config)
    previous = {item.relative_path: item.fingerprint for item in first.files}

    with patch("mdtsync.index.discovery.is_binary_file") as sniff_mock:
        second = discover_files(config, previous)

    assert second.files == first.files
    sniff_mock.assert_not_called()


def test_changed_file_is_sniffed_again(tmp_path: Path) -> None:
    target = tmp_path / "guide.md"
    target.write_text("v1\n", encoding="utf-8")
    config = load_effective_config(tmp_path)
    previous = {item.relative_path: item.fingerprint for item in discover_files(config).files}

    target.write_text("version two\n", encoding="utf-8")
    with patch("mdtsync.index.discovery.is_binary_file", return_value=False) as sniff_mock:
        updated = discover_files(config, previous)

    assert updated.files[0].fingerprint.size == len("version two\n")
    sniff_mock.assert_called_once()
