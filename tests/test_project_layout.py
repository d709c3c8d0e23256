from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/mdtsync/__init__.py",
        "src/mdtsync/cli.py",
        "src/mdtsync/config.py",
        "src/mdtsync/transformers.py",
        "src/mdtsync/parsing/__init__.py",
        "src/mdtsync/extractors/__init__.py",
        "src/mdtsync/index/__init__.py",
        "src/mdtsync/engine/__init__.py",
        "src/mdtsync/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
