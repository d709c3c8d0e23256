from __future__ import annotations

import hashlib
from pathlib import Path

from mdtsync.config import ConfigOverrides, load_effective_config
from mdtsync.diagnostics import FILE_TOO_LARGE
from mdtsync.index.discovery import discover_files, is_template_path, should_exclude


def _write(root: Path, rel: str, content: str = "text\n") -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_discovery_order_and_skip_rules(tmp_path: Path) -> None:
    (tmp_path / "mdt.toml").write_text(
        '[exclude]\npatterns = ["vendor/**", "*.draft.md"]\n', encoding="utf-8"
    )
    for rel in [
        "b.md",
        "a.md",
        "src/lib.rs",
        "notes.draft.md",
        "image.png",
        "node_modules/pkg/readme.md",
        "target/debug/gen.rs",
        ".git/hooks/readme.md",
        ".mdt/cache/readme.md",
        ".templates/shared.t.md",
        "vendor/dep/readme.md",
        "nested/mdt.toml",
        "nested/readme.md",
    ]:
        _write(tmp_path, rel)

    result = discover_files(load_effective_config(tmp_path))

    assert [item.relative_path for item in result.files] == [
        ".templates/shared.t.md",
        "a.md",
        "b.md",
        "src/lib.rs",
    ]
    assert [item.is_template for item in result.files] == [True, False, False, False]
    assert result.excluded_by_glob == 1
    assert result.diagnostics == ()


def test_include_patterns_add_extensions(tmp_path: Path) -> None:
    (tmp_path / "mdt.toml").write_text('[include]\npatterns = ["*.txt"]\n', encoding="utf-8")
    _write(tmp_path, "docs/notes.txt")
    _write(tmp_path, "docs/data.csv")

    result = discover_files(load_effective_config(tmp_path))

    assert [item.relative_path for item in result.files] == ["docs/notes.txt"]


def test_template_paths_reach_hidden_directories(tmp_path: Path) -> None:
    (tmp_path / "mdt.toml").write_text('[templates]\npaths = [".shared"]\n', encoding="utf-8")
    _write(tmp_path, ".shared/blocks.t.md")
    _write(tmp_path, ".shared/readme.md")

    result = discover_files(load_effective_config(tmp_path))

    assert [item.relative_path for item in result.files] == [".shared/blocks.t.md"]


def test_binary_and_oversized_files_are_skipped(tmp_path: Path) -> None:
    (tmp_path / "blob.md").write_bytes(b"\x00\x01binary")
    _write(tmp_path, "big.md", "x" * 64)
    _write(tmp_path, "small.md", "ok\n")

    config = load_effective_config(tmp_path, ConfigOverrides(max_file_size=32))
    result = discover_files(config)

    assert [item.relative_path for item in result.files] == ["small.md"]
    assert result.binary_excluded == 1
    assert [(item.kind, item.file, item.severity) for item in result.diagnostics] == [
        (FILE_TOO_LARGE, "big.md", "warning")
    ]


def test_truncated_utf8_at_sniff_boundary_is_text(tmp_path: Path) -> None:
    content = ("a" * 4095 + "é").encode("utf-8")
    (tmp_path / "wide.md").write_bytes(content)

    result = discover_files(load_effective_config(tmp_path))

    assert [item.relative_path for item in result.files] == ["wide.md"]


def test_verify_hash_records_content_hash(tmp_path: Path) -> None:
    _write(tmp_path, "a.md", "hello\n")

    plain = discover_files(load_effective_config(tmp_path))
    hashed = discover_files(load_effective_config(tmp_path, ConfigOverrides(verify_hash=True)))

    assert plain.files[0].fingerprint.content_hash is None
    assert hashed.files[0].fingerprint.content_hash == hashlib.sha256(b"hello\n").hexdigest()


def test_path_helpers() -> None:
    assert is_template_path("docs/shared.t.md")
    assert not is_template_path("docs/shared.md")
    assert should_exclude("build/out.md", ("build/**",))
    assert should_exclude("out.md", ("/out.md",))
    assert not should_exclude("src/out.md", ("build/**",))
