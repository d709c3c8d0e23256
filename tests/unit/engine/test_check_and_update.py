from __future__ import annotations

from pathlib import Path

from mdtsync.config import PaddingConfig
from mdtsync.diagnostics import FILE_CHANGED, MALFORMED_BLOCK, MISSING_PROVIDER, RENDER_ERROR
from mdtsync.engine import check, compute_updates, update, write_updates
from mdtsync.index import scan_project

TEMPLATE = "<!-- {@greeting} -->\n\nHello from mdt!\n\n<!-- {/greeting} -->\n"


def _write(root: Path, rel: str, content: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_fresh_consumer_is_ok(tmp_path: Path) -> None:
    _write(tmp_path, "docs/shared.t.md", TEMPLATE)
    _write(tmp_path, "README.md", TEMPLATE.replace("{@", "{="))

    result = check(scan_project(tmp_path, use_cache=False).project)

    assert result.is_ok is True
    assert result.stale == ()
    assert result.unresolved == ()


def test_stale_consumer_reports_diff(tmp_path: Path) -> None:
    _write(tmp_path, "docs/shared.t.md", TEMPLATE)
    _write(tmp_path, "README.md", "<!-- {=greeting} -->\n\nold\n\n<!-- {/greeting} -->\n")

    result = check(scan_project(tmp_path, use_cache=False).project)

    assert result.is_ok is False
    assert len(result.stale) == 1
    entry = result.stale[0]
    assert (entry.block_name, entry.file) == ("greeting", "README.md")
    assert (entry.line, entry.column) == (1, 1)
    assert entry.current_content == "\n\nold\n\n"
    assert entry.expected_content == "\n\nHello from mdt!\n\n"
    assert "-old\n" in entry.diff
    assert "+Hello from mdt!\n" in entry.diff


def test_missing_provider_is_unresolved_not_stale(tmp_path: Path) -> None:
    _write(tmp_path, "README.md", "<!-- {=orphan} -->\nx\n<!-- {/orphan} -->\n")

    result = check(scan_project(tmp_path, use_cache=False).project)

    assert result.is_ok is True
    assert result.stale == ()
    assert [consumer.name for consumer in result.unresolved] == ["orphan"]
    assert [item.kind for item in result.diagnostics] == [MISSING_PROVIDER]


def test_unknown_transformer_blocks_only_that_consumer(tmp_path: Path) -> None:
    _write(tmp_path, "docs/shared.t.md", TEMPLATE)
    _write(
        tmp_path,
        "README.md",
        "<!-- {=greeting|shout} -->\nx\n<!-- {/greeting} -->\n\n"
        "<!-- {=greeting|trim} -->\nx\n<!-- {/greeting} -->\n",
    )

    project = scan_project(tmp_path, use_cache=False).project
    result = check(project)

    assert result.is_ok is False
    assert [entry.line for entry in result.stale] == [5]
    assert RENDER_ERROR in [item.kind for item in result.diagnostics]

    updated = update(project)
    assert updated.updated_count == 1
    assert updated.skipped_count == 1
    assert updated.is_ok is False
    assert (tmp_path / "README.md").read_text(encoding="utf-8") == (
        "<!-- {=greeting|shout} -->\nx\n<!-- {/greeting} -->\n\n"
        "<!-- {=greeting|trim} -->Hello from mdt!<!-- {/greeting} -->\n"
    )


def test_compute_updates_does_not_write(tmp_path: Path) -> None:
    _write(tmp_path, "docs/shared.t.md", TEMPLATE)
    readme = _write(tmp_path, "README.md", "<!-- {=greeting} -->old<!-- {/greeting} -->\n")

    result = compute_updates(scan_project(tmp_path, use_cache=False).project)

    assert result.updated_count == 1
    assert sorted(result.updated_files) == ["README.md"]
    assert readme.read_text(encoding="utf-8") == "<!-- {=greeting} -->old<!-- {/greeting} -->\n"

    write_updates(result)
    assert readme.read_text(encoding="utf-8") == (
        "<!-- {=greeting} -->\n\nHello from mdt!\n\n<!-- {/greeting} -->\n"
    )


def test_updated_spans_point_at_new_content(tmp_path: Path) -> None:
    _write(tmp_path, "docs/shared.t.md", TEMPLATE)
    _write(
        tmp_path,
        "README.md",
        "<!-- {=greeting|trim} -->a<!-- {/greeting} -->\n"
        "<!-- {=greeting|trim|wrap:\"*\"} -->b<!-- {/greeting} -->\n",
    )

    result = compute_updates(scan_project(tmp_path, use_cache=False).project)

    file_update = result.updated_files["README.md"]
    pieces = [file_update.content[span.start : span.end] for span in file_update.spans]
    assert pieces == ["Hello from mdt!", "*Hello from mdt!*"]


def test_padding_applies_to_expected_content(tmp_path: Path) -> None:
    _write(tmp_path, "docs/shared.t.md", TEMPLATE)
    _write(tmp_path, "README.md", "<!-- {=greeting|trim} -->\nold\n<!-- {/greeting} -->\n")
    project = scan_project(tmp_path, use_cache=False).project

    result = check(project, padding=PaddingConfig(before=0, after=0))

    assert result.stale[0].expected_content == "\nHello from mdt!\n"


def test_file_changed_after_scan_is_left_alone(tmp_path: Path) -> None:
    _write(tmp_path, "docs/shared.t.md", TEMPLATE)
    readme = _write(tmp_path, "README.md", "<!-- {=greeting} -->old<!-- {/greeting} -->\n")
    project = scan_project(tmp_path, use_cache=False).project
    readme.write_text("<!-- {=greeting} -->edited<!-- {/greeting} -->\n", encoding="utf-8")

    result = compute_updates(project)

    assert result.updated_count == 0
    assert result.skipped_count == 1
    assert [item.kind for item in result.diagnostics] == [FILE_CHANGED]


def test_interleaved_consumers_are_not_rewritten(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "docs/shared.t.md",
        "<!-- {@a} -->A<!-- {/a} -->\n<!-- {@b} -->B<!-- {/b} -->\n",
    )
    original = (
        "<!-- {=a} -->\n"
        "one\n"
        "<!-- {=b} -->\n"
        "two\n"
        "<!-- {/a} -->\n"
        "three\n"
        "<!-- {/b} -->\n"
    )
    readme = _write(tmp_path, "README.md", original)

    result = update(scan_project(tmp_path, use_cache=False).project)

    assert result.updated_count == 0
    assert result.skipped_count == 2
    assert [item.kind for item in result.diagnostics] == [MALFORMED_BLOCK, MALFORMED_BLOCK]
    assert readme.read_text(encoding="utf-8") == original
