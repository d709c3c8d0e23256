from __future__ import annotations

from mdtsync.extractors import (
    CodeFenceFilter,
    LineTable,
    RawCommentExtractor,
    build_extractor_registry,
)
from mdtsync.extractors.fences import strip_comment_prefix

DOC_COMMENT = (
    "/// ```rust,ignore\n"
    "/// <!-- {=example} -->\n"
    "/// ```\n"
    "/// <!-- {=live} -->\n"
)


def _values(extractor: RawCommentExtractor, text: str) -> list[str]:
    return [node.value for node in extractor.extract(text, LineTable(text))]


def test_raw_extractor_returns_all_comments_by_default() -> None:
    assert _values(RawCommentExtractor(), DOC_COMMENT) == [
        "<!-- {=example} -->",
        "<!-- {=live} -->",
    ]


def test_fence_filter_matches_info_string_substring() -> None:
    extractor = RawCommentExtractor(
        fence_filter=CodeFenceFilter(enabled=True, info_strings=("ignore",))
    )

    assert _values(extractor, DOC_COMMENT) == ["<!-- {=live} -->"]


def test_fence_filter_leaves_unlisted_fences_alone() -> None:
    extractor = RawCommentExtractor(
        fence_filter=CodeFenceFilter(enabled=True, info_strings=("text",))
    )

    assert len(_values(extractor, DOC_COMMENT)) == 2


def test_enabled_filter_without_values_skips_every_fence() -> None:
    fence_filter = CodeFenceFilter(enabled=True)

    assert fence_filter.should_skip("")
    assert fence_filter.should_skip("python")
    assert not CodeFenceFilter().should_skip("python")


def test_strip_comment_prefix_prefers_longest_marker() -> None:
    assert strip_comment_prefix("    /// text") == "text"
    assert strip_comment_prefix("//! text") == "text"
    assert strip_comment_prefix("# heading") == "heading"
    assert strip_comment_prefix(" * item") == "item"
    assert strip_comment_prefix("plain") == "plain"


def test_registry_falls_back_to_raw_extractor() -> None:
    registry = build_extractor_registry()

    assert registry.names() == ("markdown", "raw")
    assert registry.select("README.md").name == "markdown"
    assert registry.select("src/lib.rs").name == "raw"
