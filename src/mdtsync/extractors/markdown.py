"""Markdown comment extraction backed by markdown-it-py.

Only comments that CommonMark treats as HTML (``html_block`` and
``html_inline`` tokens) are returned, so ``<!-- {=x} -->`` written inside a
fenced block or an inline code span is left alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from markdown_it import MarkdownIt
from markdown_it.token import Token as MarkdownToken

from mdtsync.extractors.base import (
    COMMENT_OPEN,
    CommentNode,
    LineTable,
    comment_at,
    scan_comments,
)

MARKDOWN_EXTENSIONS = frozenset({".md", ".mdx", ".markdown"})


@dataclass(slots=True, frozen=True)
class _HtmlRegion:
    start_line: int
    end_line: int
    # None accepts every comment in the region (html_block); otherwise the
    # normalized values of html_inline comments reported by the parser.
    inline_values: tuple[str, ...] | None


class MarkdownCommentExtractor:
    """Resolve HTML comment regions with markdown-it, then scan their raw lines."""

    name = "markdown"

    def __init__(self) -> None:
        self._parser = MarkdownIt("commonmark")

    def supports_path(self, path: str) -> bool:
        return PurePosixPath(path).suffix.lower() in MARKDOWN_EXTENSIONS

    def extract(self, text: str, lines: LineTable) -> list[CommentNode]:
        if COMMENT_OPEN not in text:
            return []
        nodes: list[CommentNode] = []
        last_end = -1
        for region in _html_regions(self._parser.parse(text)):
            start = lines.line_start(region.start_line)
            end = lines.line_start(region.end_line)
            if region.inline_values is None:
                found = scan_comments(text, lines, start, end)
            else:
                found = _scan_inline(text, lines, start, end, region.inline_values)
            for node in found:
                if node.start_offset >= last_end:
                    nodes.append(node)
                    last_end = node.end_offset
        return nodes


def _html_regions(tokens: list[MarkdownToken]) -> list[_HtmlRegion]:
    regions: list[_HtmlRegion] = []
    for token in tokens:
        if token.map is None:
            continue
        if token.type == "html_block" and COMMENT_OPEN in token.content:
            regions.append(_HtmlRegion(token.map[0], token.map[1], None))
        elif token.type == "inline" and token.children:
            values = tuple(
                _normalize(child.content)
                for child in token.children
                if child.type == "html_inline" and child.content.startswith(COMMENT_OPEN)
            )
            if values:
                regions.append(_HtmlRegion(token.map[0], token.map[1], values))
    return sorted(regions, key=lambda region: region.start_line)


def _scan_inline(
    text: str, lines: LineTable, start: int, end: int, values: tuple[str, ...]
) -> list[CommentNode]:
    """Match the parser's html_inline comments, in order, against the raw lines.

    A ``<!--`` that does not open the next expected comment (one inside a
    code span, say) is stepped over rather than paired with a later ``-->``.
    """
    selected: list[CommentNode] = []
    pending = list(values)
    cursor = start
    while pending and cursor < end:
        open_at = text.find(COMMENT_OPEN, cursor, end)
        if open_at < 0:
            break
        node = comment_at(text, lines, open_at, end)
        if node is None:
            break
        if _normalize(node.value) == pending[0]:
            pending.pop(0)
            selected.append(node)
            cursor = node.end_offset
        else:
            cursor = open_at + len(COMMENT_OPEN)
    return selected


def _normalize(value: str) -> str:
    return " ".join(value.split())
