"""Comment extractor protocol, comment records, and offset-to-position lookup."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Protocol

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"


@dataclass(slots=True, frozen=True)
class CommentNode:
    """Raw ``<!-- ... -->`` text with its offsets and 1-indexed positions."""

    value: str
    start_offset: int
    end_offset: int
    start_line: int
    start_column: int
    end_line: int
    end_column: int


class LineTable:
    """Sorted line-start offsets for O(log n) offset to (line, column) lookups.

    Built once per file in a single pass over the text.
    """

    __slots__ = ("_line_starts", "_length")

    def __init__(self, text: str) -> None:
        starts = [0]
        index = text.find("\n")
        while index >= 0:
            starts.append(index + 1)
            index = text.find("\n", index + 1)
        self._line_starts = starts
        self._length = len(text)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_start(self, line_index: int) -> int:
        """Return the offset of a 0-based line, or the text length past the end."""
        if line_index >= len(self._line_starts):
            return self._length
        return self._line_starts[line_index]

    def position(self, offset: int) -> tuple[int, int]:
        """Return the 1-indexed ``(line, column)`` for a character offset."""
        line_index = bisect_right(self._line_starts, offset) - 1
        if line_index < 0:
            line_index = 0
        return line_index + 1, offset - self._line_starts[line_index] + 1


def comment_at(
    text: str, lines: LineTable, open_at: int, stop: int | None = None
) -> CommentNode | None:
    """Return the comment opened at ``open_at``, or None when it is unterminated."""
    limit = len(text) if stop is None else stop
    close_at = text.find(COMMENT_CLOSE, open_at + len(COMMENT_OPEN), limit)
    if close_at < 0:
        return None
    close_end = close_at + len(COMMENT_CLOSE)
    start_line, start_column = lines.position(open_at)
    end_line, end_column = lines.position(close_end)
    return CommentNode(
        value=text[open_at:close_end],
        start_offset=open_at,
        end_offset=close_end,
        start_line=start_line,
        start_column=start_column,
        end_line=end_line,
        end_column=end_column,
    )


def scan_comments(
    text: str, lines: LineTable, start: int = 0, end: int | None = None
) -> list[CommentNode]:
    """Find ``<!--`` ... ``-->`` pairs in ``text[start:end]``.

    An unterminated ``<!--`` ends the scan.
    """
    stop = len(text) if end is None else end
    nodes: list[CommentNode] = []
    cursor = start
    while cursor < stop:
        open_at = text.find(COMMENT_OPEN, cursor, stop)
        if open_at < 0:
            break
        node = comment_at(text, lines, open_at, stop)
        if node is None:
            break
        nodes.append(node)
        cursor = node.end_offset
    return nodes


class CommentExtractor(Protocol):
    """Protocol implemented by comment extraction strategies."""

    name: str

    def supports_path(self, path: str) -> bool:
        """Return True when the extractor handles a file path."""

    def extract(self, text: str, lines: LineTable) -> list[CommentNode]:
        """Return comment nodes in ascending offset order."""
