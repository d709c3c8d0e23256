"""Raw ``<!-- ... -->`` scanning for source files and other plain text."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath

from mdtsync.extractors.base import CommentNode, LineTable, scan_comments
from mdtsync.extractors.fences import CodeFenceFilter, fenced_code_ranges


@dataclass(slots=True, frozen=True)
class RawCommentExtractor:
    """Find comments by scanning text, optionally hiding fenced code examples."""

    name: str = "raw"
    fence_filter: CodeFenceFilter = field(default_factory=CodeFenceFilter)

    def supports_path(self, path: str) -> bool:
        return bool(PurePosixPath(path).name)

    def extract(self, text: str, lines: LineTable) -> list[CommentNode]:
        nodes = scan_comments(text, lines)
        if not self.fence_filter.enabled or not nodes:
            return nodes
        ranges = fenced_code_ranges(text, self.fence_filter)
        if not ranges:
            return nodes
        return [node for node in nodes if not _inside_any(node.start_offset, ranges)]


def _inside_any(offset: int, ranges: list[tuple[int, int]]) -> bool:
    return any(start <= offset < end for start, end in ranges)
