"""Detection of fenced code blocks written inside source doc comments."""

from __future__ import annotations

from dataclasses import dataclass

# Longer prefixes first so "///" is not consumed as "//".
_COMMENT_PREFIXES = ("///!", "//!", "///", "//", "##", "#", "* ", "**", "*", ";", "--")


@dataclass(slots=True, frozen=True)
class CodeFenceFilter:
    """Which fenced blocks hide their comments from scanning.

    ``enabled`` with an empty ``info_strings`` tuple skips every fence; a
    non-empty tuple skips only fences whose info string contains one of the
    listed values, so ``"ignore"`` matches `` ```rust,ignore ``.
    """

    enabled: bool = False
    info_strings: tuple[str, ...] = ()

    def should_skip(self, info_string: str) -> bool:
        if not self.enabled:
            return False
        if not self.info_strings:
            return True
        return any(value in info_string for value in self.info_strings)


def strip_comment_prefix(line: str) -> str:
    """Strip indentation plus one comment marker and one following space."""
    trimmed = line.lstrip()
    for prefix in _COMMENT_PREFIXES:
        if trimmed.startswith(prefix):
            rest = trimmed[len(prefix) :]
            return rest[1:] if rest.startswith(" ") else rest
    return trimmed


def fenced_code_ranges(text: str, fence_filter: CodeFenceFilter) -> list[tuple[int, int]]:
    """Return ``(start, end)`` offsets of fenced blocks selected by the filter."""
    ranges: list[tuple[int, int]] = []
    in_block = False
    skip_current = False
    fence_char = "`"
    fence_len = 0
    block_start = 0
    offset = 0
    for line in text.split("\n"):
        line_end = offset + len(line)
        stripped = strip_comment_prefix(line)
        if in_block:
            run = _leading_run(stripped, fence_char)
            if run >= fence_len and not stripped[run:].strip():
                if skip_current:
                    ranges.append((block_start, line_end))
                in_block = False
        else:
            backticks = _leading_run(stripped, "`")
            tildes = _leading_run(stripped, "~")
            if backticks >= 3 or tildes >= 3:
                fence_char, fence_len = ("`", backticks) if backticks >= 3 else ("~", tildes)
                in_block = True
                block_start = offset
                skip_current = fence_filter.should_skip(stripped[fence_len:].strip())
        offset = line_end + 1
    return ranges


def _leading_run(text: str, char: str) -> int:
    count = 0
    for item in text:
        if item != char:
            break
        count += 1
    return count
