"""Extractor registry with deterministic selection behavior."""

from __future__ import annotations

from dataclasses import dataclass, field

from mdtsync.extractors.base import CommentExtractor
from mdtsync.extractors.fences import CodeFenceFilter
from mdtsync.extractors.markdown import MarkdownCommentExtractor
from mdtsync.extractors.raw import RawCommentExtractor


@dataclass(slots=True)
class ExtractorRegistry:
    """Ordered extractor registry with explicit fallback extractor."""

    _extractors: list[CommentExtractor] = field(default_factory=list)
    _fallback: CommentExtractor | None = None

    def register(self, extractor: CommentExtractor, *, fallback: bool = False) -> None:
        """Register an extractor in deterministic insertion order."""
        if fallback:
            self._fallback = extractor
            return
        self._extractors.append(extractor)

    def select(self, path: str) -> CommentExtractor:
        """Select the first extractor that supports the path, else fallback."""
        for extractor in self._extractors:
            if extractor.supports_path(path):
                return extractor
        if self._fallback is not None:
            return self._fallback
        raise LookupError(f"No comment extractor supports path: {path}")

    def names(self) -> tuple[str, ...]:
        ordered = [extractor.name for extractor in self._extractors]
        if self._fallback is not None:
            ordered.append(self._fallback.name)
        return tuple(ordered)


def build_extractor_registry(fence_filter: CodeFenceFilter | None = None) -> ExtractorRegistry:
    """Markdown files use markdown-it; everything else is scanned raw."""
    registry = ExtractorRegistry()
    registry.register(MarkdownCommentExtractor())
    raw = RawCommentExtractor(fence_filter=fence_filter or CodeFenceFilter())
    registry.register(raw, fallback=True)
    return registry
