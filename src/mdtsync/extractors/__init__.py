"""Comment extraction strategies."""

from .base import CommentExtractor, CommentNode, LineTable
from .fences import CodeFenceFilter
from .markdown import MarkdownCommentExtractor
from .raw import RawCommentExtractor
from .registry import ExtractorRegistry, build_extractor_registry

__all__ = [
    "CodeFenceFilter",
    "CommentExtractor",
    "CommentNode",
    "ExtractorRegistry",
    "LineTable",
    "MarkdownCommentExtractor",
    "RawCommentExtractor",
    "build_extractor_registry",
]
