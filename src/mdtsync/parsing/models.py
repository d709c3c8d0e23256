"""Typed records produced by the tag lexer and block parser."""

from __future__ import annotations

from dataclasses import dataclass

OPEN_PROVIDER = "open_provider"
OPEN_CONSUMER = "open_consumer"
CLOSE = "close"

PROVIDER = "provider"
CONSUMER = "consumer"

ArgumentValue = str | bool | int | float


@dataclass(slots=True, frozen=True)
class Token:
    """One tag recognized inside a comment, with offsets into the file text."""

    kind: str
    name: str
    start: int
    end: int
    comment_start: int
    comment_end: int
    raw_transformers: str = ""

    @property
    def is_open(self) -> bool:
        return self.kind != CLOSE


@dataclass(slots=True, frozen=True)
class TokenGroup:
    """An open token paired with the close token bearing the same name."""

    open: Token
    close: Token


@dataclass(slots=True, frozen=True)
class Transformer:
    """Named content filter plus its ordered arguments."""

    name: str
    args: tuple[ArgumentValue, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "args": list(self.args)}

    @classmethod
    def from_dict(cls, payload: object) -> Transformer | None:
        if not isinstance(payload, dict):
            return None
        name = payload.get("name")
        args = payload.get("args")
        if not isinstance(name, str) or not isinstance(args, list):
            return None
        if not all(isinstance(arg, (str, bool, int, float)) for arg in args):
            return None
        return cls(name=name, args=tuple(args))


@dataclass(slots=True, frozen=True)
class Span:
    """Half-open character range ``[start, end)`` into normalized file text."""

    start: int
    end: int

    def to_list(self) -> list[int]:
        return [self.start, self.end]


@dataclass(slots=True, frozen=True)
class Block:
    """A provider or consumer block.

    ``tag_span`` covers the opening comment, ``close_span`` the closing
    comment, and ``content_span`` the text strictly between them. ``line`` and
    ``column`` are 1-indexed and point at the opening comment.
    """

    kind: str
    name: str
    transformers: tuple[Transformer, ...]
    tag_span: Span
    close_span: Span
    content_span: Span
    line: int
    column: int

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready mapping."""
        return {
            "kind": self.kind,
            "name": self.name,
            "transformers": [transformer.to_dict() for transformer in self.transformers],
            "tag_span": self.tag_span.to_list(),
            "close_span": self.close_span.to_list(),
            "content_span": self.content_span.to_list(),
            "line": self.line,
            "column": self.column,
        }

    @classmethod
    def from_dict(cls, payload: object) -> Block | None:
        """Rebuild a block from cached JSON, or None when malformed."""
        if not isinstance(payload, dict):
            return None
        kind = payload.get("kind")
        name = payload.get("name")
        line = payload.get("line")
        column = payload.get("column")
        raw_transformers = payload.get("transformers")
        if kind not in (PROVIDER, CONSUMER) or not isinstance(name, str):
            return None
        if not isinstance(line, int) or not isinstance(column, int):
            return None
        if not isinstance(raw_transformers, list):
            return None
        transformers: list[Transformer] = []
        for item in raw_transformers:
            transformer = Transformer.from_dict(item)
            if transformer is None:
                return None
            transformers.append(transformer)
        spans: list[Span] = []
        for key in ("tag_span", "close_span", "content_span"):
            raw_span = payload.get(key)
            if (
                not isinstance(raw_span, list)
                or len(raw_span) != 2
                or not all(isinstance(value, int) for value in raw_span)
            ):
                return None
            spans.append(Span(start=raw_span[0], end=raw_span[1]))
        return cls(
            kind=kind,
            name=name,
            transformers=tuple(transformers),
            tag_span=spans[0],
            close_span=spans[1],
            content_span=spans[2],
            line=line,
            column=column,
        )
