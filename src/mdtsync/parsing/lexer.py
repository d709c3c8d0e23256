"""Single-pass tag lexer for comment text.

A tag is ``{`` followed by a sigil (``@`` provider open, ``=`` consumer open,
``/`` close) and a block name. Consumer tags may carry a transformer chain
such as ``|trim|linePrefix:"// ":true`` before the closing ``}``.

Braces in ordinary prose are ignored. Only text that starts a tag (brace,
sigil, and at least one name character) and then fails to reach a well-formed
``}`` raises :class:`InvalidTokenSequenceError`.
"""

from __future__ import annotations

import re

from mdtsync.errors import InvalidTokenSequenceError
from mdtsync.parsing.models import (
    CLOSE,
    OPEN_CONSUMER,
    OPEN_PROVIDER,
    ArgumentValue,
    Token,
    Transformer,
)

_SIGILS = {"@": OPEN_PROVIDER, "=": OPEN_CONSUMER, "/": CLOSE}
_NAME_RE = re.compile(r"[A-Za-z0-9_-]+")
_TRANSFORMER_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER_RE = re.compile(r"-?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?(?![A-Za-z0-9_.])")
_BOOL_RE = re.compile(r"(true|false)(?![A-Za-z0-9_])")
_WHITESPACE = " \t\r\n"
_ESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
}


def tokenize_comment(
    text: str, base_offset: int = 0, comment_end: int | None = None
) -> list[Token]:
    """Return the tags found in one comment's raw text.

    ``base_offset`` is the offset of ``text[0]`` in the file; token offsets are
    absolute. ``comment_end`` defaults to the end of ``text``.
    """
    end_of_comment = comment_end if comment_end is not None else base_offset + len(text)
    tokens: list[Token] = []
    index = 0
    length = len(text)
    while index < length:
        brace = text.find("{", index)
        if brace < 0:
            break
        kind = _SIGILS.get(text[brace + 1]) if brace + 1 < length else None
        name_match = _NAME_RE.match(text, brace + 2) if kind is not None else None
        if kind is None or name_match is None:
            index = brace + 1
            continue

        name = name_match.group(0)
        cursor = name_match.end()
        raw_transformers = ""
        if kind == OPEN_CONSUMER:
            _, close_index = _scan_chain(text, cursor, base_offset, name)
            raw_transformers = text[cursor:close_index]
            cursor = close_index
        else:
            cursor = _skip_whitespace(text, cursor)
            if cursor >= length or text[cursor] != "}":
                raise InvalidTokenSequenceError(
                    offset=base_offset + brace,
                    message=f"Tag '{name}' is missing its closing '}}'.",
                )

        tokens.append(
            Token(
                kind=kind,
                name=name,
                start=base_offset + brace,
                end=base_offset + cursor + 1,
                comment_start=base_offset,
                comment_end=end_of_comment,
                raw_transformers=raw_transformers.strip(),
            )
        )
        index = cursor + 1
    return tokens


def parse_transformer_chain(raw: str, offset: int = 0) -> tuple[Transformer, ...]:
    """Parse a raw ``|name:arg|name`` suffix into ordered transformers."""
    if not raw.strip():
        return ()
    transformers, _ = _scan_chain(f"{raw}}}", 0, offset, "")
    return transformers


def _scan_chain(
    text: str, cursor: int, base_offset: int, block_name: str
) -> tuple[tuple[Transformer, ...], int]:
    """Walk ``(|name(:arg)*)* }`` from ``cursor``; return transformers and the ``}`` index."""
    transformers: list[Transformer] = []
    length = len(text)
    while True:
        cursor = _skip_whitespace(text, cursor)
        if cursor >= length:
            raise _chain_error(base_offset + cursor, block_name, "missing closing '}'")
        char = text[cursor]
        if char == "}":
            return tuple(transformers), cursor
        if char != "|":
            raise _chain_error(base_offset + cursor, block_name, f"unexpected {char!r}")

        cursor = _skip_whitespace(text, cursor + 1)
        name_match = _TRANSFORMER_NAME_RE.match(text, cursor)
        if name_match is None:
            raise _chain_error(base_offset + cursor, block_name, "expected transformer name")
        cursor = name_match.end()
        args: list[ArgumentValue] = []
        while True:
            lookahead = _skip_whitespace(text, cursor)
            if lookahead >= length or text[lookahead] != ":":
                break
            value, cursor = _scan_argument(text, _skip_whitespace(text, lookahead + 1), base_offset)
            args.append(value)
        transformers.append(Transformer(name=name_match.group(0), args=tuple(args)))


def _scan_argument(text: str, cursor: int, base_offset: int) -> tuple[ArgumentValue, int]:
    if cursor < len(text) and text[cursor] in ("'", '"'):
        return _scan_string(text, cursor, base_offset)
    bool_match = _BOOL_RE.match(text, cursor)
    if bool_match is not None:
        return bool_match.group(1) == "true", bool_match.end()
    number_match = _NUMBER_RE.match(text, cursor)
    if number_match is not None:
        literal = number_match.group(0)
        if any(marker in literal for marker in ".eE"):
            return float(literal), number_match.end()
        return int(literal), number_match.end()
    raise InvalidTokenSequenceError(
        offset=base_offset + cursor,
        message="Transformer argument must be a quoted string, number, or boolean.",
    )


def _scan_string(text: str, cursor: int, base_offset: int) -> tuple[str, int]:
    quote = text[cursor]
    start = cursor
    cursor += 1
    output: list[str] = []
    length = len(text)
    while cursor < length:
        char = text[cursor]
        if char == quote:
            return "".join(output), cursor + 1
        if char == "\\":
            escaped = text[cursor + 1] if cursor + 1 < length else ""
            if escaped not in _ESCAPES:
                raise InvalidTokenSequenceError(
                    offset=base_offset + cursor,
                    message=f"Unsupported escape sequence '\\{escaped}' in string argument.",
                )
            output.append(_ESCAPES[escaped])
            cursor += 2
            continue
        output.append(char)
        cursor += 1
    raise InvalidTokenSequenceError(
        offset=base_offset + start,
        message="Unterminated string argument.",
    )


def _skip_whitespace(text: str, cursor: int) -> int:
    length = len(text)
    while cursor < length and text[cursor] in _WHITESPACE:
        cursor += 1
    return cursor


def _chain_error(offset: int, block_name: str, detail: str) -> InvalidTokenSequenceError:
    if block_name:
        return InvalidTokenSequenceError(offset=offset, message=f"Tag '{block_name}': {detail}.")
    return InvalidTokenSequenceError(offset=offset, message=f"Transformer chain: {detail}.")
