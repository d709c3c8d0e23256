"""Block parser: comments to tokens to groups to typed blocks.

One parser core serves both entry points. :data:`STRICT` (template files)
raises :class:`ParseError` on malformed tag syntax and unclosed blocks;
:data:`LENIENT` (consumer files) records the same findings as diagnostics and
keeps every block it can still pair.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from mdtsync.diagnostics import (
    INVALID_TOKEN_SEQUENCE,
    MALFORMED_BLOCK,
    MISSING_CLOSING_TAG,
    UNMATCHED_CLOSING_TAG,
    ProjectDiagnostic,
    diagnostic_sort_key,
    make_diagnostic,
)
from mdtsync.errors import InvalidTokenSequenceError, ParseError, TransformerError
from mdtsync.extractors import CommentNode, ExtractorRegistry, LineTable, build_extractor_registry
from mdtsync.parsing.lexer import parse_transformer_chain, tokenize_comment
from mdtsync.parsing.models import (
    CONSUMER,
    OPEN_PROVIDER,
    PROVIDER,
    Block,
    Span,
    Token,
    TokenGroup,
)
from mdtsync.parsing.patterns import DANGLING_OPEN, ORPHAN_CLOSE, match_token_groups
from mdtsync.transformers import lookup_transformer


@dataclass(slots=True, frozen=True)
class ParsePolicy:
    """Failure behavior for one parse."""

    name: str
    raise_on_invalid_tokens: bool
    raise_on_missing_close: bool


STRICT = ParsePolicy(name="strict", raise_on_invalid_tokens=True, raise_on_missing_close=True)
LENIENT = ParsePolicy(name="lenient", raise_on_invalid_tokens=False, raise_on_missing_close=False)


@dataclass(slots=True, frozen=True)
class ParseOutcome:
    """Blocks in ascending open-offset order plus diagnostics for one file."""

    blocks: tuple[Block, ...]
    diagnostics: tuple[ProjectDiagnostic, ...]


def parse_blocks(
    text: str,
    comments: Sequence[CommentNode],
    policy: ParsePolicy,
    *,
    path: str = "",
    lines: LineTable | None = None,
) -> ParseOutcome:
    """Turn extracted comments into blocks under the given policy."""
    table = lines if lines is not None else LineTable(text)
    diagnostics: list[ProjectDiagnostic] = []

    tokens: list[Token] = []
    for comment in comments:
        try:
            tokens.extend(
                tokenize_comment(comment.value, comment.start_offset, comment.end_offset)
            )
        except InvalidTokenSequenceError as exc:
            if policy.raise_on_invalid_tokens:
                raise ParseError(
                    code=INVALID_TOKEN_SEQUENCE,
                    message=exc.message,
                    offset=exc.offset,
                ) from exc
            diagnostics.append(
                _diagnostic(INVALID_TOKEN_SEQUENCE, path, table, exc.offset, exc.message)
            )

    matched = match_token_groups(tokens)
    for issue in matched.issues:
        token = issue.token
        if issue.reason == DANGLING_OPEN:
            message = f"Block '{token.name}' is missing its closing tag."
            if policy.raise_on_missing_close:
                raise ParseError(
                    code=MISSING_CLOSING_TAG,
                    message=message,
                    offset=token.start,
                    name=token.name,
                )
            diagnostics.append(_diagnostic(MISSING_CLOSING_TAG, path, table, token.start, message))
        elif issue.reason == ORPHAN_CLOSE:
            message = f"Closing tag '{token.name}' has no matching opening tag."
            diagnostics.append(
                _diagnostic(UNMATCHED_CLOSING_TAG, path, table, token.start, message)
            )
        else:
            message = f"Block '{token.name}' opens and closes inside one comment."
            diagnostics.append(_diagnostic(MALFORMED_BLOCK, path, table, token.start, message))

    blocks: list[Block] = []
    for group in matched.groups:
        block = _build_block(group, table)
        for transformer in block.transformers:
            try:
                lookup_transformer(transformer)
            except TransformerError as exc:
                diagnostics.append(
                    _diagnostic(exc.code, path, table, group.open.start, exc.message)
                )
        blocks.append(block)

    return ParseOutcome(
        blocks=tuple(blocks),
        diagnostics=tuple(sorted(diagnostics, key=diagnostic_sort_key)),
    )


def parse_document(
    path: str,
    text: str,
    policy: ParsePolicy,
    registry: ExtractorRegistry | None = None,
) -> ParseOutcome:
    """Parse one file's normalized text with the extractor chosen for its path."""
    extractors = registry if registry is not None else build_extractor_registry()
    lines = LineTable(text)
    comments = extractors.select(path).extract(text, lines)
    return parse_blocks(text, comments, policy, path=path, lines=lines)


def _build_block(group: TokenGroup, lines: LineTable) -> Block:
    opener = group.open
    closer = group.close
    kind = PROVIDER if opener.kind == OPEN_PROVIDER else CONSUMER
    transformers = parse_transformer_chain(opener.raw_transformers)
    line, column = lines.position(opener.comment_start)
    return Block(
        kind=kind,
        name=opener.name,
        transformers=transformers,
        tag_span=Span(opener.comment_start, opener.comment_end),
        close_span=Span(closer.comment_start, closer.comment_end),
        content_span=Span(opener.comment_end, closer.comment_start),
        line=line,
        column=column,
    )


def _diagnostic(
    kind: str, path: str, lines: LineTable, offset: int, message: str
) -> ProjectDiagnostic:
    line, column = lines.position(offset)
    return make_diagnostic(kind, path, line, column, message)
