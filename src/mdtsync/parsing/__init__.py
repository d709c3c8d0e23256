"""Tag lexing, open/close pairing, and block parsing."""

from .lexer import parse_transformer_chain, tokenize_comment
from .models import (
    CLOSE,
    CONSUMER,
    OPEN_CONSUMER,
    OPEN_PROVIDER,
    PROVIDER,
    Block,
    Span,
    Token,
    TokenGroup,
    Transformer,
)
from .parser import LENIENT, STRICT, ParseOutcome, ParsePolicy, parse_blocks, parse_document
from .patterns import GroupMatch, PairingIssue, match_token_groups

__all__ = [
    "Block",
    "CLOSE",
    "CONSUMER",
    "GroupMatch",
    "LENIENT",
    "OPEN_CONSUMER",
    "OPEN_PROVIDER",
    "PROVIDER",
    "PairingIssue",
    "ParseOutcome",
    "ParsePolicy",
    "STRICT",
    "Span",
    "Token",
    "TokenGroup",
    "Transformer",
    "match_token_groups",
    "parse_blocks",
    "parse_document",
    "parse_transformer_chain",
    "tokenize_comment",
]
