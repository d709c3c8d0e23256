from __future__ import annotations

import pytest

from mdtsync.errors import InvalidTokenSequenceError
from mdtsync.parsing.lexer import parse_transformer_chain, tokenize_comment
from mdtsync.parsing.models import CLOSE, OPEN_CONSUMER, OPEN_PROVIDER, Transformer


def test_provider_tag_offsets_are_absolute() -> None:
    tokens = tokenize_comment("<!-- {@greeting} -->", base_offset=10)

    assert len(tokens) == 1
    token = tokens[0]
    assert token.kind == OPEN_PROVIDER
    assert token.name == "greeting"
    assert token.start == 15
    assert token.end == 26
    assert token.comment_start == 10
    assert token.comment_end == 30
    assert token.is_open


def test_close_tag_is_not_open() -> None:
    tokens = tokenize_comment("<!-- {/greeting} -->")

    assert [(token.kind, token.name, token.is_open) for token in tokens] == [
        (CLOSE, "greeting", False)
    ]


def test_consumer_tag_keeps_raw_transformer_chain() -> None:
    tokens = tokenize_comment('<!-- {=docs|trim|linePrefix:"// ":true} -->')

    assert tokens[0].kind == OPEN_CONSUMER
    assert tokens[0].name == "docs"
    assert tokens[0].raw_transformers == '|trim|linePrefix:"// ":true'


def test_braces_in_prose_are_ignored() -> None:
    assert tokenize_comment("<!-- use {braces} or { @x } and {@ spaced -->") == []


def test_started_tag_without_closing_brace_raises() -> None:
    with pytest.raises(InvalidTokenSequenceError) as excinfo:
        tokenize_comment("<!-- {@name -->", base_offset=100)

    assert excinfo.value.offset == 105
    assert "closing" in excinfo.value.message


def test_transformer_chain_argument_types() -> None:
    chain = parse_transformer_chain('|replace:"a":"b"|wrap:1.5|prefix:-3|indent:"  ":true')

    assert chain == (
        Transformer(name="replace", args=("a", "b")),
        Transformer(name="wrap", args=(1.5,)),
        Transformer(name="prefix", args=(-3,)),
        Transformer(name="indent", args=("  ", True)),
    )


def test_transformer_chain_single_quotes_and_escapes() -> None:
    chain = parse_transformer_chain("|prefix:'a\\nb'|suffix:\"\\\"q\\\"\"")

    assert chain == (
        Transformer(name="prefix", args=("a\nb",)),
        Transformer(name="suffix", args=('"q"',)),
    )


def test_empty_chain_parses_to_no_transformers() -> None:
    assert parse_transformer_chain("") == ()
    assert parse_transformer_chain("   ") == ()


def test_unterminated_string_argument_raises() -> None:
    with pytest.raises(InvalidTokenSequenceError, match="Unterminated"):
        parse_transformer_chain('|prefix:"abc')


def test_bare_word_argument_raises() -> None:
    with pytest.raises(InvalidTokenSequenceError, match="quoted string"):
        parse_transformer_chain("|prefix:abc")


def test_chain_error_offsets_are_relative_to_the_suffix() -> None:
    with pytest.raises(InvalidTokenSequenceError) as excinfo:
        parse_transformer_chain("|prefix:abc")

    assert excinfo.value.offset == len("|prefix:")
