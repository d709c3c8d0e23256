from __future__ import annotations

import pytest

from mdtsync.errors import TransformerError
from mdtsync.parsing.models import Transformer
from mdtsync.transformers import (
    TRANSFORMERS,
    apply_transformers,
    lookup_transformer,
    resolve_data_path,
)


def _apply(content: str, *chain: Transformer, data: dict[str, object] | None = None) -> str:
    return apply_transformers(content, chain, data)


def test_chain_runs_left_to_right() -> None:
    result = _apply(
        "  hello  ",
        Transformer("trim"),
        Transformer("linePrefix", ("// ", True)),
    )

    assert result == "// hello"


def test_trim_variants() -> None:
    assert _apply("  x  ", Transformer("trimStart")) == "x  "
    assert _apply("  x  ", Transformer("trimEnd")) == "  x"


def test_indent_skips_empty_lines_unless_asked() -> None:
    assert _apply("a\n\nb", Transformer("indent", ("  ",))) == "  a\n\n  b"
    assert _apply("a\n\nb", Transformer("indent", ("  ", True))) == "  a\n  \n  b"


def test_line_prefix_on_empty_lines_drops_trailing_space() -> None:
    assert _apply("a\n\nb", Transformer("linePrefix", ("// ", True))) == "// a\n//\n// b"
    assert _apply("a\n\nb", Transformer("linePrefix", ("// ",))) == "// a\n\n// b"


def test_line_transformers_drop_final_newline() -> None:
    assert _apply("a\nb\n", Transformer("linePrefix", ("> ",))) == "> a\n> b"
    assert _apply("a\nb\n", Transformer("lineSuffix", (";",))) == "a;\nb;"


def test_wrapping_transformers() -> None:
    assert _apply("x", Transformer("prefix", ("<",))) == "<x"
    assert _apply("x", Transformer("suffix", (">",))) == "x>"
    assert _apply("x", Transformer("wrap", ("**",))) == "**x**"
    assert _apply("x", Transformer("code")) == "`x`"
    assert _apply("fn main() {}", Transformer("codeBlock", ("rust",))) == (
        "```rust\nfn main() {}\n```"
    )


def test_non_string_arguments_are_formatted() -> None:
    assert _apply("x", Transformer("prefix", (2.0,))) == "2x"
    assert _apply("x", Transformer("prefix", (1.5,))) == "1.5x"
    assert _apply("x", Transformer("suffix", (True,))) == "xtrue"


def test_replace_and_empty_search() -> None:
    assert _apply("foo foo", Transformer("replace", ("foo", "bar"))) == "bar bar"
    assert _apply("foo", Transformer("replace", ("", "bar"))) == "foo"


def test_if_uses_dot_path_into_data() -> None:
    data: dict[str, object] = {"flags": {"beta": True, "off": False}}

    assert _apply("x", Transformer("if", ("flags.beta",)), data=data) == "x"
    assert _apply("x", Transformer("if", ("flags.off",)), data=data) == ""
    assert _apply("x", Transformer("if", ("flags.missing",)), data=data) == ""
    assert _apply("x", Transformer("if", ("flags.beta",))) == ""


def test_resolve_data_path_stops_at_non_mappings() -> None:
    data: dict[str, object] = {"a": {"b": 1}, "s": "text"}

    assert resolve_data_path(data, "a.b") == 1
    assert resolve_data_path(data, "s.length") is None


def test_snake_case_aliases_share_implementations() -> None:
    assert TRANSFORMERS["line_prefix"] is TRANSFORMERS["linePrefix"]
    assert TRANSFORMERS["code_block"] is TRANSFORMERS["codeBlock"]
    assert TRANSFORMERS["codeblock"] is TRANSFORMERS["codeBlock"]


def test_unknown_transformer_error_code() -> None:
    with pytest.raises(TransformerError) as excinfo:
        lookup_transformer(Transformer("shout"))

    assert excinfo.value.code == "UNKNOWN_TRANSFORMER"
    assert excinfo.value.name == "shout"


def test_argument_count_is_validated() -> None:
    with pytest.raises(TransformerError) as excinfo:
        lookup_transformer(Transformer("replace", ("only-one",)))

    assert excinfo.value.code == "INVALID_TRANSFORMER_ARGS"
    assert "expects 2" in excinfo.value.message

    with pytest.raises(TransformerError, match="expects 0"):
        apply_transformers("x", [Transformer("trim", (1,))])
