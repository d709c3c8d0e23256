"""Content transformers applied to rendered provider text.

Each transformer is a pure ``str -> str`` function. A consumer's chain runs
strictly left to right, so ``|trim|linePrefix:"// ":true`` trims first and
then prefixes every line.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mdtsync.errors import TransformerError

if TYPE_CHECKING:
    from mdtsync.parsing.models import ArgumentValue, Transformer

TransformFunc = Callable[[str, Sequence["ArgumentValue"], Mapping[str, object]], str]


@dataclass(slots=True, frozen=True)
class TransformerSpec:
    """Canonical name, accepted argument count range, and implementation."""

    name: str
    min_args: int
    max_args: int
    func: TransformFunc

    def expected_args(self) -> str:
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args}-{self.max_args}"


def _string_arg(args: Sequence[ArgumentValue], index: int) -> str:
    if index >= len(args):
        return ""
    value = args[index]
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _bool_arg(args: Sequence[ArgumentValue], index: int) -> bool:
    if index >= len(args):
        return False
    value = args[index]
    if isinstance(value, str):
        return value == "true"
    return bool(value)


def _lines(content: str) -> list[str]:
    # A trailing newline does not produce a trailing empty line.
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def _trim(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    return content.strip()


def _trim_start(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    return content.lstrip()


def _trim_end(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    return content.rstrip()


def _indent(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    indent = _string_arg(args, 0)
    include_empty = _bool_arg(args, 1)
    return "\n".join(
        f"{indent}{line}" if line or include_empty else "" for line in _lines(content)
    )


def _prefix(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    return f"{_string_arg(args, 0)}{content}"


def _suffix(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    return f"{content}{_string_arg(args, 0)}"


def _wrap(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    wrapper = _string_arg(args, 0)
    return f"{wrapper}{content}{wrapper}"


def _line_prefix(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    prefix = _string_arg(args, 0)
    include_empty = _bool_arg(args, 1)
    output: list[str] = []
    for line in _lines(content):
        if line:
            output.append(f"{prefix}{line}")
        elif include_empty:
            output.append(prefix.rstrip())
        else:
            output.append("")
    return "\n".join(output)


def _line_suffix(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    suffix = _string_arg(args, 0)
    include_empty = _bool_arg(args, 1)
    output: list[str] = []
    for line in _lines(content):
        if line:
            output.append(f"{line}{suffix}")
        elif include_empty:
            output.append(suffix.lstrip())
        else:
            output.append("")
    return "\n".join(output)


def _code_block(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    return f"```{_string_arg(args, 0)}\n{content}\n```"


def _code(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    return f"`{content}`"


def _replace(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    search = _string_arg(args, 0)
    if not search:
        return content
    return content.replace(search, _string_arg(args, 1))


def _if(content: str, args: Sequence[ArgumentValue], data: Mapping[str, object]) -> str:
    return content if resolve_data_path(data, _string_arg(args, 0)) else ""


def resolve_data_path(data: Mapping[str, object], path: str) -> object | None:
    """Follow a dot path such as ``config.enabled`` through nested mappings."""
    current: object = data
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


_SPECS = (
    TransformerSpec("trim", 0, 0, _trim),
    TransformerSpec("trimStart", 0, 0, _trim_start),
    TransformerSpec("trimEnd", 0, 0, _trim_end),
    TransformerSpec("indent", 0, 2, _indent),
    TransformerSpec("prefix", 0, 1, _prefix),
    TransformerSpec("suffix", 0, 1, _suffix),
    TransformerSpec("wrap", 0, 1, _wrap),
    TransformerSpec("linePrefix", 0, 2, _line_prefix),
    TransformerSpec("lineSuffix", 0, 2, _line_suffix),
    TransformerSpec("codeBlock", 0, 1, _code_block),
    TransformerSpec("code", 0, 0, _code),
    TransformerSpec("replace", 2, 2, _replace),
    TransformerSpec("if", 1, 1, _if),
)

_ALIASES = {
    "trim_start": "trimStart",
    "trim_end": "trimEnd",
    "line_prefix": "linePrefix",
    "line_suffix": "lineSuffix",
    "codeblock": "codeBlock",
    "code_block": "codeBlock",
}

TRANSFORMERS: dict[str, TransformerSpec] = {spec.name: spec for spec in _SPECS}
for _alias, _canonical in _ALIASES.items():
    TRANSFORMERS[_alias] = TRANSFORMERS[_canonical]


def lookup_transformer(transformer: Transformer) -> TransformerSpec:
    """Return the spec for a transformer, validating its argument count."""
    spec = TRANSFORMERS.get(transformer.name)
    if spec is None:
        raise TransformerError(
            transformer.name,
            f"Unknown transformer '{transformer.name}'.",
            unknown=True,
        )
    count = len(transformer.args)
    if count < spec.min_args or count > spec.max_args:
        raise TransformerError(
            transformer.name,
            f"Transformer '{transformer.name}' expects {spec.expected_args()} "
            f"argument(s), got {count}.",
        )
    return spec


def apply_transformers(
    content: str,
    transformers: Sequence[Transformer],
    data: Mapping[str, object] | None = None,
) -> str:
    """Run the chain left to right; ``data`` feeds the ``if`` transformer."""
    context: Mapping[str, object] = data if data is not None else {}
    result = content
    for transformer in transformers:
        spec = lookup_transformer(transformer)
        result = spec.func(result, transformer.args, context)
    return result
