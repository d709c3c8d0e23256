"""Data interpolation of provider content with Jinja2."""

from __future__ import annotations

from collections.abc import Mapping

from jinja2 import ChainableUndefined, TemplateError, meta
from jinja2.sandbox import SandboxedEnvironment

from mdtsync.errors import RenderError

_TEMPLATE_MARKERS = ("{{", "{%", "{#")
_BUILTIN_NAMES = frozenset(
    {"loop", "self", "super", "true", "false", "none", "namespace", "range", "dict"}
)

# Undefined names and attributes render as empty text; only syntax and
# sandbox violations are errors.
_ENVIRONMENT = SandboxedEnvironment(
    keep_trailing_newline=True,
    undefined=ChainableUndefined,
    autoescape=False,
)


def has_template_syntax(text: str) -> bool:
    return any(marker in text for marker in _TEMPLATE_MARKERS)


def render_template(text: str, data: Mapping[str, object] | None) -> str:
    """Render ``text`` against ``data``; a no-op without data or template syntax."""
    if not data or not has_template_syntax(text):
        return text
    try:
        return _ENVIRONMENT.from_string(text).render(dict(data))
    except TemplateError as exc:
        raise RenderError(f"Template render failed: {exc}") from exc


def find_undefined_variables(text: str, data: Mapping[str, object] | None) -> list[str]:
    """Return sorted top-level names the template reads that ``data`` lacks."""
    if not data or not has_template_syntax(text):
        return []
    try:
        parsed = _ENVIRONMENT.parse(text)
    except TemplateError:
        return []
    names = meta.find_undeclared_variables(parsed)
    return sorted(name for name in names if name not in data and name not in _BUILTIN_NAMES)
