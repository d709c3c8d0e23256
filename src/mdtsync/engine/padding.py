"""Blank-line padding between block tags and injected content."""

from __future__ import annotations

from mdtsync.config import PaddingConfig


def pad_content(new_content: str, original_content: str, padding: PaddingConfig) -> str:
    """Surround ``new_content`` with the configured blank lines.

    The text after the last newline of ``original_content`` (for example
    ``"/// "`` before a closing tag inside a doc comment) is kept in front of
    the closing tag, and padding lines reuse it without trailing whitespace.
    """
    newline_at = original_content.rfind("\n")
    trailing_prefix = original_content[newline_at + 1 :] if newline_at >= 0 else ""
    blank_line = trailing_prefix.rstrip()

    parts: list[str] = []
    if padding.before is not None:
        if not new_content.startswith("\n"):
            parts.append("\n")
        parts.extend(f"{blank_line}\n" for _ in range(padding.before))

    parts.append(new_content)

    if padding.after is not None:
        if not new_content.endswith("\n"):
            parts.append("\n")
        parts.extend(f"{blank_line}\n" for _ in range(padding.after))
        parts.append(trailing_prefix)

    return "".join(parts)
