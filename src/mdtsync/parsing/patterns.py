"""Open/close pairing of tag tokens into block candidates."""

from __future__ import annotations

from dataclasses import dataclass

from mdtsync.parsing.models import Token, TokenGroup

DANGLING_OPEN = "dangling_open"
ORPHAN_CLOSE = "orphan_close"
SHARED_COMMENT = "shared_comment"


@dataclass(slots=True, frozen=True)
class PairingIssue:
    """A token that could not be paired, with the reason."""

    reason: str
    token: Token


@dataclass(slots=True, frozen=True)
class GroupMatch:
    """Accepted groups in ascending open-offset order plus rejected tokens."""

    groups: tuple[TokenGroup, ...]
    issues: tuple[PairingIssue, ...]


def match_token_groups(tokens: list[Token]) -> GroupMatch:
    """Pair opens with closes by name using an open stack.

    A close pops the top of the stack when the names match; otherwise it
    closes the most recently opened tag with that name anywhere in the stack,
    leaving the skipped opens on the stack so they can still be closed later.
    Interleaved blocks therefore keep their own open/close boundaries and
    their content spans overlap.
    """
    stack: list[Token] = []
    groups: list[TokenGroup] = []
    issues: list[PairingIssue] = []
    for token in sorted(tokens, key=lambda item: item.start):
        if token.is_open:
            stack.append(token)
            continue
        match_index = _find_open(stack, token.name)
        if match_index is None:
            issues.append(PairingIssue(reason=ORPHAN_CLOSE, token=token))
            continue
        opener = stack.pop(match_index)
        if opener.comment_start == token.comment_start:
            issues.append(PairingIssue(reason=SHARED_COMMENT, token=opener))
            continue
        groups.append(TokenGroup(open=opener, close=token))

    for dangling in stack:
        issues.append(PairingIssue(reason=DANGLING_OPEN, token=dangling))

    ordered_groups = tuple(sorted(groups, key=lambda group: group.open.start))
    ordered_issues = tuple(sorted(issues, key=lambda issue: issue.token.start))
    return GroupMatch(groups=ordered_groups, issues=ordered_issues)


def _find_open(stack: list[Token], name: str) -> int | None:
    for index in range(len(stack) - 1, -1, -1):
        if stack[index].name == name:
            return index
    return None
