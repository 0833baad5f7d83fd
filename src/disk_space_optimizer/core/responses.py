"""Pure parsers for interactive answers.

These functions turn a raw line typed by the user into a
:class:`~disk_space_optimizer.core.models.Decision`.  They perform no
I/O, which keeps the re-prompt logic in the gate trivial and lets the
token rules be tested exhaustively.
"""

from __future__ import annotations

import re

from disk_space_optimizer.core.models import Decision

YES_TOKENS: frozenset[str] = frozenset({"y", "yes"})
NO_TOKENS: frozenset[str] = frozenset({"n", "no"})
ALL_TOKENS: frozenset[str] = frozenset({"all", "a", "*"})
NONE_TOKENS: frozenset[str] = frozenset({"none", "q", "quit"})

_SEPARATORS = re.compile(r"[,\s]+")
_RANGE = re.compile(r"^(\d+)-(\d+)$")


def parse_yes_no(answer: str) -> Decision:
    """Classify *answer* as yes, no or invalid (case-insensitive)."""
    token = answer.strip().lower()
    if token in YES_TOKENS:
        return Decision.confirmed()
    if token in NO_TOKENS:
        return Decision.declined()
    return Decision.invalid("Please answer 'y' or 'n'.")


def parse_selection(answer: str, count: int) -> Decision:
    """Parse an index selection against a list of *count* items.

    Accepted forms (1-based, as displayed):

    * ``"1,3"`` / ``"1 3"`` — individual indices;
    * ``"2-4"`` — inclusive range;
    * ``"all"`` — every item;
    * ``"none"`` or an empty line — nothing (declined).

    Duplicate indices collapse.  Returned indices are zero-based and in
    ascending order.
    """
    text = answer.strip().lower()
    if not text or text in NONE_TOKENS:
        return Decision.declined()
    if text in ALL_TOKENS:
        return Decision.confirmed(tuple(range(count)))

    chosen: set[int] = set()
    for token in _SEPARATORS.split(text):
        if not token:
            continue
        span = _RANGE.match(token)
        if span:
            start, end = int(span.group(1)), int(span.group(2))
            if start > end:
                return Decision.invalid(f"Range {token!r} is reversed.")
        elif token.isdecimal():
            start = end = int(token)
        else:
            return Decision.invalid(f"{token!r} is not a number.")
        if start < 1 or end > count:
            return Decision.invalid(f"{token!r} is out of range (1-{count}).")
        chosen.update(range(start - 1, end))

    if not chosen:
        return Decision.declined()
    return Decision.confirmed(tuple(sorted(chosen)))


def parse_days(answer: str, default: int) -> int | None:
    """Parse a retention period in days; empty input selects *default*.

    Returns ``None`` for anything that is not a non-negative integer.
    """
    text = answer.strip()
    if not text:
        return default
    if not text.isdecimal():
        return None
    return int(text)
