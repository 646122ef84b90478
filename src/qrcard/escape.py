"""Text escaping for vCard (RFC 6350) and iCalendar (RFC 5545) values.

Both grammars share the same TEXT escaping rules. Backslash is handled first
so the backslashes introduced by later substitutions are not doubled.
Colons are left alone and lines are never folded.
"""
from __future__ import annotations

from enum import Enum


class Grammar(str, Enum):
    VCARD = "vcard"
    ICAL = "ical"


_SUBSTITUTIONS: dict[Grammar, tuple[tuple[str, str], ...]] = {
    Grammar.VCARD: (("\\", "\\\\"), (";", "\\;"), (",", "\\,"), ("\n", "\\n")),
    Grammar.ICAL:  (("\\", "\\\\"), (";", "\\;"), (",", "\\,"), ("\n", "\\n")),
}


def _unify_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def escape_text(raw: str | None, grammar: Grammar | str = Grammar.VCARD) -> str:
    """Escape one raw value for embedding as a single property value.

    Not idempotent: escaping already-escaped text doubles the backslashes,
    so each raw value must go through here exactly once.
    """
    if not raw:
        return ""
    text = _unify_newlines(raw)
    for old, new in _SUBSTITUTIONS[Grammar(grammar)]:
        text = text.replace(old, new)
    return text


def escape_vcard(raw: str | None) -> str:
    return escape_text(raw, Grammar.VCARD)


def escape_ical(raw: str | None) -> str:
    return escape_text(raw, Grammar.ICAL)
