from __future__ import annotations

import hashlib

from .exporter import CRLF

GRAVATAR_BASE = "https://www.gravatar.com/avatar/"


def gravatar_url(email: str, size: int = 200) -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"{GRAVATAR_BASE}{digest}?s={size}&d=mp"


def add_gravatar_photo(document: str, email: str, size: int = 200) -> str:
    """Return a copy of a vCard with a Gravatar PHOTO line before END:VCARD.

    Documents without an email or without an END:VCARD line come back
    unchanged.
    """
    if not email:
        return document
    lines = document.split(CRLF)
    try:
        end = lines.index("END:VCARD")
    except ValueError:
        return document
    lines.insert(end, f"PHOTO;VALUE=uri:{gravatar_url(email, size)}")
    return CRLF.join(lines)
