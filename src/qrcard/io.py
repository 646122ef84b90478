from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

import vobject

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    "vcard": "text/vcard",
    "ical": "text/calendar",
}

_SUFFIXES = {
    "vcard": ".vcf",
    "ical": ".ics",
    "qr": "_qrcode.png",
}

_FALLBACK_NAMES = {
    "vcard": "Contact",
    "ical": "Event",
}

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


# ── Filenames ──────────────────────────────────────────────────────────────────

def safe_stem(name: str, fallback: str) -> str:
    """Collapse whitespace to ``_`` and drop anything outside [A-Za-z0-9_-]."""
    stem = _UNSAFE.sub("", _WHITESPACE.sub("_", name.strip()))
    return stem or fallback


def derive_filename(name: str, kind: str, qr: bool = False) -> str:
    """Filename for a document of ``kind`` (``vcard`` or ``ical``).

    With ``qr=True`` the name is for the PNG image of that document.
    """
    stem = safe_stem(name, _FALLBACK_NAMES[kind])
    return stem + (_SUFFIXES["qr"] if qr else _SUFFIXES[kind])


# ── Documents ──────────────────────────────────────────────────────────────────

def write_document(document: str, path: Path) -> Path:
    """Write UTF-8 with the CRLF line endings left untouched."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        fh.write(document)
    logger.info("Wrote %d bytes to %s", len(document.encode("utf-8")), path)
    return path


def read_document(path: Path) -> str:
    with path.open("r", encoding="utf-8", errors="replace", newline="") as fh:
        return fh.read()


def check_document(document: str) -> list[str]:
    """Parse a document with vobject and return a list of problems.

    An empty list means every component parsed and at least one VCARD or
    VCALENDAR was found.
    """
    problems: list[str] = []
    found = 0
    try:
        for component in vobject.readComponents(document):
            name = component.name.upper()
            if name not in ("VCARD", "VCALENDAR"):
                problems.append(f"Unexpected top-level component {name}")
                continue
            found += 1
            if name == "VCALENDAR" and not hasattr(component, "vevent"):
                problems.append("VCALENDAR has no VEVENT")
    except (vobject.base.ParseError, vobject.base.ValidateError, KeyError, ValueError) as exc:
        # unknown TZIDs surface as KeyError from the timezone lookup
        problems.append(f"Parse error: {exc}")
        return problems
    if not found:
        problems.append("No VCARD or VCALENDAR component found")
    logger.debug("Checked document: %d component(s), %d problem(s)", found, len(problems))
    return problems


# ── Form state ─────────────────────────────────────────────────────────────────

def load_form(path: Path) -> dict[str, Any]:
    """Read a flat JSON object of form field values."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data
