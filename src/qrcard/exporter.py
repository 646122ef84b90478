from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime

from .collect import DEFAULT_TIMEZONE
from .dates import event_tokens, parse_date, parse_time, utc_stamp
from .escape import escape_ical, escape_vcard
from .model import ContactRecord, EventRecord

logger = logging.getLogger(__name__)

CRLF = "\r\n"
VCARD_VERSION = "3.0"
PRODID = "-//qrcard//Calendar Event Generator//EN"
UID_DOMAIN = "qrcard.local"

TITLE_REQUIRED = "Event title required"
START_DATE_REQUIRED = "Start date required"

_UID_ALPHABET = string.ascii_lowercase + string.digits


# ── Line builder ───────────────────────────────────────────────────────────────

@dataclass
class DocumentBuilder:
    """Ordered content lines; optional properties with empty values are
    dropped when the document is rendered."""

    _entries: list[tuple[str, str | None, bool]] = field(default_factory=list)

    def line(self, text: str) -> DocumentBuilder:
        self._entries.append((text, None, False))
        return self

    def prop(self, name: str, value: str) -> DocumentBuilder:
        self._entries.append((name, value, False))
        return self

    def optional(self, name: str, value: str) -> DocumentBuilder:
        self._entries.append((name, value, True))
        return self

    def lines(self) -> list[str]:
        out: list[str] = []
        for name, value, optional in self._entries:
            if value is None:
                out.append(name)
            elif optional and not value:
                continue
            else:
                out.append(f"{name}:{value}")
        return out

    def render(self) -> str:
        return CRLF.join(self.lines()) + CRLF


# ── vCard ──────────────────────────────────────────────────────────────────────

def _adr_value(record: ContactRecord) -> str:
    parts = record.address_parts()
    if not any(parts):
        return ""
    # PO box and extended address are not collected
    return ";;" + ";".join(escape_vcard(p) for p in parts)


def build_vcard(record: ContactRecord) -> str:
    """Serialise a contact as a vCard 3.0 document (CRLF, trailing CRLF)."""
    name = escape_vcard(record.name)
    b = DocumentBuilder()
    b.line("BEGIN:VCARD")
    b.prop("VERSION", VCARD_VERSION)
    b.prop("N", f"{name};;;;")
    b.prop("FN", name)
    b.prop("ORG", escape_vcard(record.org))
    b.optional("TITLE", escape_vcard(record.title))
    b.optional("ORG;TYPE=WORK", escape_vcard(record.work))
    b.prop("TEL;TYPE=CELL", escape_vcard(record.phone))
    b.prop("EMAIL;TYPE=INTERNET", escape_vcard(record.email))
    # URL is a uri value, not TEXT
    b.optional("URL", record.url)
    b.optional("ADR;TYPE=WORK", _adr_value(record))
    b.optional("NOTE", escape_vcard(record.note))
    b.line("END:VCARD")
    doc = b.render()
    logger.debug("Built vCard for %r (%d chars)", record.name, len(doc))
    return doc


# ── iCalendar ──────────────────────────────────────────────────────────────────

def generate_uid(domain: str = UID_DOMAIN, now_ms: int | None = None) -> str:
    """Time-based UID with a random suffix, e.g. ``event-1710...-k3j9x0a1b@qrcard.local``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choices(_UID_ALPHABET, k=9))
    return f"event-{now_ms}-{suffix}@{domain}"


def placeholder_calendar(summary: str) -> str:
    """Minimal calendar carrying a diagnostic summary instead of an event."""
    b = DocumentBuilder()
    b.line("BEGIN:VCALENDAR")
    b.prop("VERSION", "2.0")
    b.line("BEGIN:VEVENT")
    b.prop("SUMMARY", summary)
    b.line("END:VEVENT")
    b.line("END:VCALENDAR")
    return b.render()


def _organizer(record: EventRecord) -> tuple[str, str]:
    if not record.organizer_email:
        return "ORGANIZER", ""
    value = f"mailto:{record.organizer_email}"
    if record.organizer:
        return f"ORGANIZER;CN={escape_ical(record.organizer)}", value
    return "ORGANIZER", value


def _fill_missing_times(start_time: str, end_time: str) -> tuple[str, str]:
    # a timed event needs a time on both sides
    return start_time or end_time, end_time or start_time


def build_icalendar(
    record: EventRecord,
    now: datetime | None = None,
    uid: str | None = None,
    prodid: str = PRODID,
    uid_domain: str = UID_DOMAIN,
) -> str:
    """Serialise an event as an iCalendar 2.0 document (CRLF, trailing CRLF).

    A missing title or start date yields a placeholder calendar rather than
    an error.
    """
    if not record.title:
        logger.info("Event has no title, emitting placeholder")
        return placeholder_calendar(TITLE_REQUIRED)
    if parse_date(record.start_date) is None:
        logger.info("Event has no usable start date, emitting placeholder")
        return placeholder_calendar(START_DATE_REQUIRED)

    # unparseable times count as absent
    start_time = record.start_time if parse_time(record.start_time) else ""
    end_time = record.end_time if parse_time(record.end_time) else ""
    all_day = not start_time and not end_time
    end_date = record.end_date if parse_date(record.end_date) else record.start_date
    if not all_day:
        start_time, end_time = _fill_missing_times(start_time, end_time)
    dt_start, dt_end = event_tokens(record.start_date, start_time, end_date, end_time, all_day)

    if all_day:
        param = ";VALUE=DATE"
    else:
        param = f";TZID={record.timezone or DEFAULT_TIMEZONE}"

    b = DocumentBuilder()
    b.line("BEGIN:VCALENDAR")
    b.prop("VERSION", "2.0")
    b.prop("PRODID", prodid)
    b.prop("CALSCALE", "GREGORIAN")
    b.line("BEGIN:VEVENT")
    b.prop("UID", uid or generate_uid(uid_domain))
    b.prop("DTSTAMP", utc_stamp(now))
    b.prop(f"DTSTART{param}", dt_start)
    b.prop(f"DTEND{param}", dt_end)
    b.prop("SUMMARY", escape_ical(record.title))
    b.optional("LOCATION", escape_ical(record.location))
    b.optional("DESCRIPTION", escape_ical(record.description))
    b.optional(*_organizer(record))
    b.prop("STATUS", "CONFIRMED")
    b.prop("SEQUENCE", "0")
    b.line("END:VEVENT")
    b.line("END:VCALENDAR")
    doc = b.render()
    logger.debug("Built event %r (all_day=%s, %s → %s)", record.title, all_day, dt_start, dt_end)
    return doc
