from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .dates import parse_time
from .model import ContactRecord, EventRecord

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/New_York"
DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "10:00"

_TRUTHY = {"true", "1", "yes", "on"}


def _get_text(form: Mapping[str, Any], key: str) -> str:
    value = form.get(key)
    if value is None or isinstance(value, bool):
        return ""
    return str(value).strip()


def _get_email(form: Mapping[str, Any], key: str) -> str:
    return _get_text(form, key).lower()


def _get_flag(form: Mapping[str, Any], key: str) -> bool | None:
    """Checkbox state, or None when the form does not carry the key."""
    if key not in form:
        return None
    value = form[key]
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def _get_time(form: Mapping[str, Any], flag_key: str, time_key: str, default: str) -> str:
    value = _get_text(form, time_key)
    if value and parse_time(value) is None:
        value = ""
    enabled = _get_flag(form, flag_key)
    if enabled is None:
        return value
    if not enabled:
        return ""
    return value or default


def collect_contact(form: Mapping[str, Any]) -> ContactRecord:
    """Build a ContactRecord from a snapshot of the contact form."""
    return ContactRecord(
        name=_get_text(form, "name"),
        org=_get_text(form, "org"),
        title=_get_text(form, "title"),
        phone=_get_text(form, "phone"),
        email=_get_email(form, "email"),
        use_gravatar=bool(_get_flag(form, "useGravatar")),
        work=_get_text(form, "work"),
        url=_get_text(form, "url"),
        street=_get_text(form, "street"),
        city=_get_text(form, "city"),
        region=_get_text(form, "region"),
        postal=_get_text(form, "postal"),
        country=_get_text(form, "country"),
        note=_get_text(form, "note"),
    )


def collect_event(form: Mapping[str, Any], default_timezone: str = DEFAULT_TIMEZONE) -> EventRecord:
    """Build an EventRecord from a snapshot of the event form.

    Times are only taken when their checkbox is on (or when the form has no
    checkbox for them). The end date falls back to the start date.
    """
    start_date = _get_text(form, "startDate")
    return EventRecord(
        title=_get_text(form, "title"),
        start_date=start_date,
        start_time=_get_time(form, "hasStartTime", "startTime", DEFAULT_START_TIME),
        end_date=_get_text(form, "endDate") or start_date,
        end_time=_get_time(form, "hasEndTime", "endTime", DEFAULT_END_TIME),
        timezone=_get_text(form, "timezone") or default_timezone,
        location=_get_text(form, "location"),
        description=_get_text(form, "description"),
        organizer=_get_text(form, "organizer"),
        organizer_email=_get_email(form, "organizerEmail"),
    )


def form_from_pairs(pairs: Iterable[str]) -> dict[str, str]:
    """Turn ``key=value`` strings into a form mapping. Later keys win."""
    form: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        form[key] = value
    logger.debug("Collected %d field(s) from pairs", len(form))
    return form
