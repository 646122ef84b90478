"""Document assembly for both pipelines."""
from __future__ import annotations

import re
from datetime import datetime, timezone

from qrcard.collect import collect_contact, collect_event
from qrcard.exporter import (
    START_DATE_REQUIRED,
    TITLE_REQUIRED,
    DocumentBuilder,
    build_icalendar,
    build_vcard,
    generate_uid,
)
from qrcard.io import check_document
from qrcard.model import ContactRecord, EventRecord

NOW = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)
UID = "event-1-abc@test"


# ── helpers ────────────────────────────────────────────────────────────────────

def _lines(doc: str) -> list[str]:
    assert doc.endswith("\r\n")
    assert doc.count("\n") == doc.count("\r\n")
    return doc[:-2].split("\r\n")


def _event(**kwargs) -> str:
    kwargs.setdefault("title", "Team Sync")
    kwargs.setdefault("start_date", "2024-03-15")
    kwargs.setdefault("end_date", kwargs["start_date"])
    kwargs.setdefault("timezone", "Europe/Berlin")
    return build_icalendar(EventRecord(**kwargs), now=NOW, uid=UID)


# ── Builder ────────────────────────────────────────────────────────────────────

def test_builder_drops_empty_optionals():
    b = DocumentBuilder().line("BEGIN:X").prop("A", "").optional("B", "").optional("C", "c")
    assert b.lines() == ["BEGIN:X", "A:", "C:c"]
    assert b.render() == "BEGIN:X\r\nA:\r\nC:c\r\n"


# ── vCard ──────────────────────────────────────────────────────────────────────

def test_vcard_minimal_exact():
    assert build_vcard(ContactRecord()) == (
        "BEGIN:VCARD\r\n"
        "VERSION:3.0\r\n"
        "N:;;;;\r\n"
        "FN:\r\n"
        "ORG:\r\n"
        "TEL;TYPE=CELL:\r\n"
        "EMAIL;TYPE=INTERNET:\r\n"
        "END:VCARD\r\n"
    )


def test_vcard_name_comma_escaped():
    lines = _lines(build_vcard(collect_contact({"name": "Ada, Lovelace"})))
    assert "N:Ada\\, Lovelace;;;;" in lines
    assert "FN:Ada\\, Lovelace" in lines
    assert not any("\\\\" in line for line in lines)


def test_vcard_optional_lines_omitted():
    doc = build_vcard(ContactRecord(name="Ada"))
    for prefix in ("TITLE", "ORG;TYPE=WORK", "URL", "ADR", "NOTE", "PHOTO"):
        assert f"\r\n{prefix}" not in doc


def test_vcard_full_order():
    rec = ContactRecord(
        name="Ada Lovelace",
        org="Analytical Engines",
        title="Programmer",
        phone="+44 20 7946 0000",
        email="ada@example.com",
        work="R&D",
        url="https://example.com/ada",
        street="12 St James's Square",
        city="London",
        region="",
        postal="SW1Y 4JH",
        country="United Kingdom",
        note="Met at the Royal Society\nFollow up",
    )
    names = [line.split(":", 1)[0] for line in _lines(build_vcard(rec))]
    assert names == [
        "BEGIN", "VERSION", "N", "FN", "ORG", "TITLE", "ORG;TYPE=WORK",
        "TEL;TYPE=CELL", "EMAIL;TYPE=INTERNET", "URL", "ADR;TYPE=WORK", "NOTE", "END",
    ]
    doc = build_vcard(rec)
    assert "ADR;TYPE=WORK:;;12 St James's Square;London;;SW1Y 4JH;United Kingdom\r\n" in doc
    assert "NOTE:Met at the Royal Society\\nFollow up\r\n" in doc


def test_vcard_address_components_escaped_individually():
    rec = ContactRecord(street="1 Main St, Apt 2", city="Spring;field")
    assert "ADR;TYPE=WORK:;;1 Main St\\, Apt 2;Spring\\;field;;;\r\n" in build_vcard(rec)


def test_vcard_address_single_component():
    assert "ADR;TYPE=WORK:;;;Springfield;;;\r\n" in build_vcard(ContactRecord(city="Springfield"))


def test_vcard_parses():
    rec = collect_contact({
        "name": "Ada, Lovelace", "org": "Engines; Ltd", "email": "ADA@example.com",
        "city": "London", "note": "a\nb",
    })
    assert check_document(build_vcard(rec)) == []


# ── iCalendar: required fields ─────────────────────────────────────────────────

def test_missing_title_placeholder():
    doc = build_icalendar(collect_event({"title": "", "startDate": "2024-03-15"}))
    assert doc == (
        "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nBEGIN:VEVENT\r\n"
        f"SUMMARY:{TITLE_REQUIRED}\r\nEND:VEVENT\r\nEND:VCALENDAR\r\n"
    )
    assert "DTSTART" not in doc
    assert "SUMMARY:Event title required" in doc


def test_missing_start_date_placeholder():
    doc = build_icalendar(EventRecord(title="Lunch"))
    assert f"SUMMARY:{START_DATE_REQUIRED}\r\n" in doc
    assert "DTSTART" not in doc


def test_unparseable_start_date_placeholder():
    doc = build_icalendar(EventRecord(title="Lunch", start_date="2024-02-30"))
    assert f"SUMMARY:{START_DATE_REQUIRED}\r\n" in doc


def test_placeholder_parses():
    assert check_document(build_icalendar(EventRecord())) == []


# ── iCalendar: all-day ─────────────────────────────────────────────────────────

def test_team_sync_all_day_exact():
    rec = collect_event({"title": "Team Sync", "startDate": "2024-03-15"})
    assert build_icalendar(rec, now=NOW, uid=UID) == (
        "BEGIN:VCALENDAR\r\n"
        "VERSION:2.0\r\n"
        "PRODID:-//qrcard//Calendar Event Generator//EN\r\n"
        "CALSCALE:GREGORIAN\r\n"
        "BEGIN:VEVENT\r\n"
        "UID:event-1-abc@test\r\n"
        "DTSTAMP:20240301T080000Z\r\n"
        "DTSTART;VALUE=DATE:20240315\r\n"
        "DTEND;VALUE=DATE:20240316\r\n"
        "SUMMARY:Team Sync\r\n"
        "STATUS:CONFIRMED\r\n"
        "SEQUENCE:0\r\n"
        "END:VEVENT\r\n"
        "END:VCALENDAR\r\n"
    )


def test_all_day_rollover():
    assert "DTEND;VALUE=DATE:20250101\r\n" in _event(start_date="2024-12-31")
    assert "DTEND;VALUE=DATE:20240301\r\n" in _event(start_date="2024-02-29")


def test_all_day_lines_shape():
    for start in ("2024-01-01", "2024-02-29", "2024-12-31"):
        lines = _lines(_event(start_date=start))
        dt = [line for line in lines if line.startswith(("DTSTART", "DTEND"))]
        assert len(dt) == 2
        for line in dt:
            assert re.fullmatch(r"DT(START|END);VALUE=DATE:\d{8}", line)
            assert "TZID" not in line


def test_unparseable_end_date_uses_start():
    assert "DTEND;VALUE=DATE:20240316\r\n" in _event(end_date="not-a-date")


# ── iCalendar: timed ───────────────────────────────────────────────────────────

def test_timed_event_tzid():
    doc = _event(start_time="09:00", end_time="10:30")
    assert "DTSTART;TZID=Europe/Berlin:20240315T090000\r\n" in doc
    assert "DTEND;TZID=Europe/Berlin:20240315T103000\r\n" in doc
    assert "VALUE=DATE" not in doc


def test_timed_lines_shape():
    cases = [
        {"start_time": "09:00", "end_time": "10:00"},
        {"start_time": "23:45"},
        {"end_time": "07:05"},
        {"start_time": "08:00", "end_time": "17:00", "end_date": "2024-03-18"},
    ]
    for kwargs in cases:
        lines = _lines(_event(**kwargs))
        dt = [line for line in lines if line.startswith(("DTSTART", "DTEND"))]
        assert len(dt) == 2
        for line in dt:
            assert re.fullmatch(r"DT(START|END);TZID=[^:;]+:\d{8}T\d{6}", line), line


def test_timed_missing_end_time_reuses_start():
    doc = _event(start_time="14:00")
    assert "DTEND;TZID=Europe/Berlin:20240315T140000\r\n" in doc


def test_timed_parses():
    assert check_document(_event(start_time="09:00", end_time="10:00", timezone="UTC")) == []


# ── iCalendar: optional lines ──────────────────────────────────────────────────

def test_single_vevent_and_summary():
    for title in ("Team Sync", "Review; Q1, draft", "Back\\slash"):
        lines = _lines(_event(title=title))
        assert lines.count("BEGIN:VEVENT") == 1
        assert lines.count("END:VEVENT") == 1
        summaries = [line for line in lines if line.startswith("SUMMARY:")]
        assert len(summaries) == 1
    assert "SUMMARY:Review\\; Q1\\, draft\r\n" in _event(title="Review; Q1, draft")


def test_location_description_omitted_when_empty():
    doc = _event()
    assert "LOCATION" not in doc
    assert "DESCRIPTION" not in doc


def test_location_description_escaped():
    doc = _event(location="Room 4, Floor 2", description="Agenda:\n1. Intro; 2. Q&A")
    assert "LOCATION:Room 4\\, Floor 2\r\n" in doc
    assert "DESCRIPTION:Agenda:\\n1. Intro\\; 2. Q&A\r\n" in doc


def test_organizer_with_name():
    doc = _event(organizer="Hopper, Grace", organizer_email="grace@navy.mil")
    assert "ORGANIZER;CN=Hopper\\, Grace:mailto:grace@navy.mil\r\n" in doc


def test_organizer_email_only():
    assert "ORGANIZER:mailto:grace@navy.mil\r\n" in _event(organizer_email="grace@navy.mil")


def test_organizer_name_only_omitted():
    assert "ORGANIZER" not in _event(organizer="Grace Hopper")


def test_trailer_fields_order():
    lines = _lines(_event(location="HQ"))
    assert lines[-4:] == ["STATUS:CONFIRMED", "SEQUENCE:0", "END:VEVENT", "END:VCALENDAR"]


# ── Repeatability ──────────────────────────────────────────────────────────────

def test_repeat_calls_differ_only_in_uid_and_stamp():
    rec = EventRecord(title="Sync", start_date="2024-03-15", end_date="2024-03-15",
                      start_time="09:00", timezone="UTC")

    def stable(doc: str) -> list[str]:
        return [line for line in _lines(doc) if not line.startswith(("UID:", "DTSTAMP:"))]

    assert stable(build_icalendar(rec)) == stable(build_icalendar(rec))


def test_generate_uid_shape():
    assert re.fullmatch(r"event-\d+-[a-z0-9]{9}@qrcard\.local", generate_uid())
    assert generate_uid("x.test", now_ms=42).startswith("event-42-")
    assert generate_uid() != generate_uid()


# ── Malformed input ────────────────────────────────────────────────────────────

def test_unparseable_times_make_all_day():
    doc = _event(start_time="noon", end_time="late")
    assert "DTSTART;VALUE=DATE:20240315\r\n" in doc
    assert "DTEND;VALUE=DATE:20240316\r\n" in doc
    assert "TZID" not in doc


def test_unparseable_end_time_reuses_start():
    doc = _event(start_time="09:15", end_time="soon")
    assert "DTSTART;TZID=Europe/Berlin:20240315T091500\r\n" in doc
    assert "DTEND;TZID=Europe/Berlin:20240315T091500\r\n" in doc


def test_collected_malformed_time_is_all_day():
    rec = collect_event({"title": "Lunch", "startDate": "2024-03-15", "startTime": "noon"})
    lines = _lines(build_icalendar(rec, now=NOW, uid=UID))
    assert "DTSTART;VALUE=DATE:20240315" in lines
    assert "DTEND;VALUE=DATE:20240316" in lines


def test_url_not_text_escaped():
    doc = build_vcard(ContactRecord(url="https://example.com/a,b;c"))
    assert "URL:https://example.com/a,b;c\r\n" in doc
