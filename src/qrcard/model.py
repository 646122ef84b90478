from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ContactRecord:
    name: str = ""
    org: str = ""
    title: str = ""
    phone: str = ""
    email: str = ""
    use_gravatar: bool = False
    work: str = ""          # work organisation / department
    url: str = ""
    street: str = ""
    city: str = ""
    region: str = ""
    postal: str = ""
    country: str = ""
    note: str = ""

    def address_parts(self) -> tuple[str, str, str, str, str]:
        return (self.street, self.city, self.region, self.postal, self.country)


@dataclass(frozen=True)
class EventRecord:
    title: str = ""
    start_date: str = ""    # YYYY-MM-DD
    start_time: str = ""    # HH:MM, empty when not set
    end_date: str = ""
    end_time: str = ""
    timezone: str = ""
    location: str = ""
    description: str = ""
    organizer: str = ""
    organizer_email: str = ""

    @property
    def is_all_day(self) -> bool:
        """Derived from the two time fields, never stored."""
        return not self.start_time and not self.end_time


@dataclass(frozen=True)
class PayloadSizeReport:
    size_bytes: int
    status: str             # "ok" | "warn"
    warn_threshold: int
    tip_threshold: int

    @property
    def is_warning(self) -> bool:
        return self.status == "warn"


@dataclass(frozen=True)
class QrRequest:
    payload: str
    size: int               # square pixel dimension
    ecl: str                # L | M | Q | H
