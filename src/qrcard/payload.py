from __future__ import annotations

from typing import Any

from .model import PayloadSizeReport, QrRequest

ENCODING = "utf-8"
WARN_THRESHOLD = 2500
TIP_THRESHOLD = 2900

MIN_SIZE = 128
MAX_SIZE = 2048
DEFAULT_SIZE = 384

ECL_LEVELS = ("L", "M", "Q", "H")
DEFAULT_ECL = "M"


def payload_bytes(document: str) -> int:
    """Encoded length in bytes, not characters."""
    return len(document.encode(ENCODING))


def measure_payload(
    document: str,
    warn_threshold: int = WARN_THRESHOLD,
    tip_threshold: int = TIP_THRESHOLD,
) -> PayloadSizeReport:
    """Size a document and classify it against the QR compatibility budget.

    Advisory only; a ``warn`` result never blocks generation.
    """
    size = payload_bytes(document)
    return PayloadSizeReport(
        size_bytes=size,
        status="warn" if size > warn_threshold else "ok",
        warn_threshold=warn_threshold,
        tip_threshold=tip_threshold,
    )


def clamp_size(value: Any, default: int = DEFAULT_SIZE) -> int:
    try:
        size = int(str(value).strip()) if value not in (None, "") else default
    except ValueError:
        size = default
    return max(MIN_SIZE, min(size, MAX_SIZE))


def normalize_ecl(value: Any, default: str = DEFAULT_ECL) -> str:
    level = str(value or "").strip().upper()
    return level if level in ECL_LEVELS else default


def build_qr_request(
    document: str,
    size: Any = None,
    ecl: Any = None,
    default_size: int = DEFAULT_SIZE,
    default_ecl: str = DEFAULT_ECL,
) -> QrRequest:
    """Bundle the document with the rendering parameters for the QR encoder."""
    return QrRequest(
        payload=document,
        size=clamp_size(size, default_size),
        ecl=normalize_ecl(ecl, default_ecl),
    )
