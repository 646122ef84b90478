"""PNG rendering of a QR request with the ``qrcode`` library.

The serializer never depends on this module; rendering failures surface as
QrRenderError so callers can show a diagnostic instead of a traceback.
"""
from __future__ import annotations

import logging
from pathlib import Path

import qrcode
from qrcode.exceptions import DataOverflowError

from .model import QrRequest

logger = logging.getLogger(__name__)

BORDER = 4

_ECL_CONSTANTS = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}


class QrRenderError(RuntimeError):
    """The QR collaborator could not produce an image."""


def make_image(request: QrRequest):
    qr = qrcode.QRCode(
        error_correction=_ECL_CONSTANTS[request.ecl],
        box_size=1,
        border=BORDER,
    )
    try:
        qr.add_data(request.payload.encode("utf-8"))
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as exc:
        # newer qrcode rejects version 41 in the setter before best_fit can overflow
        raise QrRenderError(f"Payload too large for a QR code at level {request.ecl}") from exc

    modules = qr.modules_count + 2 * BORDER
    # integer box size closest to the requested pixel dimension
    qr.box_size = max(1, round(request.size / modules))
    logger.debug("QR version %s, %d modules, box %d px", qr.version, modules, qr.box_size)
    return qr.make_image(fill_color="black", back_color="white")


def render_qr(request: QrRequest, path: Path) -> Path:
    """Write the QR image for ``request`` to ``path`` as PNG."""
    img = make_image(request)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        img.save(str(path))
    except OSError as exc:
        raise QrRenderError(f"Could not write {path}: {exc}") from exc
    logger.info("QR image written to %s", path)
    return path
