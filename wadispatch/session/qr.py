"""Renders pairing payloads into scannable PNG images."""

from __future__ import annotations

import io

import qrcode
from qrcode.image.pure import PyPNGImage


def render_qr(payload: str) -> bytes:
    """Encode ``payload`` as a QR code and return the PNG bytes."""
    image = qrcode.make(payload, image_factory=PyPNGImage)
    buffer = io.BytesIO()
    image.save(buffer)
    return buffer.getvalue()
