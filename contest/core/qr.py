"""Scannable codes linking printed score sheets to the score-entry view."""

from io import BytesIO
from urllib.parse import quote

import qrcode
from qrcode.exceptions import DataOverflowError


class QrGenerationError(Exception):
    """A QR image could not be produced for a page."""


def score_entry_url(base_url: str, activity_id: str) -> str:
    """Deep link for an activity, filling {activity_id} in the template."""
    encoded = quote(str(activity_id), safe='')
    if '{activity_id}' in base_url:
        return base_url.replace('{activity_id}', encoded)
    separator = '&' if '?' in base_url else '?'
    return f'{base_url}{separator}activityId={encoded}'


def make_qr_png(payload: str) -> bytes:
    """Encode payload as a QR code PNG."""
    try:
        qr_img = qrcode.make(payload)
        buffer = BytesIO()
        qr_img.save(buffer, format='PNG')
    except (DataOverflowError, ValueError, OSError) as e:
        raise QrGenerationError(str(e)) from e
    return buffer.getvalue()
