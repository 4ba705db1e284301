# spoton/services/qr_service.py
"""
QR codes for bookings.
The payload is JSON (booking id, spot id, user id, window) rendered to a PNG
and returned as a data: URL that the UI shows and the gate scanner reads back.
"""

import base64
import io
import json
from typing import Optional

import qrcode

from spoton.utils.logger import get_logger

logger = get_logger(__name__)


def booking_qr_payload(booking) -> bytes:
    """Opaque QR payload for a persisted booking."""
    data = {
        "bookingId": booking.id,
        "spotId": booking.spot_id,
        "userId": booking.user_id,
        "date": booking.date.isoformat(),
        "startTime": booking.start_time.strftime("%H:%M"),
        "endTime": booking.end_time.strftime("%H:%M"),
    }
    return json.dumps(data, separators=(",", ":")).encode("utf-8")


def encode_booking_qr(payload: bytes) -> str:
    """Render payload as a QR PNG and return it as a data: URL."""
    img = qrcode.make(payload.decode("utf-8"))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def parse_qr_payload(text: str) -> Optional[dict]:
    """Decode a scanned payload. Returns None if it is not a booking payload."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        logger.warning("Unreadable QR payload")
        return None
    if not isinstance(data, dict) or "bookingId" not in data:
        return None
    return data


def payload_matches(data: dict, booking) -> bool:
    """True if a scanned payload describes exactly this booking as stored."""
    return data == json.loads(booking_qr_payload(booking))
