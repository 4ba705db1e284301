# spoton/services/lifecycle_service.py
"""
Booking status lifecycle.

    active ─┬─> completed   (exit scan)
            ├─> cancelled   (user cancels)
            ├─> expired     (window ended, never entered)
            └─> fined       (admin issues a fine)

All four targets are terminal. Entry scans stamp entry_time and keep the
booking active; the exit scan stamps exit_time and completes it.
Each status change is a conditional UPDATE on the current status, so two
racing transitions cannot both win.
"""

from datetime import datetime
from sqlalchemy import or_, and_
from sqlalchemy.orm import Session
from spoton.models.booking import (
    Booking, ALL_STATUSES, TERMINAL_STATUSES,
    STATUS_ACTIVE, STATUS_COMPLETED, STATUS_CANCELLED, STATUS_EXPIRED, STATUS_FINED,
)
from spoton.services.notification_service import notify
from spoton.services.change_feed import publish
from spoton.services.qr_service import parse_qr_payload, payload_matches
from spoton.services.errors import InvalidInput, InvalidTransition, store_errors
from spoton.config import settings
from spoton.utils.logger import get_logger

logger = get_logger(__name__)

GATE_ENTRY = "entry"
GATE_EXIT = "exit"
GATES = (GATE_ENTRY, GATE_EXIT)

ALLOWED_TRANSITIONS = {
    STATUS_ACTIVE: {STATUS_COMPLETED, STATUS_CANCELLED, STATUS_EXPIRED, STATUS_FINED},
}


def check_transition(current: str, target: str):
    if target not in ALL_STATUSES:
        raise InvalidInput(f"Unknown status '{target}'")
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(f"Booking is already {current}")
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransition(f"Cannot change booking from {current} to {target}")


def _load(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise InvalidInput(f"Booking {booking_id} not found", not_found=True)
    return booking


def _apply(db: Session, booking: Booking, expected_status: str, changes: dict, extra_filters=()):
    """Conditional update: only applies if the row is still in expected_status."""
    updated = (
        db.query(Booking)
        .filter(Booking.id == booking.id, Booking.status == expected_status, *extra_filters)
        .update(changes, synchronize_session=False)
    )
    if updated != 1:
        db.rollback()
        raise InvalidTransition(f"Booking {booking.id} was changed concurrently")
    db.commit()
    db.refresh(booking)


async def transition(db: Session, booking_id: int, target: str, effective_at: datetime = None,
                     fine_amount: float = None, notifier=notify, feed=None) -> Booking:
    effective_at = effective_at or datetime.now()

    with store_errors(db, "status transition"):
        booking = _load(db, booking_id)
        previous = booking.status
        check_transition(previous, target)

        changes = {"status": target}
        if target == STATUS_COMPLETED:
            changes["exit_time"] = effective_at
        if target == STATUS_FINED:
            fine_amount = settings.DEFAULT_FINE_AMOUNT if fine_amount is None else fine_amount
            if fine_amount < 0:
                raise InvalidInput("Fine amount cannot be negative")
            changes["fine_amount"] = fine_amount
        _apply(db, booking, previous, changes)

    logger.info(f"[LIFECYCLE] Booking {booking.id}: {previous} → {target}")
    publish(feed, "bookings", "update", booking)

    if target == STATUS_FINED:
        try:
            await notifier(
                db, booking.user_id, "Parking Fine",
                f"You have been fined {fine_amount:g} {settings.FINE_CURRENCY} "
                f"for not exiting the parking properly.",
                "fine", feed=feed,
            )
        except Exception as e:
            # Status change is already committed
            db.rollback()
            logger.error(f"[LIFECYCLE] Fine notification failed for booking {booking.id}: {e}")

    return booking


async def record_entry(db: Session, booking_id: int, effective_at: datetime = None, feed=None) -> Booking:
    """Entry scan: stamps entry_time, status stays active."""
    effective_at = effective_at or datetime.now()
    with store_errors(db, "entry scan"):
        booking = _load(db, booking_id)
        if booking.status != STATUS_ACTIVE:
            raise InvalidTransition(f"Booking is already {booking.status}")
        if booking.entry_time is not None:
            raise InvalidTransition(f"Entry already recorded for booking {booking.id}")
        _apply(db, booking, STATUS_ACTIVE, {"entry_time": effective_at},
               extra_filters=(Booking.entry_time.is_(None),))
    logger.info(f"[LIFECYCLE] Booking {booking.id}: entry at {effective_at:%H:%M}")
    publish(feed, "bookings", "update", booking)
    return booking


async def record_exit(db: Session, booking_id: int, effective_at: datetime = None, feed=None) -> Booking:
    """Exit scan: stamps exit_time and completes the booking."""
    return await transition(db, booking_id, STATUS_COMPLETED, effective_at=effective_at, feed=feed)


async def record_scan(db: Session, payload: str, gate: str, effective_at: datetime = None, feed=None) -> Booking:
    """
    Gate scanner entry point: decodes the booking QR payload, checks it against
    the stored booking, then records an entry or exit scan.
    """
    if gate not in GATES:
        raise InvalidInput(f"Unknown gate '{gate}'")
    data = parse_qr_payload(payload)
    if data is None or not isinstance(data.get("bookingId"), int):
        raise InvalidInput("Unreadable booking QR code")
    with store_errors(db, "QR scan"):
        booking = _load(db, data["bookingId"])
    if not payload_matches(data, booking):
        logger.warning(f"[LIFECYCLE] QR payload does not match booking {booking.id}")
        raise InvalidInput("QR code does not match the booking")
    if gate == GATE_ENTRY:
        return await record_entry(db, booking.id, effective_at=effective_at, feed=feed)
    return await record_exit(db, booking.id, effective_at=effective_at, feed=feed)


async def cancel_booking(db: Session, booking_id: int, user_id: str = None, feed=None) -> Booking:
    """User cancellation. With user_id set, only the owner may cancel."""
    if user_id is not None:
        with store_errors(db, "booking lookup"):
            booking = _load(db, booking_id)
        if booking.user_id != user_id:
            raise InvalidInput(f"Booking {booking_id} not found", not_found=True)
    return await transition(db, booking_id, STATUS_CANCELLED, feed=feed)


async def issue_fine(db: Session, booking_id: int, amount: float = None, notifier=notify, feed=None) -> Booking:
    return await transition(db, booking_id, STATUS_FINED, fine_amount=amount, notifier=notifier, feed=feed)


async def expire_booking(db: Session, booking_id: int, feed=None) -> Booking:
    return await transition(db, booking_id, STATUS_EXPIRED, feed=feed)


async def expire_overdue(db: Session, now: datetime = None, feed=None) -> list[Booking]:
    """Expire every active booking whose window has ended without an entry scan."""
    now = now or datetime.now()
    with store_errors(db, "overdue sweep"):
        overdue = (
            db.query(Booking)
            .filter(
                Booking.status == STATUS_ACTIVE,
                Booking.entry_time.is_(None),
                or_(
                    Booking.date < now.date(),
                    and_(Booking.date == now.date(), Booking.end_time <= now.time()),
                ),
            )
            .order_by(Booking.id.asc())
            .all()
        )
        ids = [b.id for b in overdue]

    expired = []
    for booking_id in ids:
        try:
            expired.append(await transition(db, booking_id, STATUS_EXPIRED, effective_at=now, feed=feed))
        except InvalidTransition:
            # Cancelled or scanned in between the sweep query and the update
            logger.info(f"[LIFECYCLE] Booking {booking_id} changed during sweep: skipped")
    if expired:
        logger.info(f"[LIFECYCLE] Expired {len(expired)} overdue booking(s)")
    return expired
