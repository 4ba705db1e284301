# spoton/services/booking_service.py
"""
Booking commit with commit-time conflict re-check, plus booking lookups.

At most one winner per spot/overlapping window:
  - an in-process striped lock keyed by spot id serialises commits on the same spot
  - SELECT ... FOR UPDATE on the spot row serialises across processes (PostgreSQL)
  - availability is re-checked inside the same transaction as the INSERT
A conflict raises SpotUnavailable. No retry, no silent reassignment.
"""

import threading
from datetime import date, datetime
from typing import Optional, Sequence
from sqlalchemy.orm import Session, lazyload
from spoton.models.building import Building
from spoton.models.parking_spot import ParkingSpot
from spoton.models.booking import Booking, STATUS_ACTIVE, ALL_STATUSES
from spoton.services.time_window import TimeWindow
from spoton.services.availability_service import validate_window, is_spot_available
from spoton.services.qr_service import booking_qr_payload, encode_booking_qr
from spoton.services.change_feed import publish
from spoton.services.errors import InvalidInput, SpotUnavailable, store_errors
from spoton.utils.logger import get_logger

logger = get_logger(__name__)

# Fixed pool of striped locks; spots sharing a stripe just serialise together
LOCK_STRIPES = 64
_spot_locks = tuple(threading.Lock() for _ in range(LOCK_STRIPES))


def _spot_lock(spot_id: int) -> threading.Lock:
    return _spot_locks[spot_id % LOCK_STRIPES]


def commit_booking(
    db: Session,
    user_id: str,
    spot_id: int,
    window: TimeWindow,
    qr_encoder=encode_booking_qr,
    today: date = None,
    feed=None,
) -> Booking:
    if not user_id:
        raise InvalidInput("user_id is required")
    validate_window(window, today)

    with _spot_lock(spot_id):
        try:
            with store_errors(db, "booking commit"):
                spot = (
                    db.query(ParkingSpot)
                    .options(lazyload("*"))
                    .filter(ParkingSpot.id == spot_id)
                    .with_for_update()
                    .first()
                )
                if not spot:
                    raise InvalidInput(f"Spot {spot_id} not found", not_found=True)
                building = db.query(Building).filter(Building.id == spot.building_id).first()
                if not building or not building.is_active:
                    raise InvalidInput(f"Building {spot.building_id} not found", not_found=True)
                if not spot.is_active:
                    raise SpotUnavailable(f"Spot {spot_id} is no longer in service")
                if not is_spot_available(db, spot_id, window):
                    logger.info(f"[BOOK] Conflict: spot={spot_id} {window} user={user_id}")
                    raise SpotUnavailable(f"Spot {spot_id} is already booked for {window}")

                booking = Booking(
                    user_id=user_id,
                    spot_id=spot_id,
                    date=window.date,
                    start_time=window.start,
                    end_time=window.end,
                    status=STATUS_ACTIVE,
                    created_at=datetime.utcnow(),
                )
                db.add(booking)
                db.flush()   # assigns booking.id for the QR payload
                booking.qr_code = qr_encoder(booking_qr_payload(booking))
                db.commit()
                db.refresh(booking)
        except Exception:
            db.rollback()
            raise

    logger.info(f"[BOOK] Booking {booking.id}: spot={spot_id} {window} user={user_id}")
    publish(feed, "bookings", "insert", booking)
    return booking


def get_booking(db: Session, booking_id: int) -> Booking:
    with store_errors(db, "booking lookup"):
        booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise InvalidInput(f"Booking {booking_id} not found", not_found=True)
    return booking


def get_user_bookings(db: Session, user_id: str) -> list[Booking]:
    """All of a user's bookings, newest first."""
    with store_errors(db, "user bookings"):
        return (
            db.query(Booking)
            .filter(Booking.user_id == user_id)
            .order_by(Booking.date.desc(), Booking.start_time.desc())
            .all()
        )


def get_active_booking(db: Session, user_id: str, now: datetime = None) -> Optional[Booking]:
    """The user's active booking whose window contains now, if any."""
    now = now or datetime.now()
    with store_errors(db, "active booking"):
        return (
            db.query(Booking)
            .filter(
                Booking.user_id == user_id,
                Booking.date == now.date(),
                Booking.status == STATUS_ACTIVE,
                Booking.start_time <= now.time(),
                Booking.end_time > now.time(),
            )
            .order_by(Booking.start_time.asc())
            .first()
        )


def list_bookings(db: Session, statuses: Sequence[str] = None, on_date: date = None, limit: int = 200) -> list[Booking]:
    """Admin view: all bookings, filterable by status and date."""
    unknown = set(statuses or ()) - set(ALL_STATUSES)
    if unknown:
        raise InvalidInput(f"Unknown status: {', '.join(sorted(unknown))}")
    with store_errors(db, "booking list"):
        q = db.query(Booking)
        if statuses:
            q = q.filter(Booking.status.in_(statuses))
        if on_date:
            q = q.filter(Booking.date == on_date)
        return q.order_by(Booking.date.desc(), Booking.start_time.desc()).limit(limit).all()
