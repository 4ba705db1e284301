# spoton/services/availability_service.py
"""
Availability projection: which spots of a building are free for a window.

  1. Active spots of the building
  2. Bookings on the window's date that hold a spot (active | completed)
  3. A spot is available iff none of its bookings overlaps the window
  4. Every active spot is returned with is_available, by spot number ascending

Read-only snapshot. It races with concurrent commits, which is why
booking_service re-validates inside the commit transaction.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session
from spoton.models.building import Building
from spoton.models.parking_spot import ParkingSpot
from spoton.models.booking import Booking, HOLDING_STATUSES
from spoton.services.time_window import TimeWindow, overlaps, booking_window
from spoton.services.errors import InvalidInput, store_errors
from spoton.config import settings
from spoton.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SpotAvailability:
    spot_id: int
    building_id: int
    spot_number: int
    spot_type: Optional[str]
    is_shaded: bool
    is_available: bool


def validate_window(window: TimeWindow, today: date = None):
    """Reject past-dated windows unless ALLOW_PAST_DATES is set."""
    today = today or date.today()
    if not settings.ALLOW_PAST_DATES and window.date < today:
        raise InvalidInput(f"Date {window.date.isoformat()} is in the past")


def holding_bookings_query(db: Session, window: TimeWindow, spot_ids):
    """Spot-holding bookings on the window's date that overlap it, for the given spots."""
    return db.query(Booking).filter(
        Booking.spot_id.in_(spot_ids),
        Booking.date == window.date,
        Booking.status.in_(HOLDING_STATUSES),
        Booking.start_time < window.end,
        Booking.end_time > window.start,
    )


def get_building(db: Session, building_id: int) -> Building:
    building = db.query(Building).filter(Building.id == building_id).first()
    if not building or not building.is_active:
        raise InvalidInput(f"Building {building_id} not found", not_found=True)
    return building


def available_spots(db: Session, building_id: int, window: TimeWindow, today: date = None) -> list[SpotAvailability]:
    validate_window(window, today)

    with store_errors(db, "availability query"):
        get_building(db, building_id)
        spots = (
            db.query(ParkingSpot)
            .filter(ParkingSpot.building_id == building_id, ParkingSpot.is_active == True)  # noqa: E712
            .order_by(ParkingSpot.spot_number.asc(), ParkingSpot.id.asc())
            .all()
        )
        if not spots:
            return []
        bookings = holding_bookings_query(db, window, [s.id for s in spots]).all()

    taken = {b.spot_id for b in bookings if overlaps(booking_window(b), window)}
    result = [
        SpotAvailability(
            spot_id=s.id,
            building_id=s.building_id,
            spot_number=s.spot_number,
            spot_type=s.spot_type.name if s.spot_type else None,
            is_shaded=bool(s.spot_type and s.spot_type.is_shaded),
            is_available=s.id not in taken,
        )
        for s in spots
    ]
    logger.debug(f"[AVAIL] building={building_id} {window}: "
                 f"{len(result) - len(taken)}/{len(result)} open")
    return result


def open_spots(db: Session, building_id: int, window: TimeWindow, today: date = None) -> list[SpotAvailability]:
    """Only the available entries of available_spots()."""
    return [s for s in available_spots(db, building_id, window, today) if s.is_available]


def is_spot_available(db: Session, spot_id: int, window: TimeWindow) -> bool:
    """Single-spot check used by the commit path. Caller handles locking."""
    conflicts = holding_bookings_query(db, window, [spot_id]).all()
    return not any(overlaps(booking_window(b), window) for b in conflicts)
