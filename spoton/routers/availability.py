# spoton/routers/availability.py
"""Spot availability for a building, date and time window."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from spoton.database import get_db
from spoton.models.profile import Profile
from spoton.schemas.availability import AvailabilityOut
from spoton.services.availability_service import available_spots
from spoton.services.identity import get_current_user
from spoton.services.time_window import TimeWindow

router = APIRouter()


@router.get("/availability", response_model=AvailabilityOut, summary="Spots of a building with availability flags")
def get_availability(
    building_id: int,
    date: str,
    start_time: str,
    end_time: str,
    only_open: bool = False,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    """
    Every active spot of the building, ordered by spot number, with is_available.
    A snapshot only: POST /bookings re-checks at commit time.
    """
    window = TimeWindow.parse(date, start_time, end_time)
    spots = available_spots(db, building_id, window)
    total = len(spots)
    open_count = sum(1 for s in spots if s.is_available)
    if only_open:
        spots = [s for s in spots if s.is_available]
    return {
        "building_id": building_id,
        "date": window.date.isoformat(),
        "start_time": f"{window.start:%H:%M}",
        "end_time": f"{window.end:%H:%M}",
        "total": total,
        "available": open_count,
        "spots": spots,
    }
