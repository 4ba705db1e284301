# spoton/routers/bookings.py
"""Booking commit, lookups and status changes (cancel, entry/exit scans, fines, expiry)."""

from datetime import date as date_type
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from spoton.database import get_db
from spoton.models.profile import Profile, ROLE_ADMIN
from spoton.schemas.booking import BookingCreate, BookingOut, FineRequest, ScanRequest
from spoton.services import booking_service, lifecycle_service
from spoton.services.change_feed import get_change_feed
from spoton.services.errors import InvalidInput
from spoton.services.identity import get_current_user, require_admin
from spoton.services.time_window import TimeWindow

router = APIRouter()


def _own_booking(db: Session, booking_id: int, user: Profile):
    """Load a booking the caller may act on. Admins may act on any booking."""
    booking = booking_service.get_booking(db, booking_id)
    if booking.user_id != user.id and user.user_role != ROLE_ADMIN:
        raise InvalidInput(f"Booking {booking_id} not found", not_found=True)
    return booking


@router.post("/bookings", response_model=BookingOut, status_code=201, summary="Book a spot")
def create_booking(
    body: BookingCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
    feed=Depends(get_change_feed),
):
    """Returns 409 if the spot was taken since the availability query: re-query and pick again."""
    window = TimeWindow.parse(body.date, body.start_time, body.end_time)
    return booking_service.commit_booking(db, user.id, body.spot_id, window, feed=feed)


@router.get("/bookings/mine", response_model=list[BookingOut], summary="My bookings, newest first")
def my_bookings(db: Session = Depends(get_db), user: Profile = Depends(get_current_user)):
    return booking_service.get_user_bookings(db, user.id)


@router.get("/bookings/active", response_model=Optional[BookingOut], summary="My booking in progress right now")
def my_active_booking(db: Session = Depends(get_db), user: Profile = Depends(get_current_user)):
    return booking_service.get_active_booking(db, user.id)


@router.get("/bookings", response_model=list[BookingOut], summary="All bookings (admin)")
def all_bookings(
    status: Optional[list[str]] = Query(None),
    date: Optional[date_type] = None,
    limit: int = 200,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin),
):
    return booking_service.list_bookings(db, statuses=status, on_date=date, limit=limit)


@router.post("/bookings/expire-overdue", response_model=list[BookingOut], summary="Expire ended, never-entered bookings (admin)")
async def expire_overdue(db: Session = Depends(get_db), admin: Profile = Depends(require_admin),
                         feed=Depends(get_change_feed)):
    return await lifecycle_service.expire_overdue(db, feed=feed)


@router.post("/bookings/scan", response_model=BookingOut, summary="Gate QR scan (admin)")
async def scan_booking_qr(body: ScanRequest, db: Session = Depends(get_db),
                          admin: Profile = Depends(require_admin), feed=Depends(get_change_feed)):
    """Entry or exit scan driven by the QR code shown at the gate; 400 if the code is not genuine."""
    return await lifecycle_service.record_scan(db, body.payload, body.gate, feed=feed)


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: int, db: Session = Depends(get_db), user: Profile = Depends(get_current_user)):
    return _own_booking(db, booking_id, user)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut, summary="Cancel a booking")
async def cancel_booking(booking_id: int, db: Session = Depends(get_db),
                         user: Profile = Depends(get_current_user), feed=Depends(get_change_feed)):
    _own_booking(db, booking_id, user)
    return await lifecycle_service.cancel_booking(db, booking_id, feed=feed)


@router.post("/bookings/{booking_id}/entry", response_model=BookingOut, summary="Entry gate scan")
async def record_entry(booking_id: int, db: Session = Depends(get_db),
                       user: Profile = Depends(get_current_user), feed=Depends(get_change_feed)):
    _own_booking(db, booking_id, user)
    return await lifecycle_service.record_entry(db, booking_id, feed=feed)


@router.post("/bookings/{booking_id}/exit", response_model=BookingOut, summary="Exit gate scan")
async def record_exit(booking_id: int, db: Session = Depends(get_db),
                      user: Profile = Depends(get_current_user), feed=Depends(get_change_feed)):
    _own_booking(db, booking_id, user)
    return await lifecycle_service.record_exit(db, booking_id, feed=feed)


@router.post("/bookings/{booking_id}/fine", response_model=BookingOut, summary="Fine a booking (admin)")
async def fine_booking(booking_id: int, body: FineRequest = None, db: Session = Depends(get_db),
                       admin: Profile = Depends(require_admin), feed=Depends(get_change_feed)):
    amount = body.amount if body else None
    return await lifecycle_service.issue_fine(db, booking_id, amount=amount, feed=feed)


@router.post("/bookings/{booking_id}/expire", response_model=BookingOut, summary="Expire a booking (admin)")
async def expire_booking(booking_id: int, db: Session = Depends(get_db),
                         admin: Profile = Depends(require_admin), feed=Depends(get_change_feed)):
    return await lifecycle_service.expire_booking(db, booking_id, feed=feed)
