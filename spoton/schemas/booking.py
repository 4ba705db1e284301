# spoton/schemas/booking.py
from pydantic import BaseModel
from datetime import date, datetime, time
from typing import Optional


class BookingCreate(BaseModel):
    spot_id: int
    date: str                  # YYYY-MM-DD
    start_time: str            # HH:MM
    end_time: str              # HH:MM


class BookingOut(BaseModel):
    id: int
    user_id: str
    spot_id: int
    date: date
    start_time: time
    end_time: time
    status: str
    entry_time: Optional[datetime]
    exit_time: Optional[datetime]
    fine_amount: Optional[float]
    qr_code: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class FineRequest(BaseModel):
    amount: Optional[float] = None     # Defaults to DEFAULT_FINE_AMOUNT


class ScanRequest(BaseModel):
    payload: str               # text decoded from the booking QR image
    gate: str = "entry"        # entry | exit
