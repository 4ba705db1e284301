# spoton/models/booking.py
"""
Bookings table: one user holding one spot for one same-day time window.
Rows are never deleted: cancellation, expiry, fines and exits are status changes.
Only 'active' and 'completed' bookings hold the physical spot.
"""

from sqlalchemy import Column, Integer, String, DateTime, Date, Time, Float, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from spoton.database import Base

STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_EXPIRED = "expired"
STATUS_FINED = "fined"

ALL_STATUSES = (STATUS_ACTIVE, STATUS_COMPLETED, STATUS_CANCELLED, STATUS_EXPIRED, STATUS_FINED)
HOLDING_STATUSES = (STATUS_ACTIVE, STATUS_COMPLETED)
TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED, STATUS_EXPIRED, STATUS_FINED)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_spot_date_status", "spot_id", "date", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    spot_id = Column(Integer, ForeignKey("parking_spots.id"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String(20), default=STATUS_ACTIVE, nullable=False)
    entry_time = Column(DateTime)
    exit_time = Column(DateTime)
    fine_amount = Column(Float)
    qr_code = Column(Text)              # data: URL of the rendered QR image
    created_at = Column(DateTime)

    spot = relationship("ParkingSpot", lazy="joined")

    def __repr__(self):
        return (f"<Booking {self.id} spot={self.spot_id} {self.date} "
                f"{self.start_time}-{self.end_time} status={self.status}>")
