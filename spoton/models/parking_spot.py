# spoton/models/parking_spot.py
"""
Parking spots table: one row per physical space, the unit of allocation.
Spots are deactivated by an administrator, never deleted while bookings reference them.
"""

from sqlalchemy import Column, Integer, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from spoton.database import Base


class ParkingSpot(Base):
    __tablename__ = "parking_spots"
    __table_args__ = (
        UniqueConstraint("building_id", "spot_number", name="uq_spot_building_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    building_id = Column(Integer, ForeignKey("buildings.id"), nullable=False, index=True)
    spot_type_id = Column(Integer, ForeignKey("spot_types.id"), nullable=False)
    spot_number = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime)

    building = relationship("Building", lazy="joined")
    spot_type = relationship("SpotType", lazy="joined")

    def __repr__(self):
        return f"<ParkingSpot {self.id} building={self.building_id} no={self.spot_number}>"
