# spoton/schemas/availability.py
from pydantic import BaseModel
from typing import Optional


class SpotAvailabilityOut(BaseModel):
    spot_id: int
    building_id: int
    spot_number: int
    spot_type: Optional[str]
    is_shaded: bool
    is_available: bool

    class Config:
        from_attributes = True


class AvailabilityOut(BaseModel):
    building_id: int
    date: str
    start_time: str
    end_time: str
    total: int
    available: int
    spots: list[SpotAvailabilityOut]
