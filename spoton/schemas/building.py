# spoton/schemas/building.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class BuildingCreate(BaseModel):
    code: str
    name: str
    location: Optional[str] = None


class BuildingUpdate(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = None


class BuildingOut(BaseModel):
    id: int
    code: str
    name: str
    location: Optional[str]
    is_active: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class SpotTypeCreate(BaseModel):
    name: str                   # regular | shaded | accessible
    description: Optional[str] = None
    is_shaded: bool = False


class SpotTypeUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_shaded: Optional[bool] = None


class SpotTypeOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    is_shaded: bool

    class Config:
        from_attributes = True


class SpotCreate(BaseModel):
    building_id: int
    spot_type_id: int
    spot_number: Optional[int] = None     # None = after the building's highest number
    count: int = Field(1, ge=1, le=200)   # consecutive spots to add


class SpotUpdate(BaseModel):
    building_id: Optional[int] = None
    spot_type_id: Optional[int] = None
    spot_number: Optional[int] = None


class SpotOut(BaseModel):
    id: int
    building_id: int
    spot_type_id: int
    spot_number: int
    is_active: bool

    class Config:
        from_attributes = True


class ActiveUpdate(BaseModel):
    is_active: bool
