# spoton/routers/buildings.py
"""Buildings, spot types and spot inventory: read for everyone, write for admins."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
from spoton.database import get_db
from spoton.models.building import Building
from spoton.models.spot_type import SpotType
from spoton.models.parking_spot import ParkingSpot
from spoton.models.profile import Profile
from spoton.schemas.building import (
    BuildingCreate, BuildingUpdate, BuildingOut, SpotTypeCreate, SpotTypeUpdate, SpotTypeOut,
    SpotCreate, SpotUpdate, SpotOut, ActiveUpdate,
)
from spoton.services.identity import require_admin
from spoton.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def _commit_or_400(db: Session, detail: str):
    """Commit, turning a unique-constraint violation into a 400 instead of a 500."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Rejected inventory write: {detail} ({e.orig})")
        raise HTTPException(status_code=400, detail=detail)


def _apply(row, body, nullable=()):
    # Omitted fields are left alone; an explicit null only clears nullable columns
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is None and field not in nullable:
            continue
        setattr(row, field, value)


def _building_or_404(db: Session, building_id: int) -> Building:
    building = db.query(Building).filter(Building.id == building_id).first()
    if not building:
        raise HTTPException(status_code=404, detail="Building not found")
    return building


def _spot_type_or_404(db: Session, spot_type_id: int) -> SpotType:
    spot_type = db.query(SpotType).filter(SpotType.id == spot_type_id).first()
    if not spot_type:
        raise HTTPException(status_code=404, detail="Spot type not found")
    return spot_type


@router.get("/buildings", response_model=list[BuildingOut], summary="List buildings")
def list_buildings(include_inactive: bool = False, db: Session = Depends(get_db)):
    q = db.query(Building)
    if not include_inactive:
        q = q.filter(Building.is_active == True)  # noqa: E712
    return q.order_by(Building.code.asc()).all()


@router.post("/buildings", response_model=BuildingOut, status_code=201, summary="Add a building (admin)")
def create_building(body: BuildingCreate, db: Session = Depends(get_db), admin: Profile = Depends(require_admin)):
    building = Building(code=body.code, name=body.name, location=body.location,
                        is_active=True, created_at=datetime.utcnow())
    db.add(building)
    _commit_or_400(db, f"Building {body.code} already exists")
    db.refresh(building)
    logger.info(f"Building {building.code} created by {admin.id}")
    return building


@router.put("/buildings/{building_id}", response_model=BuildingOut, summary="Edit a building (admin)")
def update_building(building_id: int, body: BuildingUpdate, db: Session = Depends(get_db),
                    admin: Profile = Depends(require_admin)):
    building = _building_or_404(db, building_id)
    _apply(building, body, nullable=("location",))
    _commit_or_400(db, f"Building {body.code} already exists")
    db.refresh(building)
    logger.info(f"Building {building_id} updated by {admin.id}")
    return building


@router.put("/buildings/{building_id}/active", response_model=BuildingOut, summary="Enable/disable a building (admin)")
def set_building_active(building_id: int, body: ActiveUpdate, db: Session = Depends(get_db),
                        admin: Profile = Depends(require_admin)):
    building = _building_or_404(db, building_id)
    building.is_active = body.is_active
    db.commit()
    db.refresh(building)
    return building


@router.get("/spot-types", response_model=list[SpotTypeOut], summary="List spot types")
def list_spot_types(db: Session = Depends(get_db)):
    return db.query(SpotType).order_by(SpotType.name.asc()).all()


@router.post("/spot-types", response_model=SpotTypeOut, status_code=201, summary="Add a spot type (admin)")
def create_spot_type(body: SpotTypeCreate, db: Session = Depends(get_db), admin: Profile = Depends(require_admin)):
    spot_type = SpotType(name=body.name, description=body.description,
                         is_shaded=body.is_shaded, created_at=datetime.utcnow())
    db.add(spot_type)
    _commit_or_400(db, f"Spot type {body.name} already exists")
    db.refresh(spot_type)
    return spot_type


@router.put("/spot-types/{spot_type_id}", response_model=SpotTypeOut, summary="Edit a spot type (admin)")
def update_spot_type(spot_type_id: int, body: SpotTypeUpdate, db: Session = Depends(get_db),
                     admin: Profile = Depends(require_admin)):
    spot_type = _spot_type_or_404(db, spot_type_id)
    _apply(spot_type, body, nullable=("description",))
    _commit_or_400(db, f"Spot type {body.name} already exists")
    db.refresh(spot_type)
    return spot_type


@router.get("/spots", response_model=list[SpotOut], summary="List spots, optionally for one building")
def list_spots(building_id: Optional[int] = None, include_inactive: bool = False, db: Session = Depends(get_db)):
    q = db.query(ParkingSpot)
    if building_id is not None:
        q = q.filter(ParkingSpot.building_id == building_id)
    if not include_inactive:
        q = q.filter(ParkingSpot.is_active == True)  # noqa: E712
    return q.order_by(ParkingSpot.building_id.asc(), ParkingSpot.spot_number.asc()).all()


@router.post("/spots", response_model=list[SpotOut], status_code=201, summary="Add one or more spots (admin)")
def create_spots(body: SpotCreate, db: Session = Depends(get_db), admin: Profile = Depends(require_admin)):
    """
    Adds `count` consecutively numbered spots. Without an explicit spot_number,
    numbering continues after the building's current highest spot number.
    """
    _building_or_404(db, body.building_id)
    _spot_type_or_404(db, body.spot_type_id)

    first = body.spot_number
    if first is None:
        highest = db.query(func.max(ParkingSpot.spot_number)).filter(
            ParkingSpot.building_id == body.building_id
        ).scalar()
        first = (highest or 0) + 1

    now = datetime.utcnow()
    spots = [
        ParkingSpot(building_id=body.building_id, spot_type_id=body.spot_type_id,
                    spot_number=number, is_active=True, created_at=now)
        for number in range(first, first + body.count)
    ]
    db.add_all(spots)
    _commit_or_400(db, f"Spot numbers {first}-{first + body.count - 1} clash with existing spots in this building")
    for spot in spots:
        db.refresh(spot)
    logger.info(f"{len(spots)} spot(s) added to building {body.building_id} by {admin.id}")
    return spots


@router.put("/spots/{spot_id}", response_model=SpotOut, summary="Edit a spot (admin)")
def update_spot(spot_id: int, body: SpotUpdate, db: Session = Depends(get_db),
                admin: Profile = Depends(require_admin)):
    """Move a spot to another building, change its type or renumber it."""
    spot = db.query(ParkingSpot).filter(ParkingSpot.id == spot_id).first()
    if not spot:
        raise HTTPException(status_code=404, detail="Spot not found")
    if body.building_id is not None:
        _building_or_404(db, body.building_id)
    if body.spot_type_id is not None:
        _spot_type_or_404(db, body.spot_type_id)
    _apply(spot, body)
    _commit_or_400(db, f"Spot {spot.spot_number} already exists in building {spot.building_id}")
    db.refresh(spot)
    logger.info(f"Spot {spot_id} updated by {admin.id}")
    return spot


@router.put("/spots/{spot_id}/active", response_model=SpotOut, summary="Enable/disable a spot (admin)")
def set_spot_active(spot_id: int, body: ActiveUpdate, db: Session = Depends(get_db),
                    admin: Profile = Depends(require_admin)):
    """Deactivated spots drop out of availability; existing bookings are kept."""
    spot = db.query(ParkingSpot).filter(ParkingSpot.id == spot_id).first()
    if not spot:
        raise HTTPException(status_code=404, detail="Spot not found")
    spot.is_active = body.is_active
    db.commit()
    db.refresh(spot)
    logger.info(f"Spot {spot_id} active={body.is_active} (by {admin.id})")
    return spot
