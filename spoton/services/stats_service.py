# spoton/services/stats_service.py
"""
Admin occupancy reporting.
Occupied = distinct active spots holding an 'active' booking on the date.
"""

from datetime import date
from sqlalchemy import func
from sqlalchemy.orm import Session
from spoton.models.building import Building
from spoton.models.spot_type import SpotType
from spoton.models.parking_spot import ParkingSpot
from spoton.models.booking import Booking, STATUS_ACTIVE, ALL_STATUSES
from spoton.services.errors import InvalidInput, store_errors


def _summary(total, occupied):
    return {
        "total": total,
        "occupied": occupied,
        "available": total - occupied,
        "occupancy_percent": round(occupied / total * 100, 1) if total else 0,
    }


def get_dashboard_stats(db: Session, target_date: date = None) -> dict:
    target_date = target_date or date.today()
    with store_errors(db, "dashboard stats"):
        spots = db.query(ParkingSpot).filter(ParkingSpot.is_active == True).all()  # noqa: E712
        occupied_ids = {
            row[0] for row in
            db.query(Booking.spot_id)
            .filter(Booking.date == target_date, Booking.status == STATUS_ACTIVE)
            .distinct()
            .all()
        }
        buildings = db.query(Building).order_by(Building.code.asc()).all()
        spot_types = db.query(SpotType).order_by(SpotType.name.asc()).all()

    active_ids = {s.id for s in spots}
    occupied_ids &= active_ids

    building_stats = []
    for b in buildings:
        ids = {s.id for s in spots if s.building_id == b.id}
        building_stats.append({"id": b.id, "code": b.code, "name": b.name,
                               **_summary(len(ids), len(ids & occupied_ids))})

    type_stats = []
    for t in spot_types:
        ids = {s.id for s in spots if s.spot_type_id == t.id}
        type_stats.append({"id": t.id, "name": t.name, "is_shaded": t.is_shaded,
                           **_summary(len(ids), len(ids & occupied_ids))})

    return {
        "date": target_date.isoformat(),
        **_summary(len(active_ids), len(occupied_ids)),
        "buildings": building_stats,
        "types": type_stats,
    }


def get_status_breakdown(db: Session, start_date: date, end_date: date) -> dict:
    """Booking counts per status for dates in [start_date, end_date]."""
    if start_date > end_date:
        raise InvalidInput("start_date must not be after end_date")
    with store_errors(db, "status breakdown"):
        rows = (
            db.query(Booking.status, func.count(Booking.id))
            .filter(Booking.date >= start_date, Booking.date <= end_date)
            .group_by(Booking.status)
            .all()
        )
    counts = {status: 0 for status in ALL_STATUSES}
    counts.update({status: count for status, count in rows})
    return {
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "total": sum(counts.values()),
        "by_status": counts,
    }
