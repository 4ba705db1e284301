# spoton/routers/stats.py
"""Admin occupancy dashboard."""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from spoton.database import get_db
from spoton.models.profile import Profile
from spoton.services.identity import require_admin
from spoton.services.stats_service import get_dashboard_stats, get_status_breakdown

router = APIRouter()


@router.get("/stats/dashboard", summary="Occupancy overall, per building and per spot type")
def dashboard(target_date: Optional[date] = None, db: Session = Depends(get_db),
              admin: Profile = Depends(require_admin)):
    return get_dashboard_stats(db, target_date)


@router.get("/stats/status", summary="Booking counts per status in a date range")
def status_breakdown(start_date: date, end_date: date, db: Session = Depends(get_db),
                     admin: Profile = Depends(require_admin)):
    return get_status_breakdown(db, start_date, end_date)
