"""Shared fixtures: an in-memory SQLite session and a small two-building campus."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date, datetime
from types import SimpleNamespace
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from spoton.database import create_tables
from spoton.models import Building, SpotType, ParkingSpot, Profile

BOOKING_DAY = date(2025, 6, 1)
TODAY = date(2025, 5, 20)


def fake_qr(payload: bytes) -> str:
    return "qr:" + payload.decode("utf-8")


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_tables(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


def add_spot(db, building, spot_type, number, active=True):
    spot = ParkingSpot(building_id=building.id, spot_type_id=spot_type.id, spot_number=number,
                       is_active=active, created_at=datetime.utcnow())
    db.add(spot)
    db.commit()
    return spot


@pytest.fixture
def campus(db):
    """Building J2-A with spot-1 (regular) and spot-2 (shaded); empty building J2-B."""
    regular = SpotType(name="regular", is_shaded=False)
    shaded = SpotType(name="shaded", is_shaded=True)
    main = Building(code="J2-A", name="Building J2-A", is_active=True)
    empty = Building(code="J2-B", name="Building J2-B", is_active=True)
    db.add_all([regular, shaded, main, empty])
    db.commit()
    # Inserted out of order on purpose; results must come back by spot number
    spot2 = add_spot(db, main, shaded, 2)
    spot1 = add_spot(db, main, regular, 1)
    return SimpleNamespace(building=main, empty_building=empty, spot1=spot1, spot2=spot2,
                           regular=regular, shaded=shaded)


@pytest.fixture
def users(db):
    alice = Profile(id="user-alice", email="alice@uni.example", user_role="user")
    bob = Profile(id="user-bob", email="bob@uni.example", user_role="user")
    admin = Profile(id="user-admin", email="parking-office@uni.example", user_role="admin")
    db.add_all([alice, bob, admin])
    db.commit()
    return SimpleNamespace(alice=alice, bob=bob, admin=admin)
