# scripts/setup/init_db.py
"""
Initialize database: creates all tables and seeds buildings, spot types and spots.
Run once before first launch, or after adding new models. Seeding is idempotent.
Usage: python scripts/setup/init_db.py [--admin USER_ID EMAIL]
"""

import sys
import os
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import datetime
from sqlalchemy import text
from spoton.database import create_tables, engine, SessionLocal
from spoton.config import settings
from spoton.models import Building, SpotType, ParkingSpot, Profile
from spoton.models.profile import ROLE_ADMIN

SPOT_TYPES = [
    ("regular", "Standard open-air spot", False),
    ("shaded", "Covered spot", True),
    ("accessible", "Accessible spot near the entrance", False),
]


def spot_type_for(number: int) -> str:
    """First two spots accessible, every fourth spot shaded, the rest regular."""
    if number <= 2:
        return "accessible"
    if number % 4 == 0:
        return "shaded"
    return "regular"


def seed(db):
    now = datetime.utcnow()
    types = {}
    for name, description, shaded in SPOT_TYPES:
        spot_type = db.query(SpotType).filter(SpotType.name == name).first()
        if not spot_type:
            spot_type = SpotType(name=name, description=description, is_shaded=shaded, created_at=now)
            db.add(spot_type)
            db.flush()
        types[name] = spot_type

    created = 0
    for code in settings.SEED_BUILDINGS:
        building = db.query(Building).filter(Building.code == code).first()
        if not building:
            building = Building(code=code, name=f"Building {code}", is_active=True, created_at=now)
            db.add(building)
            db.flush()
        existing = {n for (n,) in db.query(ParkingSpot.spot_number).filter(ParkingSpot.building_id == building.id)}
        for number in range(1, settings.SPOTS_PER_BUILDING + 1):
            if number in existing:
                continue
            db.add(ParkingSpot(building_id=building.id, spot_type_id=types[spot_type_for(number)].id,
                               spot_number=number, is_active=True, created_at=now))
            created += 1
    db.commit()
    return created


def main():
    parser = argparse.ArgumentParser(description="Create tables and seed SpotOn inventory")
    parser.add_argument("--admin", nargs=2, metavar=("USER_ID", "EMAIL"), help="Create an admin profile")
    args = parser.parse_args()

    print("🗄️  SpotOn DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    print("✅ All tables created")

    db = SessionLocal()
    try:
        created = seed(db)
        print(f"🅿️  Seeded {len(settings.SEED_BUILDINGS)} buildings, {created} new spots")
        if args.admin:
            user_id, email = args.admin
            profile = db.query(Profile).filter(Profile.id == user_id).first()
            if not profile:
                profile = Profile(id=user_id, email=email, created_at=datetime.utcnow())
                db.add(profile)
            profile.user_role = ROLE_ADMIN
            profile.updated_at = datetime.utcnow()
            db.commit()
            print(f"👤 Admin profile ready: {email}")
    finally:
        db.close()

    print("\n🎉 Database ready! You can now start the backend:")
    print("   uvicorn spoton.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
