# spoton/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy with SQLite for development and PostgreSQL in production.
All models are auto-imported here so create_tables() creates every table in one call.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from spoton.config import settings


def make_engine(url: str):
    """Build an engine with pool settings suited to the backend."""
    if url.startswith("sqlite"):
        # Sessions are handed across threads by FastAPI's threadpool
        return create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    return create_engine(
        url,
        pool_pre_ping=True,          # Auto-reconnect if DB connection drops
        pool_size=10,
        max_overflow=20,
        echo=False,                  # Set True to log all SQL queries (debug only)
    )


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from spoton.models.building import Building            # noqa
    from spoton.models.spot_type import SpotType           # noqa
    from spoton.models.parking_spot import ParkingSpot     # noqa
    from spoton.models.booking import Booking              # noqa
    from spoton.models.notification import Notification    # noqa
    from spoton.models.profile import Profile              # noqa

    Base.metadata.create_all(bind=bind or engine)
