# spoton/services/errors.py
"""
Booking error taxonomy shared by every service.
Routers map these to HTTP status codes in main.py.
"""

from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError
from spoton.utils.logger import get_logger

logger = get_logger(__name__)


class BookingError(Exception):
    """Base class for all booking-engine failures."""


class InvalidInput(BookingError):
    """Malformed window, past date, or unknown building/spot/booking id."""

    def __init__(self, message, not_found=False):
        super().__init__(message)
        self.not_found = not_found


class SpotUnavailable(BookingError):
    """Commit-time conflict. Caller should re-query availability and pick again."""


class InvalidTransition(BookingError):
    """Illegal booking status change."""


class StoreUnavailable(BookingError):
    """Data store unreachable or transaction aborted. Safe to retry the whole operation."""


@contextmanager
def store_errors(db, operation):
    """Roll back and re-raise any SQLAlchemy failure as StoreUnavailable."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[STORE] {operation} failed: {e}")
        raise StoreUnavailable(f"{operation} failed: data store unavailable") from e
