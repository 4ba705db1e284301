# spoton/services/change_feed.py
"""
In-process change feed for live UI refresh.
Services publish row changes after commit; the API layer subscribes callbacks.
Booking correctness never depends on a callback firing.
"""

import threading
from fastapi import Request
from dataclasses import dataclass
from typing import Any, Callable, Optional
from spoton.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    table: str          # bookings | notifications
    action: str         # insert | update
    row: Any


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: list[tuple[str, Optional[str], Callable]] = []

    def subscribe(self, table: str, callback: Callable[[ChangeEvent], None], user_id: str = None):
        """Register callback for changes on table (optionally one user's rows). Returns unsubscribe()."""
        entry = (table, user_id, callback)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe():
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, table: str, action: str, row: Any):
        event = ChangeEvent(table=table, action=action, row=row)
        row_user = getattr(row, "user_id", None)
        with self._lock:
            targets = [cb for t, uid, cb in self._subscribers
                       if t == table and (uid is None or uid == row_user)]
        for callback in targets:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"[FEED] subscriber failed on {table}/{action}: {e}", exc_info=True)


def publish(feed: Optional[ChangeFeed], table: str, action: str, row: Any):
    """Publish if a feed was injected."""
    if feed is not None:
        feed.publish(table, action, row)


def get_change_feed(request: Request):
    """FastAPI dependency: the application's feed (None when not configured)."""
    return getattr(request.app.state, "change_feed", None)
