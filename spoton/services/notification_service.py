# spoton/services/notification_service.py
"""
Shared notification sink.
Used by lifecycle_service when a fine is issued. Delivery is best-effort:
callers log and swallow failures so a status change is never rolled back.
Extend here to add push notifications, SMS, email, etc.
"""

from datetime import datetime
from sqlalchemy.orm import Session
from spoton.models.notification import Notification
from spoton.services.change_feed import publish
from spoton.services.errors import InvalidInput, store_errors
from spoton.utils.logger import get_logger

logger = get_logger(__name__)

NOTIFICATION_KINDS = {"info", "warning", "fine", "alert"}


async def notify(db, user_id, title, message, kind="info", feed=None):
    """Create and persist a notification for user_id. Always commits immediately."""
    if kind not in NOTIFICATION_KINDS:
        kind = "info"
    notification = Notification(user_id=user_id, title=title, message=message,
                                type=kind, is_read=False, created_at=datetime.utcnow())
    db.add(notification)
    db.commit()
    logger.info(f"[NOTIFY][{kind.upper()}] user={user_id}: {title}")
    publish(feed, "notifications", "insert", notification)
    return notification


def list_notifications(db: Session, user_id: str, unread_only: bool = False, limit: int = 50):
    with store_errors(db, "notification list"):
        q = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            q = q.filter(Notification.is_read == False)  # noqa: E712
        return q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_notification_read(db: Session, notification_id: int, user_id: str) -> Notification:
    with store_errors(db, "notification update"):
        notification = db.query(Notification).filter(
            Notification.id == notification_id, Notification.user_id == user_id
        ).first()
        if not notification:
            raise InvalidInput(f"Notification {notification_id} not found", not_found=True)
        notification.is_read = True
        db.commit()
        db.refresh(notification)
    return notification
