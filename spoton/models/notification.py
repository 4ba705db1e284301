# spoton/models/notification.py
"""
Notifications table: messages shown in the user's notification menu.
Written by notification_service when an admin issues a fine.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text
from spoton.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), default="info", nullable=False)   # info | warning | fine | alert
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, index=True)

    def __repr__(self):
        return f"<Notification {self.id} user={self.user_id} type={self.type} read={self.is_read}>"
