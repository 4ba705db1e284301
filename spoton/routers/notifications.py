# spoton/routers/notifications.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from spoton.database import get_db
from spoton.models.profile import Profile
from spoton.schemas.notification import NotificationOut
from spoton.services.identity import get_current_user
from spoton.services.notification_service import list_notifications, mark_notification_read

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationOut], summary="My notifications, newest first")
def get_notifications(unread_only: bool = False, limit: int = 50, db: Session = Depends(get_db),
                      user: Profile = Depends(get_current_user)):
    return list_notifications(db, user.id, unread_only=unread_only, limit=limit)


@router.put("/notifications/{notification_id}/read", response_model=NotificationOut)
def read_notification(notification_id: int, db: Session = Depends(get_db),
                      user: Profile = Depends(get_current_user)):
    return mark_notification_read(db, notification_id, user.id)
