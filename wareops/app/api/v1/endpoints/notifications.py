from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from wareops.app.api.deps import get_db
from wareops.app.db.models.models_v1 import Notification
from wareops.app.schemas.notification import NotificationRead
from wareops.services import notifications

router = APIRouter(prefix="/notifications")


@router.get("", response_model=list[NotificationRead])
def list_notifications(unread_only: bool = False, limit: int = 50, db: Session = Depends(get_db)):
    return notifications.list_notifications(db, unread_only=unread_only, limit=limit)


@router.post("/read-all")
def mark_all_read(db: Session = Depends(get_db)):
    return {"updated": notifications.mark_as_read(db)}


@router.post("/{notification_id}/read")
def mark_read(notification_id: int, db: Session = Depends(get_db)):
    if not db.get(Notification, notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"updated": notifications.mark_as_read(db, notification_id)}
