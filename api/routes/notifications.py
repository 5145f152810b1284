"""
Notification Routes

The professional's dashboard notification feed.
"""

from typing import List, Literal
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.config import get_settings
from core.database import get_db
from api.dependencies import get_current_professional
from models.professional import Professional
from services.notification_service import NotificationService
from services.results import NotificationFeed, MarkAllReadResult

settings = get_settings()

router = APIRouter()


class NotificationRef(BaseModel):
    id: str
    type: Literal["contact", "review"]


class MarkAllRead(BaseModel):
    items: List[NotificationRef]


@router.get("", response_model=NotificationFeed)
async def get_notifications(
    limit: int = Query(settings.NOTIFICATION_FEED_LIMIT, ge=1, le=200),
    current_professional: Professional = Depends(get_current_professional),
    db: Session = Depends(get_db)
):
    """Recent contacts and reviews, newest first, with the unread count."""
    return NotificationService.get_feed(current_professional.id, db, limit=limit)


@router.post("/mark-read")
async def mark_read(
    notification: NotificationRef,
    current_professional: Professional = Depends(get_current_professional),
    db: Session = Depends(get_db)
):
    """
    Mark one notification read. Repeating the call is a no-op.

    **Response 404**: No such contact/review for this professional
    """
    if not NotificationService.mark_read(current_professional.id, notification.id, notification.type, db):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )
    return {"id": notification.id, "type": notification.type, "is_read": True}


@router.post("/mark-all-read", response_model=MarkAllReadResult)
async def mark_all_read(
    payload: MarkAllRead,
    current_professional: Professional = Depends(get_current_professional),
    db: Session = Depends(get_db)
):
    """Mark the listed notifications read; unknown items are returned in `failed`."""
    return NotificationService.mark_all_read(
        current_professional.id,
        [item.model_dump() for item in payload.items],
        db,
    )
