"""
Notification Service

Merges a professional's contacts and reviews into one feed for the
dashboard bell, newest first, with read/unread state.

The feed is pull-based: the dashboard polls it.
"""

from typing import Optional, List, Iterable, Tuple, Set
from datetime import datetime, timedelta
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.contact import ContactEvent
from models.review import ReviewEvent
from models.notification_read import NotificationRead, NotificationType
from models.base import format_utc_datetime
from services.results import NotificationItem, NotificationFeed, MarkAllReadResult
from core.config import get_settings
from core.periods import utcnow
from core.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

CONTACT_METHOD_LABELS = {
    "whatsapp": "WhatsApp",
    "form": "formulário",
    "phone": "telefone",
}


def _contact_item(contact: ContactEvent, is_read: bool) -> NotificationItem:
    method = contact.contact_method.value
    name = contact.customer_name or "Um cliente"
    return NotificationItem(
        id=contact.id,
        type="contact",
        title="Novo contato",
        message=f"{name} entrou em contato via {CONTACT_METHOD_LABELS.get(method, method)}",
        customer_name=contact.customer_name,
        contact_method=method,
        created_at=format_utc_datetime(contact.created_at),
        is_read=is_read,
    )


def _review_item(review: ReviewEvent, is_read: bool) -> NotificationItem:
    return NotificationItem(
        id=review.id,
        type="review",
        title="Nova avaliação",
        message=f"{review.customer_name} avaliou com {review.rating} estrela{'s' if review.rating != 1 else ''}",
        customer_name=review.customer_name,
        rating=review.rating,
        created_at=format_utc_datetime(review.created_at),
        is_read=is_read,
    )


class NotificationService:
    """Service for the professional notification feed."""

    @staticmethod
    def _read_keys(
        professional_id: str,
        notification_ids: Iterable[str],
        db: Session,
    ) -> Set[Tuple[NotificationType, str]]:
        """Read markers among the given contact/review ids."""
        ids = list(set(notification_ids))
        if not ids:
            return set()
        rows = db.query(NotificationRead.notification_type, NotificationRead.notification_id).filter(
            NotificationRead.professional_id == professional_id,
            NotificationRead.notification_id.in_(ids),
        ).all()
        return {(notification_type, notification_id) for notification_type, notification_id in rows}

    @staticmethod
    def get_feed(
        professional_id: str,
        db: Session,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
        window_days: Optional[int] = None,
    ) -> NotificationFeed:
        """
        Build the merged notification feed.

        Args:
            professional_id: Professional UUID
            db: Database session
            now: Naive UTC reference time
            limit: Maximum items (default NOTIFICATION_FEED_LIMIT)
            window_days: Only events from the last N days (default NOTIFICATION_WINDOW_DAYS)

        Returns:
            NotificationFeed: items sorted by created_at descending, and the unread count
        """
        now = now or utcnow()
        limit = limit or settings.NOTIFICATION_FEED_LIMIT
        since = now - timedelta(days=window_days or settings.NOTIFICATION_WINDOW_DAYS)

        contacts = db.query(ContactEvent).filter(
            ContactEvent.professional_id == professional_id,
            ContactEvent.created_at >= since,
        ).order_by(ContactEvent.created_at.desc()).limit(limit).all()

        reviews = db.query(ReviewEvent).filter(
            ReviewEvent.professional_id == professional_id,
            ReviewEvent.created_at >= since,
        ).order_by(ReviewEvent.created_at.desc()).limit(limit).all()

        merged = [
            (contact.created_at, NotificationType.CONTACT, contact) for contact in contacts
        ] + [
            (review.created_at, NotificationType.REVIEW, review) for review in reviews
        ]
        # Newest first; equal timestamps fall back to type then id
        merged.sort(key=lambda entry: (entry[1].value, entry[2].id))
        merged.sort(key=lambda entry: entry[0], reverse=True)
        page = merged[:limit]

        read = NotificationService._read_keys(professional_id, (row.id for _, _, row in page), db)
        items = [
            _contact_item(row, (kind, row.id) in read) if kind == NotificationType.CONTACT
            else _review_item(row, (kind, row.id) in read)
            for _, kind, row in page
        ]
        return NotificationFeed(
            items=items,
            unread_count=sum(1 for item in items if not item.is_read),
        )

    @staticmethod
    def _exists(professional_id: str, notification_id: str, notification_type: NotificationType, db: Session) -> bool:
        model = ContactEvent if notification_type == NotificationType.CONTACT else ReviewEvent
        return db.query(model.id).filter(
            model.id == notification_id,
            model.professional_id == professional_id,
        ).first() is not None

    @staticmethod
    def mark_read(
        professional_id: str,
        notification_id: str,
        notification_type: str,
        db: Session,
    ) -> bool:
        """
        Mark one notification read. Marking an already-read item is a no-op.

        Returns:
            bool: False if no such contact/review belongs to the professional
        """
        kind = NotificationType(notification_type)
        if not NotificationService._exists(professional_id, notification_id, kind, db):
            return False

        if (kind, notification_id) in NotificationService._read_keys(professional_id, [notification_id], db):
            return True

        db.add(NotificationRead(
            professional_id=professional_id,
            notification_type=kind,
            notification_id=notification_id,
        ))
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request inserted the same marker
            db.rollback()
        return True

    @staticmethod
    def mark_all_read(
        professional_id: str,
        items: Iterable[dict],
        db: Session,
    ) -> MarkAllReadResult:
        """
        Mark several notifications read in one transaction.

        Items that do not belong to the professional are reported in
        `failed`; every other item is read when this returns.

        Args:
            professional_id: Professional UUID
            items: [{"id": ..., "type": "contact" | "review"}, ...]
            db: Database session

        Returns:
            MarkAllReadResult: marked and failed items
        """
        marked: List[dict] = []
        failed: List[dict] = []
        valid: List[Tuple[NotificationType, str]] = []

        for item in items:
            notification_id = item.get("id")
            try:
                kind = NotificationType(item.get("type"))
            except ValueError:
                failed.append(dict(item))
                continue
            if not notification_id or not NotificationService._exists(professional_id, notification_id, kind, db):
                failed.append(dict(item))
                continue
            valid.append((kind, notification_id))
            marked.append({"id": notification_id, "type": kind.value})

        for attempt in range(2):
            already_read = NotificationService._read_keys(professional_id, (key[1] for key in valid), db)
            for key in dict.fromkeys(valid):
                if key not in already_read:
                    db.add(NotificationRead(
                        professional_id=professional_id,
                        notification_type=key[0],
                        notification_id=key[1],
                    ))
            try:
                db.commit()
                break
            except IntegrityError:
                db.rollback()
                if attempt == 1:
                    raise

        if failed:
            logger.info(f"mark_all_read: professional_id={professional_id}, failed={len(failed)}")
        return MarkAllReadResult(marked=marked, failed=failed)
