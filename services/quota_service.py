"""
Quota Service

Plan limit enforcement:
- Monthly customer contacts (calendar month, operating timezone)
- Portfolio photo slots (standing count, no reset)
- "Approaching limit" warnings

The contact check and the contact insert happen in one transaction that
holds the professional's ContactQuotaCounter row lock for the month, so at
most max_contacts contacts can be accepted per month regardless of how many
submissions race.
"""

from typing import Optional, Tuple
from datetime import datetime
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.professional import Professional
from models.contact import ContactEvent, ContactMethod
from models.contact_quota import ContactQuotaCounter
from services.plan_service import PlanService
from services.subscription_service import SubscriptionService
from services.results import (
    QuotaSnapshot,
    QuotaExceeded,
    SubscriptionInactive,
    ContactAccepted,
    ContactSubmission,
)
from core.config import get_settings
from core.periods import utcnow, month_bounds
from core.sanitization import sanitize_name, sanitize_message
from core.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


def _snapshot(resource: str, current: int, limit: Optional[int], threshold: int) -> QuotaSnapshot:
    if limit is None:
        return QuotaSnapshot(
            resource=resource,
            current=current,
            max_allowed=None,
            remaining=None,
            has_limit=False,
            limit_reached=False,
            approaching_limit=False,
        )

    remaining = max(0, limit - current)
    limit_reached = current >= limit
    return QuotaSnapshot(
        resource=resource,
        current=current,
        max_allowed=limit,
        remaining=remaining,
        has_limit=True,
        limit_reached=limit_reached,
        approaching_limit=not limit_reached and remaining <= threshold,
    )


class QuotaService:
    """Service for plan quota enforcement."""

    @staticmethod
    def get_contact_limit(professional: Professional, db: Session) -> Optional[int]:
        """Monthly contact limit for the professional's plan (None = unlimited)."""
        plan = PlanService.get_plan_for_professional(professional, db)
        return plan.max_contacts if plan else None

    @staticmethod
    def get_photo_limit(professional: Professional, db: Session) -> Optional[int]:
        """Photo slot limit for the professional's plan (None = unlimited)."""
        plan = PlanService.get_plan_for_professional(professional, db)
        if not plan:
            return settings.DEFAULT_MAX_PHOTOS
        return plan.max_photos

    @staticmethod
    def count_contacts_in_month(professional_id: str, db: Session, now: Optional[datetime] = None) -> int:
        """
        Count contacts received in the current calendar month.

        Args:
            professional_id: Professional UUID
            db: Database session
            now: Naive UTC reference time

        Returns:
            int: Contacts with created_at in [month start, next month start)
        """
        period_start, period_end = month_bounds(now)
        return db.query(func.count(ContactEvent.id)).filter(
            ContactEvent.professional_id == professional_id,
            ContactEvent.created_at >= period_start,
            ContactEvent.created_at < period_end,
        ).scalar() or 0

    @staticmethod
    def contact_snapshot(professional: Professional, db: Session, now: Optional[datetime] = None) -> QuotaSnapshot:
        """Current month contact usage against the plan limit."""
        current = QuotaService.count_contacts_in_month(professional.id, db, now)
        limit = QuotaService.get_contact_limit(professional, db)
        return _snapshot("contacts", current, limit, settings.CONTACT_WARNING_THRESHOLD)

    @staticmethod
    def photo_snapshot(professional: Professional, db: Session) -> QuotaSnapshot:
        """Portfolio usage against the plan's photo slots."""
        current = len(professional.portfolio or [])
        limit = QuotaService.get_photo_limit(professional, db)
        return _snapshot("photos", current, limit, settings.PHOTO_WARNING_THRESHOLD)

    @staticmethod
    def _lock_counter(
        professional_id: str,
        period: Tuple[datetime, datetime],
        db: Session,
    ) -> ContactQuotaCounter:
        """
        Get or create the month's counter row and hold its lock.

        Two first-of-month submissions may both try to create the row; the
        loser of the unique constraint falls back to locking the winner's row.
        """
        period_start, period_end = period

        def locked():
            return db.query(ContactQuotaCounter).filter(
                ContactQuotaCounter.professional_id == professional_id,
                ContactQuotaCounter.period_start == period_start,
            ).with_for_update().first()

        counter = locked()
        if counter:
            return counter

        # Nothing but reads precede this point, so committing the new row is safe
        try:
            db.add(ContactQuotaCounter(
                professional_id=professional_id,
                period_start=period_start,
                period_end=period_end,
                count=0,
            ))
            db.commit()
        except IntegrityError:
            db.rollback()

        return locked()

    @staticmethod
    def try_consume_contact(
        professional_id: str,
        contact_data: dict,
        db: Session,
        now: Optional[datetime] = None,
    ) -> ContactSubmission:
        """
        Persist a contact if the professional is active and under quota.

        Args:
            professional_id: Professional UUID
            contact_data: customer_name, customer_email, customer_phone,
                          contact_method, message
            db: Database session
            now: Naive UTC reference time (also the contact's created_at)

        Returns:
            ContactSubmission: accepted with usage numbers, or a
            SubscriptionInactive / QuotaExceeded rejection (nothing persisted)
        """
        now = now or utcnow()

        professional = SubscriptionService.get_professional_or_404(professional_id, db)

        reason = SubscriptionService.inactive_reason(professional, now)
        if reason:
            logger.info(f"Contact rejected: professional_id={professional_id}, subscription {reason}")
            return ContactSubmission(rejection=SubscriptionInactive(reason=reason))

        limit = QuotaService.get_contact_limit(professional, db)
        period = month_bounds(now)

        counter = None
        if limit is not None:
            counter = QuotaService._lock_counter(professional_id, period, db)

        current = QuotaService.count_contacts_in_month(professional_id, db, now)

        if limit is not None and current >= limit:
            # Release the counter lock
            db.rollback()
            logger.info(
                f"Contact quota exceeded: professional_id={professional_id}, "
                f"current={current}, max_contacts={limit}"
            )
            return ContactSubmission(rejection=QuotaExceeded(
                resource="contacts",
                current=current,
                max_allowed=limit,
                remaining=0,
                current_month=current,
                max_contacts=limit,
            ))

        method = contact_data.get("contact_method", ContactMethod.FORM)
        contact = ContactEvent(
            professional_id=professional_id,
            customer_name=sanitize_name(contact_data.get("customer_name")),
            customer_email=contact_data.get("customer_email"),
            customer_phone=contact_data.get("customer_phone"),
            contact_method=ContactMethod(method),
            message=sanitize_message(contact_data.get("message")),
            created_at=now,
        )
        db.add(contact)

        used = current + 1
        if counter is not None:
            counter.count = used

        db.commit()
        db.refresh(contact)

        snapshot = _snapshot("contacts", used, limit, settings.CONTACT_WARNING_THRESHOLD)
        return ContactSubmission(accepted=ContactAccepted(
            contact_id=contact.id,
            current_month=used,
            max_contacts=limit,
            remaining=snapshot.remaining,
            approaching_limit=snapshot.approaching_limit,
        ))

    @staticmethod
    def check_photo_add(
        professional: Professional,
        db: Session,
        now: Optional[datetime] = None,
    ) -> Optional[SubscriptionInactive | QuotaExceeded]:
        """
        Decide whether one more portfolio photo may be added.

        Returns:
            None if allowed, otherwise the rejection
        """
        reason = SubscriptionService.inactive_reason(professional, now)
        if reason:
            return SubscriptionInactive(reason=reason)

        snapshot = QuotaService.photo_snapshot(professional, db)
        if snapshot.limit_reached:
            return QuotaExceeded(
                resource="photos",
                current=snapshot.current,
                max_allowed=snapshot.max_allowed,
                remaining=0,
            )
        return None
