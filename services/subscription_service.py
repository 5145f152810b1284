"""
Subscription Service

Single source of truth for a professional's subscription state:
- Derive activeness (lazy expiry)
- Apply payment confirmations and failures/cancellations from the gateway
- Admin deactivation / reactivation
- Status hygiene sweep for lapsed subscriptions
"""

from typing import Optional, Dict, Any
from datetime import datetime
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models.professional import Professional, ProfessionalStatus, DeactivationReason
from models.webhook_event import WebhookEvent, WebhookEventType, WebhookOutcome
from models.base import format_utc_datetime
from services.plan_service import PlanService
from services.results import WebhookResult
from core.periods import utcnow
from core.logger import get_logger, get_audit_logger

logger = get_logger(__name__)
audit = get_audit_logger()

INACTIVE_REASONS = {
    DeactivationReason.EXPIRED: "expired",
    DeactivationReason.PAYMENT_FAILED: "payment-failed",
    DeactivationReason.CANCELED: "canceled",
    DeactivationReason.ADMIN: "admin-deactivated",
}


class SubscriptionService:
    """Service for professional subscription state."""

    @staticmethod
    def is_active(professional: Professional, now: Optional[datetime] = None) -> bool:
        """
        Check whether a professional's subscription is currently active.

        The stored status alone is not enough: a professional can still be
        stored as active after subscription_expires_at has passed.

        Args:
            professional: Professional to check
            now: Naive UTC reference time (defaults to the current time)

        Returns:
            bool: True if status is active and the paid period has not ended
        """
        now = now or utcnow()
        return (
            professional.status == ProfessionalStatus.ACTIVE
            and professional.subscription_expires_at is not None
            and professional.subscription_expires_at >= now
        )

    @staticmethod
    def active_filter(now: Optional[datetime] = None):
        """The is_active predicate as a SQLAlchemy filter clause."""
        now = now or utcnow()
        return and_(
            Professional.status == ProfessionalStatus.ACTIVE,
            Professional.subscription_expires_at.isnot(None),
            Professional.subscription_expires_at >= now,
        )

    @staticmethod
    def inactive_reason(professional: Professional, now: Optional[datetime] = None) -> Optional[str]:
        """
        Explain why a professional is not active.

        Returns:
            str: pending, expired, admin-deactivated, payment-failed, canceled;
                 None if the professional is active
        """
        if SubscriptionService.is_active(professional, now):
            return None
        if professional.status == ProfessionalStatus.PENDING:
            return "pending"
        if professional.status == ProfessionalStatus.INACTIVE and professional.deactivation_reason:
            return INACTIVE_REASONS[professional.deactivation_reason]
        if professional.subscription_expires_at is None:
            # Never paid
            return "pending"
        # Stored active but past expiry
        return "expired"

    @staticmethod
    def get_professional(professional_id: str, db: Session) -> Optional[Professional]:
        return db.query(Professional).filter(Professional.id == professional_id).first()

    @staticmethod
    def get_professional_or_404(professional_id: str, db: Session) -> Professional:
        professional = SubscriptionService.get_professional(professional_id, db)
        if not professional:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Professional not found"
            )
        return professional

    @staticmethod
    def _lock_professional(professional_id: str, db: Session) -> Optional[Professional]:
        """Load a professional with a row lock so state transitions serialize."""
        return db.query(Professional).filter(
            Professional.id == professional_id
        ).with_for_update().first()

    @staticmethod
    def _already_processed(provider_transaction_id: str, db: Session) -> Optional[WebhookEvent]:
        return db.query(WebhookEvent).filter(
            WebhookEvent.provider_transaction_id == provider_transaction_id
        ).first()

    @staticmethod
    def _record(
        db: Session,
        provider_transaction_id: str,
        event_type: WebhookEventType,
        outcome: WebhookOutcome,
        professional_id: Optional[str] = None,
        plan_id: Optional[str] = None,
        period_end: Optional[datetime] = None,
        occurred_at: Optional[datetime] = None,
        detail: Optional[str] = None,
    ) -> bool:
        """
        Store the idempotency key and commit the transition with it.

        Returns:
            bool: False if a concurrent delivery of the same event committed first
        """
        db.add(WebhookEvent(
            provider_transaction_id=provider_transaction_id,
            event_type=event_type,
            outcome=outcome,
            professional_id=professional_id,
            plan_id=plan_id,
            period_end=period_end,
            occurred_at=occurred_at,
            detail=detail,
        ))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return False
        return True

    @staticmethod
    def _duplicate(provider_transaction_id: str, professional_id: Optional[str]) -> WebhookResult:
        audit.info(f"Duplicate webhook event ignored: provider_transaction_id={provider_transaction_id}")
        return WebhookResult(
            status="duplicate",
            message="Event already processed",
            professional_id=professional_id,
        )

    @staticmethod
    def _is_stale(professional: Professional, occurred_at: Optional[datetime]) -> bool:
        return (
            occurred_at is not None
            and professional.last_subscription_event_at is not None
            and occurred_at < professional.last_subscription_event_at
        )

    @staticmethod
    def on_payment_confirmed(
        professional_id: str,
        plan_id: Optional[str],
        period_end: datetime,
        provider_transaction_id: str,
        db: Session,
        occurred_at: Optional[datetime] = None,
    ) -> WebhookResult:
        """
        Apply a successful payment: activate and set the paid-through date.

        Idempotent per provider_transaction_id. Expiry is set to the absolute
        period_end, never extended by a relative amount, so re-applying the
        same confirmation cannot double-extend it. Events older than the last
        applied one are discarded; so is a confirmation without a gateway
        timestamp whose period_end would shorten the current expiry.

        Renewals and upgrades take this same path with the new plan id.

        Args:
            professional_id: Professional UUID
            plan_id: Plan paid for (None keeps the current plan)
            period_end: End of the paid period (naive UTC)
            provider_transaction_id: Gateway event / transaction id
            db: Database session
            occurred_at: Gateway-side event timestamp (naive UTC)

        Returns:
            WebhookResult: applied, duplicate, stale or ignored
        """
        event_type = WebhookEventType.CONFIRMED

        if SubscriptionService._already_processed(provider_transaction_id, db):
            return SubscriptionService._duplicate(provider_transaction_id, professional_id)

        professional = SubscriptionService._lock_professional(professional_id, db)
        if not professional:
            logger.warning(f"Payment confirmed for unknown professional: {professional_id}")
            SubscriptionService._record(
                db, provider_transaction_id, event_type, WebhookOutcome.IGNORED,
                professional_id=professional_id, plan_id=plan_id, period_end=period_end,
                occurred_at=occurred_at, detail="professional not found",
            )
            return WebhookResult(status="ignored", message="Professional not found", professional_id=professional_id)

        if plan_id and not PlanService.get_plan(plan_id, db):
            logger.warning(f"Payment confirmed with unknown plan: plan_id={plan_id}, professional_id={professional_id}")
            SubscriptionService._record(
                db, provider_transaction_id, event_type, WebhookOutcome.IGNORED,
                professional_id=professional_id, plan_id=plan_id, period_end=period_end,
                occurred_at=occurred_at, detail="plan not found",
            )
            return WebhookResult(status="ignored", message="Plan not found", professional_id=professional_id)

        shortens_expiry = (
            occurred_at is None
            and professional.subscription_expires_at is not None
            and period_end < professional.subscription_expires_at
        )
        if SubscriptionService._is_stale(professional, occurred_at) or shortens_expiry:
            logger.warning(
                f"Stale payment confirmation discarded: provider_transaction_id={provider_transaction_id}, "
                f"professional_id={professional_id}, occurred_at={occurred_at}, period_end={period_end}, "
                f"current_expiry={professional.subscription_expires_at}"
            )
            if not SubscriptionService._record(
                db, provider_transaction_id, event_type, WebhookOutcome.STALE,
                professional_id=professional_id, plan_id=plan_id, period_end=period_end,
                occurred_at=occurred_at, detail="older than current state",
            ):
                return SubscriptionService._duplicate(provider_transaction_id, professional_id)
            return WebhookResult(
                status="stale",
                message="Event older than current subscription state",
                professional_id=professional_id,
                subscription_expires_at=format_utc_datetime(professional.subscription_expires_at),
            )

        now = utcnow()
        previous_status = professional.status
        professional.status = ProfessionalStatus.ACTIVE
        professional.deactivation_reason = None
        professional.subscription_expires_at = period_end
        professional.last_payment_at = now
        professional.last_subscription_event_at = occurred_at or now
        if plan_id:
            professional.subscription_plan_id = plan_id

        if not SubscriptionService._record(
            db, provider_transaction_id, event_type, WebhookOutcome.APPLIED,
            professional_id=professional_id, plan_id=plan_id, period_end=period_end,
            occurred_at=occurred_at,
        ):
            return SubscriptionService._duplicate(provider_transaction_id, professional_id)

        audit.info(
            f"Subscription activated: professional_id={professional_id}, plan_id={professional.subscription_plan_id}, "
            f"previous_status={previous_status.value}, expires_at={period_end}, "
            f"provider_transaction_id={provider_transaction_id}"
        )
        return WebhookResult(
            status="applied",
            message="Subscription active",
            professional_id=professional_id,
            subscription_expires_at=format_utc_datetime(period_end),
        )

    @staticmethod
    def on_payment_failed_or_expired(
        professional_id: str,
        provider_transaction_id: str,
        db: Session,
        occurred_at: Optional[datetime] = None,
        reason: DeactivationReason = DeactivationReason.PAYMENT_FAILED,
    ) -> WebhookResult:
        """
        Apply a failed payment or cancellation: move to inactive.

        The plan assignment and expiry date are preserved as history.

        Args:
            professional_id: Professional UUID
            provider_transaction_id: Gateway event / transaction id
            db: Database session
            occurred_at: Gateway-side event timestamp (naive UTC)
            reason: PAYMENT_FAILED, CANCELED or EXPIRED

        Returns:
            WebhookResult: applied, duplicate, stale or ignored
        """
        event_type = (
            WebhookEventType.CANCELED if reason == DeactivationReason.CANCELED else WebhookEventType.FAILED
        )

        if SubscriptionService._already_processed(provider_transaction_id, db):
            return SubscriptionService._duplicate(provider_transaction_id, professional_id)

        professional = SubscriptionService._lock_professional(professional_id, db)
        if not professional:
            logger.warning(f"Payment {event_type.value} for unknown professional: {professional_id}")
            SubscriptionService._record(
                db, provider_transaction_id, event_type, WebhookOutcome.IGNORED,
                professional_id=professional_id, occurred_at=occurred_at, detail="professional not found",
            )
            return WebhookResult(status="ignored", message="Professional not found", professional_id=professional_id)

        if SubscriptionService._is_stale(professional, occurred_at):
            logger.warning(
                f"Stale {event_type.value} event discarded: provider_transaction_id={provider_transaction_id}, "
                f"professional_id={professional_id}, occurred_at={occurred_at}, "
                f"last_event_at={professional.last_subscription_event_at}"
            )
            if not SubscriptionService._record(
                db, provider_transaction_id, event_type, WebhookOutcome.STALE,
                professional_id=professional_id, occurred_at=occurred_at, detail="older than current state",
            ):
                return SubscriptionService._duplicate(provider_transaction_id, professional_id)
            return WebhookResult(
                status="stale",
                message="Event older than current subscription state",
                professional_id=professional_id,
            )

        previous_status = professional.status
        professional.status = ProfessionalStatus.INACTIVE
        professional.deactivation_reason = reason
        professional.last_subscription_event_at = occurred_at or utcnow()

        if not SubscriptionService._record(
            db, provider_transaction_id, event_type, WebhookOutcome.APPLIED,
            professional_id=professional_id, occurred_at=occurred_at, detail=reason.value,
        ):
            return SubscriptionService._duplicate(provider_transaction_id, professional_id)

        audit.info(
            f"Subscription deactivated: professional_id={professional_id}, reason={reason.value}, "
            f"previous_status={previous_status.value}, provider_transaction_id={provider_transaction_id}"
        )
        return WebhookResult(
            status="applied",
            message="Subscription inactive",
            professional_id=professional_id,
            subscription_expires_at=format_utc_datetime(professional.subscription_expires_at),
        )

    @staticmethod
    def deactivate(professional_id: str, db: Session) -> Professional:
        """Admin deactivation. Excludes the professional from search and ranking."""
        professional = SubscriptionService._lock_professional(professional_id, db)
        if not professional:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Professional not found"
            )

        professional.status = ProfessionalStatus.INACTIVE
        professional.deactivation_reason = DeactivationReason.ADMIN
        db.commit()
        db.refresh(professional)

        audit.info(f"Professional deactivated by admin: professional_id={professional_id}")
        return professional

    @staticmethod
    def reactivate(professional_id: str, db: Session) -> Professional:
        """
        Admin reactivation.

        Restores the stored status only; a lapsed or never-paid subscription
        still fails is_active until a payment is confirmed.
        """
        professional = SubscriptionService._lock_professional(professional_id, db)
        if not professional:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Professional not found"
            )

        professional.status = ProfessionalStatus.ACTIVE
        professional.deactivation_reason = None
        db.commit()
        db.refresh(professional)

        audit.info(
            f"Professional reactivated by admin: professional_id={professional_id}, "
            f"expires_at={professional.subscription_expires_at}"
        )
        return professional

    @staticmethod
    def sweep_expired(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Flip the stored status of lapsed subscriptions to inactive.

        Pure status hygiene for admin listings; every read path already
        applies is_active.

        Args:
            db: Database session
            now: Naive UTC reference time

        Returns:
            dict: Processing results
        """
        now = now or utcnow()

        lapsed = db.query(Professional).filter(
            Professional.status == ProfessionalStatus.ACTIVE,
            Professional.subscription_expires_at.isnot(None),
            Professional.subscription_expires_at < now,
        ).with_for_update().all()

        for professional in lapsed:
            professional.status = ProfessionalStatus.INACTIVE
            professional.deactivation_reason = DeactivationReason.EXPIRED
            logger.info(
                f"Marked professional {professional.id} inactive "
                f"(expired at {professional.subscription_expires_at})"
            )

        db.commit()

        return {
            "status": "success",
            "expired_count": len(lapsed)
        }
