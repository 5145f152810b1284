"""
Subscription State Tests

Lazy expiry, webhook transitions, idempotency, stale events and admin changes.
"""

from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from models.professional import Professional, ProfessionalStatus, DeactivationReason
from models.webhook_event import WebhookEvent, WebhookOutcome
from services.subscription_service import SubscriptionService


NOW = datetime(2025, 1, 10, 12, 0, 0)


def test_is_active_requires_status_and_unexpired_period(make_professional, plan):
    professional = make_professional(plan=plan, expires_at=NOW + timedelta(days=1))

    assert SubscriptionService.is_active(professional, NOW) is True
    # Stored status is still active, but the paid period has ended
    assert SubscriptionService.is_active(professional, NOW + timedelta(days=2)) is False
    assert professional.status == ProfessionalStatus.ACTIVE


def test_is_active_on_exact_expiry_instant(make_professional, plan):
    professional = make_professional(plan=plan, expires_at=NOW)

    assert SubscriptionService.is_active(professional, NOW) is True
    assert SubscriptionService.is_active(professional, NOW + timedelta(seconds=1)) is False


def test_inactive_reasons(make_professional, plan):
    pending = make_professional(plan=plan, status=ProfessionalStatus.PENDING)
    lapsed = make_professional(plan=plan, expires_at=NOW - timedelta(days=1))
    blocked = make_professional(
        plan=plan,
        status=ProfessionalStatus.INACTIVE,
        deactivation_reason=DeactivationReason.ADMIN,
        expires_at=NOW + timedelta(days=10),
    )
    active = make_professional(plan=plan, expires_at=NOW + timedelta(days=10))

    assert SubscriptionService.inactive_reason(pending, NOW) == "pending"
    assert SubscriptionService.inactive_reason(lapsed, NOW) == "expired"
    assert SubscriptionService.inactive_reason(blocked, NOW) == "admin-deactivated"
    assert SubscriptionService.inactive_reason(active, NOW) is None


def test_payment_confirmed_activates_pending_professional(db: Session, pending_professional, plan):
    period_end = datetime(2025, 2, 10)

    result = SubscriptionService.on_payment_confirmed(
        pending_professional.id, plan.id, period_end, "tx-1", db, occurred_at=NOW
    )

    db.refresh(pending_professional)
    assert result.status == "applied"
    assert pending_professional.status == ProfessionalStatus.ACTIVE
    assert pending_professional.subscription_expires_at == period_end
    assert pending_professional.last_subscription_event_at == NOW
    assert pending_professional.last_payment_at is not None
    assert SubscriptionService.is_active(pending_professional, NOW)


def test_duplicate_confirmation_is_not_reapplied(db: Session, pending_professional, plan):
    period_end = datetime(2025, 2, 10)
    SubscriptionService.on_payment_confirmed(pending_professional.id, plan.id, period_end, "tx-dup", db, occurred_at=NOW)

    result = SubscriptionService.on_payment_confirmed(
        pending_professional.id, plan.id, period_end + timedelta(days=30), "tx-dup", db, occurred_at=NOW
    )

    db.refresh(pending_professional)
    assert result.status == "duplicate"
    assert pending_professional.subscription_expires_at == period_end
    assert db.query(WebhookEvent).filter(WebhookEvent.provider_transaction_id == "tx-dup").count() == 1


def test_older_confirmation_without_timestamp_does_not_shorten_expiry(db: Session, pending_professional, plan):
    SubscriptionService.on_payment_confirmed(pending_professional.id, plan.id, datetime(2025, 1, 31), "tx-a", db)

    result = SubscriptionService.on_payment_confirmed(
        pending_professional.id, plan.id, datetime(2025, 1, 15), "tx-b", db
    )

    db.refresh(pending_professional)
    assert result.status == "stale"
    assert pending_professional.subscription_expires_at == datetime(2025, 1, 31)
    stale = db.query(WebhookEvent).filter(WebhookEvent.provider_transaction_id == "tx-b").one()
    assert stale.outcome == WebhookOutcome.STALE


def test_out_of_order_failure_is_discarded(db: Session, pending_professional, plan):
    SubscriptionService.on_payment_confirmed(
        pending_professional.id, plan.id, datetime(2025, 2, 10), "tx-paid", db, occurred_at=NOW
    )

    # The failure happened before the confirmation that was already applied
    result = SubscriptionService.on_payment_failed_or_expired(
        pending_professional.id, "tx-failed", db, occurred_at=NOW - timedelta(hours=1)
    )

    db.refresh(pending_professional)
    assert result.status == "stale"
    assert pending_professional.status == ProfessionalStatus.ACTIVE


def test_payment_failed_deactivates_and_keeps_history(db: Session, active_professional, plan):
    expires_at = active_professional.subscription_expires_at

    result = SubscriptionService.on_payment_failed_or_expired(active_professional.id, "tx-fail", db)

    db.refresh(active_professional)
    assert result.status == "applied"
    assert active_professional.status == ProfessionalStatus.INACTIVE
    assert active_professional.deactivation_reason == DeactivationReason.PAYMENT_FAILED
    assert active_professional.subscription_plan_id == plan.id
    assert active_professional.subscription_expires_at == expires_at
    assert SubscriptionService.inactive_reason(active_professional) == "payment-failed"


def test_cancellation_records_reason(db: Session, active_professional):
    SubscriptionService.on_payment_failed_or_expired(
        active_professional.id, "tx-cancel", db, reason=DeactivationReason.CANCELED
    )

    db.refresh(active_professional)
    assert SubscriptionService.inactive_reason(active_professional) == "canceled"


def test_renewal_after_failure_reactivates(db: Session, active_professional, plan):
    SubscriptionService.on_payment_failed_or_expired(active_professional.id, "tx-f", db, occurred_at=NOW)
    new_end = datetime.utcnow() + timedelta(days=60)

    result = SubscriptionService.on_payment_confirmed(
        active_professional.id, plan.id, new_end, "tx-renew", db, occurred_at=NOW + timedelta(days=1)
    )

    db.refresh(active_professional)
    assert result.status == "applied"
    assert active_professional.deactivation_reason is None
    assert SubscriptionService.is_active(active_professional)


def test_upgrade_switches_plan(db: Session, active_professional, make_plan):
    premium = make_plan(name="Premium", max_contacts=None, max_photos=None, is_featured=True)
    new_end = active_professional.subscription_expires_at + timedelta(days=30)

    SubscriptionService.on_payment_confirmed(active_professional.id, premium.id, new_end, "tx-upgrade", db)

    db.refresh(active_professional)
    assert active_professional.subscription_plan_id == premium.id
    assert active_professional.subscription_expires_at == new_end


def test_unknown_professional_is_ignored_and_recorded(db: Session, plan):
    result = SubscriptionService.on_payment_confirmed("missing", plan.id, datetime(2025, 2, 1), "tx-x", db)

    assert result.status == "ignored"
    event = db.query(WebhookEvent).filter(WebhookEvent.provider_transaction_id == "tx-x").one()
    assert event.outcome == WebhookOutcome.IGNORED


def test_unknown_plan_is_ignored(db: Session, pending_professional):
    result = SubscriptionService.on_payment_confirmed(
        pending_professional.id, "no-such-plan", datetime(2025, 2, 1), "tx-plan", db
    )

    db.refresh(pending_professional)
    assert result.status == "ignored"
    assert pending_professional.status == ProfessionalStatus.PENDING


def test_admin_reactivation_does_not_extend_lapsed_period(db: Session, make_professional, plan):
    professional = make_professional(plan=plan, expires_at=datetime.utcnow() - timedelta(days=5))
    SubscriptionService.deactivate(professional.id, db)

    reactivated = SubscriptionService.reactivate(professional.id, db)

    assert reactivated.status == ProfessionalStatus.ACTIVE
    assert SubscriptionService.is_active(reactivated) is False
    assert SubscriptionService.inactive_reason(reactivated) == "expired"


def test_admin_deactivation_unknown_professional(db: Session):
    with pytest.raises(HTTPException) as exc_info:
        SubscriptionService.deactivate("missing", db)
    assert exc_info.value.status_code == 404


def test_sweep_expired_only_touches_lapsed(db: Session, make_professional, plan):
    lapsed = make_professional(plan=plan, expires_at=NOW - timedelta(days=1))
    current = make_professional(plan=plan, expires_at=NOW + timedelta(days=1))

    result = SubscriptionService.sweep_expired(db, NOW)

    db.refresh(lapsed)
    db.refresh(current)
    assert result == {"status": "success", "expired_count": 1}
    assert lapsed.status == ProfessionalStatus.INACTIVE
    assert lapsed.deactivation_reason == DeactivationReason.EXPIRED
    assert current.status == ProfessionalStatus.ACTIVE


def test_active_filter_matches_is_active(db: Session, make_professional, plan):
    make_professional(plan=plan, expires_at=NOW + timedelta(days=1))
    make_professional(plan=plan, expires_at=NOW - timedelta(days=1))
    make_professional(plan=plan, status=ProfessionalStatus.PENDING)

    listed = db.query(Professional).filter(SubscriptionService.active_filter(NOW)).all()
    everyone = db.query(Professional).all()

    assert {p.id for p in listed} == {p.id for p in everyone if SubscriptionService.is_active(p, NOW)}
    assert len(listed) == 1
