"""
Payment Gateway Tests

Webhook payload translation and checkout creation.
"""

import asyncio
import json
from datetime import datetime

import httpx
import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from models.professional import ProfessionalStatus, DeactivationReason
from services.payment_service import PaymentService


def _pagarme_event(event_type: str, professional_id=None, plan_id=None, **data):
    metadata = {}
    if professional_id:
        metadata["professional_id"] = professional_id
    if plan_id:
        metadata["plan_id"] = plan_id
    return {
        "id": f"hook_{event_type}_{professional_id}",
        "type": event_type,
        "created_at": "2025-01-10T12:00:00Z",
        "data": {"id": "sub_1", "metadata": metadata, **data},
    }


def test_parse_subscription_paid():
    raw = _pagarme_event(
        "subscription.paid", "pro-1", "plan-1",
        current_cycle={"end_at": "2025-02-10T03:00:00-03:00"},
    )

    event = PaymentService.parse_gateway_event(raw)

    assert event.event_type == "confirmed"
    assert event.provider_transaction_id == "hook_subscription.paid_pro-1"
    assert event.professional_id == "pro-1"
    assert event.plan_id == "plan-1"
    # Converted to naive UTC
    assert event.period_end == datetime(2025, 2, 10, 6, 0, 0)
    assert event.occurred_at == datetime(2025, 1, 10, 12, 0, 0)


def test_parse_confirmation_without_cycle_defaults_to_thirty_days():
    event = PaymentService.parse_gateway_event(_pagarme_event("charge.paid", "pro-1"))

    assert event.period_end == datetime(2025, 2, 9, 12, 0, 0)


def test_parse_failure_and_cancellation():
    assert PaymentService.parse_gateway_event(_pagarme_event("subscription.payment_failed", "p")).event_type == "failed"
    assert PaymentService.parse_gateway_event(_pagarme_event("subscription.canceled", "p")).event_type == "canceled"


def test_unhandled_event_type_is_ignored(db: Session):
    raw = _pagarme_event("customer.updated", "pro-1")

    assert PaymentService.parse_gateway_event(raw) is None
    assert PaymentService.handle_webhook_event(raw, db).status == "ignored"


def test_normalized_payload_accepted(db: Session, pending_professional, plan):
    raw = {
        "event_type": "confirmed",
        "professional_id": pending_professional.id,
        "plan_id": plan.id,
        "period_end": "2099-01-31T00:00:00",
        "provider_transaction_id": "norm-1",
    }

    result = PaymentService.handle_webhook_event(raw, db)

    db.refresh(pending_professional)
    assert result.status == "applied"
    assert pending_professional.subscription_expires_at == datetime(2099, 1, 31)


def test_malformed_normalized_payload_is_ignored(db: Session):
    result = PaymentService.handle_webhook_event({"event_type": "confirmed"}, db)

    assert result.status == "ignored"


def test_event_resolved_by_gateway_customer(db: Session, make_professional, plan):
    professional = make_professional(plan=plan, gateway_customer_id="cus_123")
    raw = _pagarme_event("subscription.canceled", customer={"id": "cus_123"})

    result = PaymentService.handle_webhook_event(raw, db)

    db.refresh(professional)
    assert result.status == "applied"
    assert professional.status == ProfessionalStatus.INACTIVE
    assert professional.deactivation_reason == DeactivationReason.CANCELED


def test_event_for_unknown_customer_is_ignored(db: Session):
    raw = _pagarme_event("subscription.paid", customer={"id": "cus_unknown"})

    assert PaymentService.handle_webhook_event(raw, db).status == "ignored"


@pytest.fixture
def mock_gateway(monkeypatch):
    """Route the service's httpx.AsyncClient through a MockTransport."""
    calls = []
    real_client = httpx.AsyncClient

    def install(handler):
        def recording_handler(request: httpx.Request):
            calls.append(request)
            return handler(request)

        def client_factory(**kwargs):
            return real_client(transport=httpx.MockTransport(recording_handler), **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", client_factory)
        return calls

    return install


def test_checkout_session(db: Session, pending_professional, plan, mock_gateway):
    calls = mock_gateway(lambda request: httpx.Response(200, json={
        "id": "or_1",
        "checkouts": [{"id": "chk_1", "payment_url": "https://pay.example/chk_1"}],
    }))

    result = asyncio.run(PaymentService.create_checkout_session(pending_professional.id, db))

    assert result == {
        "checkout_url": "https://pay.example/chk_1",
        "checkout_id": "chk_1",
        "order_id": "or_1",
        "plan_id": plan.id,
    }
    body = json.loads(calls[0].content)
    assert calls[0].url.path.endswith("/orders")
    assert body["metadata"] == {"professional_id": pending_professional.id, "plan_id": plan.id}
    assert body["items"][0]["amount"] == 3990


def test_checkout_gateway_error(db: Session, pending_professional, mock_gateway):
    mock_gateway(lambda request: httpx.Response(422, json={"message": "invalid"}))

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(PaymentService.create_checkout_session(pending_professional.id, db))
    assert exc_info.value.status_code == 502


def test_checkout_gateway_unreachable(db: Session, pending_professional, mock_gateway):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    mock_gateway(refuse)

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(PaymentService.create_checkout_session(pending_professional.id, db))
    assert exc_info.value.status_code == 503


def test_checkout_requires_plan(db: Session, make_professional):
    professional = make_professional(plan=None, status=ProfessionalStatus.PENDING)

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(PaymentService.create_checkout_session(professional.id, db))
    assert exc_info.value.status_code == 400


def test_checkout_links_gateway_customer_for_later_webhooks(db: Session, pending_professional, plan, mock_gateway):
    mock_gateway(lambda request: httpx.Response(200, json={
        "id": "or_1",
        "customer": {"id": "cus_1"},
        "checkouts": [{"id": "chk_1", "payment_url": "https://pay.example/chk_1"}],
    }))

    asyncio.run(PaymentService.create_checkout_session(pending_professional.id, db))
    db.refresh(pending_professional)
    assert pending_professional.gateway_customer_id == "cus_1"

    # Only the customer reference, no metadata
    raw = _pagarme_event(
        "charge.paid",
        customer={"id": "cus_1"},
        current_cycle={"end_at": "2099-01-31T00:00:00Z"},
    )
    result = PaymentService.handle_webhook_event(raw, db)

    db.refresh(pending_professional)
    assert result.status == "applied"
    assert pending_professional.status == ProfessionalStatus.ACTIVE
    assert pending_professional.subscription_expires_at == datetime(2099, 1, 31)


def test_checkout_reuses_linked_customer(db: Session, make_professional, plan, mock_gateway):
    professional = make_professional(plan=plan, status=ProfessionalStatus.PENDING, gateway_customer_id="cus_9")
    calls = mock_gateway(lambda request: httpx.Response(200, json={
        "id": "or_2",
        "customer": {"id": "cus_9"},
        "checkouts": [{"id": "chk_2", "payment_url": "https://pay.example/chk_2"}],
    }))

    asyncio.run(PaymentService.create_checkout_session(professional.id, db))

    body = json.loads(calls[0].content)
    assert body["customer_id"] == "cus_9"
    assert "customer" not in body
