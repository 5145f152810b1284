"""
Payment Service

Handles the Pagar.me payment gateway boundary:
- Create checkout sessions for subscription, renewal and upgrade
- Translate gateway webhook payloads into subscription transitions
"""

from typing import Optional, Dict, Any, Literal
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import httpx

from models.professional import Professional, DeactivationReason
from services.plan_service import PlanService
from services.subscription_service import SubscriptionService
from services.results import WebhookResult
from core.config import get_settings
from core.periods import utcnow
from core.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

# Gateway event names mapped to the engine's normalized event types
GATEWAY_EVENT_TYPES = {
    "subscription.paid": "confirmed",
    "invoice.paid": "confirmed",
    "charge.paid": "confirmed",
    "order.paid": "confirmed",
    "subscription.payment_failed": "failed",
    "invoice.payment_failed": "failed",
    "charge.payment_failed": "failed",
    "order.payment_failed": "failed",
    "subscription.canceled": "canceled",
}

# Paid period assumed when a confirmation carries no cycle end
DEFAULT_PERIOD_DAYS = 30


class GatewayEvent(BaseModel):
    """Normalized webhook event."""
    event_type: Literal["confirmed", "failed", "canceled"]
    provider_transaction_id: str
    professional_id: Optional[str] = None
    external_customer_ref: Optional[str] = None
    plan_id: Optional[str] = None
    period_end: Optional[datetime] = None
    occurred_at: Optional[datetime] = None


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class PaymentService:
    """Service for payment gateway operations."""

    @staticmethod
    def parse_gateway_event(raw: Dict[str, Any]) -> Optional[GatewayEvent]:
        """
        Normalize a webhook body.

        Accepts either the normalized shape
        ({"event_type": "confirmed" | "failed" | "canceled", ...}) or a Pagar.me
        event ({"id", "type", "created_at", "data": {...}}).

        Args:
            raw: Parsed JSON body

        Returns:
            GatewayEvent, or None for event types the engine does not handle
        """
        if raw.get("event_type") in ("confirmed", "failed", "canceled"):
            event = GatewayEvent(**raw)
        else:
            event_name = raw.get("type") or raw.get("event")
            event_type = GATEWAY_EVENT_TYPES.get(event_name)
            if not event_type:
                return None

            data = raw.get("data") or {}
            subscription = data.get("subscription") or {}
            metadata = data.get("metadata") or subscription.get("metadata") or {}
            cycle = data.get("current_cycle") or data.get("cycle") or subscription.get("current_cycle") or {}
            customer = data.get("customer") or {}

            event = GatewayEvent(
                event_type=event_type,
                provider_transaction_id=raw.get("id") or f"{event_name}:{data.get('id')}",
                professional_id=metadata.get("professional_id"),
                external_customer_ref=customer.get("id") or data.get("customer_id"),
                plan_id=metadata.get("plan_id"),
                period_end=cycle.get("end_at") or data.get("period_end"),
                occurred_at=raw.get("created_at"),
            )

        event.period_end = _naive_utc(event.period_end)
        event.occurred_at = _naive_utc(event.occurred_at)
        if event.event_type == "confirmed" and event.period_end is None:
            event.period_end = (event.occurred_at or utcnow()) + timedelta(days=DEFAULT_PERIOD_DAYS)
        return event

    @staticmethod
    def resolve_professional_id(event: GatewayEvent, db: Session) -> Optional[str]:
        """Find the professional an event refers to, by id or gateway customer ref."""
        if event.professional_id:
            return event.professional_id
        if event.external_customer_ref:
            professional = db.query(Professional).filter(
                Professional.gateway_customer_id == event.external_customer_ref
            ).first()
            if professional:
                return professional.id
        return None

    @staticmethod
    def handle_webhook_event(raw: Dict[str, Any], db: Session) -> WebhookResult:
        """
        Handle a gateway webhook.

        Supported events:
        - confirmed (subscription.paid, invoice.paid, charge.paid, order.paid)
        - failed (*.payment_failed)
        - canceled (subscription.canceled)

        Args:
            raw: Parsed webhook body
            db: Database session

        Returns:
            WebhookResult: applied, duplicate, stale or ignored
        """
        try:
            event = PaymentService.parse_gateway_event(raw)
        except ValidationError as e:
            logger.warning(f"Malformed webhook payload ignored: {e.errors()}")
            return WebhookResult(status="ignored", message="Malformed event")

        if event is None:
            return WebhookResult(
                status="ignored",
                message=f"Unhandled event type: {raw.get('type') or raw.get('event') or raw.get('event_type')}"
            )

        professional_id = PaymentService.resolve_professional_id(event, db)
        if not professional_id:
            logger.warning(
                f"Webhook event without a known professional: provider_transaction_id={event.provider_transaction_id}, "
                f"customer_ref={event.external_customer_ref}"
            )
            return WebhookResult(status="ignored", message="Professional not found")

        if event.event_type == "confirmed":
            return SubscriptionService.on_payment_confirmed(
                professional_id=professional_id,
                plan_id=event.plan_id,
                period_end=event.period_end,
                provider_transaction_id=event.provider_transaction_id,
                db=db,
                occurred_at=event.occurred_at,
            )

        reason = DeactivationReason.CANCELED if event.event_type == "canceled" else DeactivationReason.PAYMENT_FAILED
        return SubscriptionService.on_payment_failed_or_expired(
            professional_id=professional_id,
            provider_transaction_id=event.provider_transaction_id,
            db=db,
            occurred_at=event.occurred_at,
            reason=reason,
        )

    @staticmethod
    async def create_checkout_session(
        professional_id: str,
        db: Session,
        plan_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a Pagar.me checkout for a subscription, renewal or upgrade.

        The order carries professional_id and plan_id as metadata; the
        resulting payment webhook comes back through handle_webhook_event
        and on_payment_confirmed with that plan.

        Args:
            professional_id: Professional UUID
            db: Database session
            plan_id: Plan to pay for (defaults to the current plan)

        Returns:
            dict: checkout_url, checkout_id, order_id, plan_id

        Raises:
            HTTPException: 400 without a plan, 404 unknown plan, 502/503 gateway errors
        """
        professional = SubscriptionService.get_professional_or_404(professional_id, db)

        plan_id = plan_id or professional.subscription_plan_id
        if not plan_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "A plan must be selected", "error_code": "plan_required"}
            )

        plan = PlanService.get_plan_or_404(plan_id, db)
        if not plan.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Plan is no longer available", "error_code": "plan_inactive"}
            )

        amount_cents = int((Decimal(plan.monthly_price) * 100).to_integral_value())
        frontend_url = settings.FRONTEND_URL

        payload = {
            "items": [
                {
                    "amount": amount_cents,
                    "description": plan.name,
                    "quantity": 1,
                    "code": plan.id,
                }
            ],
            "customer": {
                "name": professional.full_name,
                "email": professional.email,
                "type": "individual",
            },
            "payments": [
                {
                    "payment_method": "checkout",
                    "checkout": {
                        "expires_in": 3600,
                        "accepted_payment_methods": ["credit_card", "pix", "boleto"],
                        "success_url": f"{frontend_url}/profissional/dashboard",
                    },
                }
            ],
            "metadata": {
                "professional_id": professional.id,
                "plan_id": plan.id,
            },
        }
        if professional.gateway_customer_id:
            payload["customer_id"] = professional.gateway_customer_id
            payload.pop("customer")

        url = f"{settings.PAGARME_API_URL}/orders"

        try:
            async with httpx.AsyncClient(timeout=30.0, auth=(settings.PAGARME_API_KEY, "")) as client:
                response = await client.post(url, json=payload)

                if response.status_code >= 400:
                    error_data = {}
                    if response.headers.get("content-type", "").startswith("application/json"):
                        error_data = response.json()
                    logger.error(
                        f"Pagar.me API error: status={response.status_code}, "
                        f"message={error_data.get('message')}, errors={error_data.get('errors')}"
                    )
                    raise HTTPException(
                        status_code=status.HTTP_502_BAD_GATEWAY,
                        detail={
                            "message": "Payment provider error. Please try again or contact support.",
                            "error_code": "gateway_error",
                            "gateway_message": error_data.get("message"),
                        }
                    )

                data = response.json()
        except HTTPException:
            raise
        except httpx.RequestError:
            logger.error(f"Could not reach Pagar.me at {url}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={
                    "message": "Unable to connect to payment provider. Please try again later.",
                    "error_code": "gateway_connection_error"
                }
            )

        checkouts = data.get("checkouts") or []
        checkout = checkouts[0] if checkouts else {}
        checkout_url = checkout.get("payment_url")
        if not checkout_url:
            logger.error(f"Pagar.me order response missing checkout URL: {str(data)[:500]}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={
                    "message": "Payment provider did not return a checkout link",
                    "error_code": "checkout_url_missing"
                }
            )

        # Webhooks that carry only the customer reference resolve through this column
        customer_id = (data.get("customer") or {}).get("id")
        if customer_id and professional.gateway_customer_id != customer_id:
            professional.gateway_customer_id = customer_id
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning(
                    f"Gateway customer {customer_id} already linked to another professional, "
                    f"not linking professional_id={professional.id}"
                )

        logger.info(
            f"Checkout created: professional_id={professional.id}, plan_id={plan.id}, "
            f"order_id={data.get('id')}, checkout_id={checkout.get('id')}, customer_id={customer_id}"
        )

        return {
            "checkout_url": checkout_url,
            "checkout_id": checkout.get("id"),
            "order_id": data.get("id"),
            "plan_id": plan.id,
        }
