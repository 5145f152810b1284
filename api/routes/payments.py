"""
Payment Routes

Handles Pagar.me checkout and webhooks.
"""

import json
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Request, Header
from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.database import get_db
from core.logger import get_logger
from core.security import verify_webhook_signature
from api.dependencies import get_current_professional
from api.middleware.rate_limit import limiter, route_limit
from models.professional import Professional
from services.payment_service import PaymentService
from services.results import WebhookResult

logger = get_logger(__name__)

router = APIRouter()


class CheckoutCreate(BaseModel):
    """Checkout creation request model. Omit plan_id to renew the current plan."""
    plan_id: Optional[str] = None


class CheckoutResponse(BaseModel):
    checkout_url: str
    checkout_id: Optional[str] = None
    order_id: Optional[str] = None
    plan_id: str


@router.post("/checkout", response_model=CheckoutResponse)
@limiter.limit(route_limit("10/minute"))
async def create_checkout(
    request: Request,
    checkout_data: CheckoutCreate,
    current_professional: Professional = Depends(get_current_professional),
    db: Session = Depends(get_db)
):
    """
    Create a Pagar.me checkout for a subscription, renewal or upgrade.

    **Authentication Required**: Yes (JWT token)

    **Response 200**: checkout_url to redirect the professional to
    **Response 400**: No plan selected or plan no longer available
    **Response 502/503**: Payment provider error
    """
    result = await PaymentService.create_checkout_session(
        professional_id=current_professional.id,
        db=db,
        plan_id=checkout_data.plan_id,
    )
    return CheckoutResponse(**result)


@router.post("/webhook", response_model=WebhookResult)
async def payment_webhook(
    request: Request,
    x_hub_signature: Optional[str] = Header(None, alias="X-Hub-Signature"),
    db: Session = Depends(get_db)
):
    """
    Handle Pagar.me webhook events.

    Always answers 200 for well-formed, authenticated events, including
    duplicates and stale events, so the gateway stops redelivering them.

    **Response 400**: Body is not valid JSON
    **Response 401**: Invalid signature
    """
    body = await request.body()

    if not verify_webhook_signature(body, x_hub_signature):
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(f"Webhook rejected: invalid signature from {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature"
        )

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload"
        )
    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook payload"
        )

    result = PaymentService.handle_webhook_event(payload, db)
    logger.info(
        f"Webhook processed: type={payload.get('type') or payload.get('event_type')}, "
        f"status={result.status}, professional_id={result.professional_id}"
    )
    return result
