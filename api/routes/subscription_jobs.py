"""
Subscription Management Jobs

Scheduled jobs for subscription lifecycle management.
These endpoints are called by external schedulers (cron).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Dict, Any

from core.database import get_db
from core.logger import get_logger
from api.dependencies import verify_service_token
from services.subscription_service import SubscriptionService

logger = get_logger(__name__)

router = APIRouter()


@router.post("/process-expired")
async def process_expired_subscriptions_job(
    _: bool = Depends(verify_service_token),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Mark professionals whose paid period has ended as inactive.

    Status hygiene only: search, ranking and quota checks already treat a
    lapsed subscription as inactive. Should run at least daily.

    Authentication: Requires X-Service-Token header
    """
    result = SubscriptionService.sweep_expired(db)
    logger.info(f"Expired subscriptions job completed: {result}")
    return result
