"""
Professional Service

Self-service profile editing. Editing is gated on an active subscription,
like adding portfolio photos; pending and lapsed professionals get the
SubscriptionInactive reason so the dashboard can route them to payment.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models.professional import Professional
from services.category_service import CategoryService
from services.subscription_service import SubscriptionService
from services.results import ProfileChange, SubscriptionInactive
from core.sanitization import sanitize_name, sanitize_message, sanitize_text
from core.logger import get_logger

logger = get_logger(__name__)

PROFILE_FIELDS = ("full_name", "phone", "city", "category_id", "description")


class ProfessionalService:
    """Service for the professional's own profile."""

    @staticmethod
    def update_profile(
        professional_id: str,
        data: dict,
        db: Session,
        now: Optional[datetime] = None,
    ) -> ProfileChange:
        """
        Update profile fields.

        Only keys present in data are changed. Subscription, rating and
        portfolio columns are never touched here.

        Args:
            professional_id: Professional UUID
            data: Any of full_name, phone, city, category_id, description
            db: Database session
            now: Naive UTC reference time

        Returns:
            ProfileChange: updated profile, or a SubscriptionInactive rejection

        Raises:
            HTTPException: 404 unknown professional, 400 blank name or unknown category
        """
        professional = db.query(Professional).filter(
            Professional.id == professional_id
        ).with_for_update().first()
        if not professional:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Professional not found"
            )

        reason = SubscriptionService.inactive_reason(professional, now)
        if reason:
            db.rollback()
            logger.info(f"Profile edit rejected: professional_id={professional_id}, subscription {reason}")
            return ProfileChange(rejection=SubscriptionInactive(reason=reason))

        changes = {key: value for key, value in data.items() if key in PROFILE_FIELDS}

        if "full_name" in changes:
            full_name = sanitize_name(changes["full_name"])
            if not full_name:
                db.rollback()
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Full name is required"
                )
            professional.full_name = full_name

        if "phone" in changes:
            professional.phone = sanitize_text(changes["phone"], max_length=30) or ""

        if "city" in changes:
            professional.city = sanitize_text(changes["city"], max_length=100)

        if "description" in changes:
            professional.description = sanitize_message(changes["description"])

        if "category_id" in changes and changes["category_id"] != professional.category_id:
            try:
                category = CategoryService.get_listable_category(changes["category_id"], db)
            except HTTPException:
                db.rollback()
                raise
            professional.category_id = category.id

        db.commit()
        db.refresh(professional)

        logger.info(f"Profile updated: professional_id={professional_id}, fields={sorted(changes)}")
        return ProfileChange(professional=professional.to_dict())
