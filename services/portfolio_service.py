"""
Portfolio Service

Portfolio photo slots. Adding a photo is gated on an active subscription
and the plan's photo limit; removing one is always allowed.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models.professional import Professional
from services.quota_service import QuotaService
from services.results import PhotoChange
from core.logger import get_logger

logger = get_logger(__name__)


class PortfolioService:
    """Service for portfolio photo management."""

    @staticmethod
    def _lock(professional_id: str, db: Session) -> Professional:
        professional = db.query(Professional).filter(
            Professional.id == professional_id
        ).with_for_update().first()
        if not professional:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Professional not found"
            )
        return professional

    @staticmethod
    def add_photo(
        professional_id: str,
        photo_ref: str,
        db: Session,
        now: Optional[datetime] = None,
    ) -> PhotoChange:
        """
        Append a photo reference to the portfolio.

        The professional row stays locked between the check and the write,
        so concurrent uploads cannot overrun the photo limit.

        Args:
            professional_id: Professional UUID
            photo_ref: Object storage reference of the uploaded photo
            db: Database session
            now: Naive UTC reference time

        Returns:
            PhotoChange: updated portfolio, or a SubscriptionInactive / QuotaExceeded rejection
        """
        professional = PortfolioService._lock(professional_id, db)

        rejection = QuotaService.check_photo_add(professional, db, now)
        if rejection:
            db.rollback()
            logger.info(f"Photo add rejected: professional_id={professional_id}, {rejection.error_code}")
            return PhotoChange(rejection=rejection)

        # Assign a new list so the JSON column is flagged dirty
        professional.portfolio = list(professional.portfolio or []) + [photo_ref]
        db.commit()
        db.refresh(professional)

        return PhotoChange(
            portfolio=list(professional.portfolio),
            photos=QuotaService.photo_snapshot(professional, db),
        )

    @staticmethod
    def remove_photo(professional_id: str, photo_ref: str, db: Session) -> PhotoChange:
        """
        Remove a photo reference from the portfolio.

        Allowed regardless of subscription state. Removing a reference that
        is not in the portfolio is a no-op.
        """
        professional = PortfolioService._lock(professional_id, db)

        professional.portfolio = [ref for ref in (professional.portfolio or []) if ref != photo_ref]
        db.commit()
        db.refresh(professional)

        return PhotoChange(
            portfolio=list(professional.portfolio),
            photos=QuotaService.photo_snapshot(professional, db),
        )
