"""
Review Service

Handles customer reviews:
- Submit reviews
- Keep the professional's rating / review count cache in step with the log
- Admin verification flag
"""

from typing import List, Tuple
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy import func
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models.review import ReviewEvent
from models.professional import Professional
from services.subscription_service import SubscriptionService
from core.periods import utcnow
from core.sanitization import sanitize_name, sanitize_message
from core.logger import get_logger

logger = get_logger(__name__)

RATING_PRECISION = Decimal("0.01")


def round_rating(value) -> Decimal:
    """Round an average rating to the stored precision (2 decimals)."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(RATING_PRECISION, rounding=ROUND_HALF_UP)


class ReviewService:
    """Service for review operations."""

    @staticmethod
    def aggregate(professional_id: str, db: Session) -> Tuple[Decimal, int]:
        """
        Compute (average rating, review count) from the review log.

        Returns:
            tuple: (rating rounded to 2 decimals, total reviews)
        """
        avg_rating, total = db.query(
            func.avg(ReviewEvent.rating),
            func.count(ReviewEvent.id),
        ).filter(ReviewEvent.professional_id == professional_id).one()
        return round_rating(avg_rating), total or 0

    @staticmethod
    def _refresh_rating_cache(professional: Professional, db: Session) -> None:
        rating, total = ReviewService.aggregate(professional.id, db)
        professional.rating = rating
        professional.total_reviews = total

    @staticmethod
    def submit_review(professional_id: str, review_data: dict, db: Session) -> ReviewEvent:
        """
        Create a review and refresh the professional's rating cache.

        Both writes commit together.

        Args:
            professional_id: Professional UUID
            review_data: customer_name, customer_email, rating (1..5), comment
            db: Database session

        Returns:
            ReviewEvent: Created review

        Raises:
            HTTPException: 404 if the professional does not exist, 400 on an invalid rating
        """
        rating = review_data.get("rating")
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Rating must be an integer between 1 and 5"
            )

        customer_name = sanitize_name(review_data.get("customer_name"))
        if not customer_name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Customer name is required"
            )

        professional = db.query(Professional).filter(
            Professional.id == professional_id
        ).with_for_update().first()
        if not professional:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Professional not found"
            )

        review = ReviewEvent(
            professional_id=professional_id,
            customer_name=customer_name,
            customer_email=review_data.get("customer_email"),
            rating=rating,
            comment=sanitize_message(review_data.get("comment")),
            created_at=review_data.get("created_at") or utcnow(),
        )
        db.add(review)
        db.flush()

        ReviewService._refresh_rating_cache(professional, db)
        db.commit()
        db.refresh(review)

        logger.info(
            f"Review created: review_id={review.id}, professional_id={professional_id}, "
            f"rating={rating}, new_average={professional.rating}"
        )
        return review

    @staticmethod
    def list_reviews(professional_id: str, db: Session) -> List[ReviewEvent]:
        """Reviews for a professional, newest first."""
        SubscriptionService.get_professional_or_404(professional_id, db)
        return db.query(ReviewEvent).filter(
            ReviewEvent.professional_id == professional_id
        ).order_by(ReviewEvent.created_at.desc(), ReviewEvent.id.desc()).all()

    @staticmethod
    def set_verification(review_id: str, is_verified: bool, db: Session) -> ReviewEvent:
        """Set the admin-owned verification flag on a review."""
        review = db.query(ReviewEvent).filter(ReviewEvent.id == review_id).first()
        if not review:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review not found"
            )

        review.is_verified = is_verified
        db.commit()
        db.refresh(review)
        return review
