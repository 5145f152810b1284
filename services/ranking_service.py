"""
Ranking Service

Per-category ordering of professionals, derived on every read:
1. average rating (descending)
2. review count (descending)
3. featured plan first
4. professional id (ascending, stable tiebreak)

Only professionals passing SubscriptionService.is_active take part, so
pending, lapsed and deactivated professionals never occupy a position.
Rating and review count are aggregated from the review log at query time;
no rank is stored, so nothing needs invalidating when a review arrives.
"""

from typing import Optional, List, Dict
from datetime import datetime
from collections import defaultdict
from sqlalchemy import func
from sqlalchemy.orm import Session

from models.professional import Professional
from models.plan import Plan
from models.review import ReviewEvent
from services.review_service import round_rating
from services.subscription_service import SubscriptionService
from services.results import RankingEntry
from core.periods import utcnow


def ranking_key(entry: dict):
    """Sort key implementing the ranking order."""
    return (-entry["rating"], -entry["total_reviews"], not entry["is_featured"], entry["professional_id"])


class RankingService:
    """Service for category rankings and directory search."""

    @staticmethod
    def _candidates(
        db: Session,
        now: datetime,
        category_id: Optional[str] = None,
        city: Optional[str] = None,
    ) -> List[dict]:
        """Active professionals with their review aggregates."""
        review_stats = db.query(
            ReviewEvent.professional_id.label("professional_id"),
            func.avg(ReviewEvent.rating).label("avg_rating"),
            func.count(ReviewEvent.id).label("total_reviews"),
        ).group_by(ReviewEvent.professional_id).subquery()

        query = db.query(
            Professional,
            review_stats.c.avg_rating,
            review_stats.c.total_reviews,
            Plan.is_featured,
        ).outerjoin(
            review_stats, review_stats.c.professional_id == Professional.id
        ).outerjoin(
            Plan, Plan.id == Professional.subscription_plan_id
        ).filter(SubscriptionService.active_filter(now))

        if category_id:
            query = query.filter(Professional.category_id == category_id)
        if city:
            query = query.filter(func.lower(Professional.city) == city.strip().lower())

        return [
            {
                "professional": professional,
                "professional_id": professional.id,
                "rating": round_rating(avg_rating),
                "total_reviews": total_reviews or 0,
                "is_featured": bool(is_featured),
            }
            for professional, avg_rating, total_reviews, is_featured in query.all()
        ]

    @staticmethod
    def _to_entries(candidates: List[dict]) -> List[RankingEntry]:
        ordered = sorted(candidates, key=ranking_key)
        return [
            RankingEntry(
                position=index,
                professional_id=item["professional_id"],
                full_name=item["professional"].full_name,
                category_id=item["professional"].category_id,
                city=item["professional"].city,
                rating=str(item["rating"]),
                total_reviews=item["total_reviews"],
                is_featured=item["is_featured"],
            )
            for index, item in enumerate(ordered, start=1)
        ]

    @staticmethod
    def rank_category(
        category_id: str,
        db: Session,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[RankingEntry]:
        """
        Rank the active professionals of a category.

        Positions are 1-based and assigned over the whole category before
        pagination, so a page keeps the absolute positions.

        Args:
            category_id: Category UUID
            db: Database session
            now: Naive UTC reference time for the activeness check
            limit: Page size (None = all)
            offset: Page offset

        Returns:
            list: Ranking entries in order
        """
        entries = RankingService._to_entries(
            RankingService._candidates(db, now or utcnow(), category_id=category_id)
        )
        end = offset + limit if limit is not None else None
        return entries[offset:end]

    @staticmethod
    def get_position(professional_id: str, db: Session, now: Optional[datetime] = None) -> Optional[RankingEntry]:
        """
        A professional's entry in its category ranking.

        Returns:
            RankingEntry, or None when the professional is not active
        """
        now = now or utcnow()
        professional = SubscriptionService.get_professional_or_404(professional_id, db)
        if not SubscriptionService.is_active(professional, now):
            return None

        for entry in RankingService.rank_category(professional.category_id, db, now):
            if entry.professional_id == professional_id:
                return entry
        return None

    @staticmethod
    def top_by_category(db: Session, now: Optional[datetime] = None) -> Dict[str, RankingEntry]:
        """The #1 professional of every category with at least one active professional."""
        by_category = defaultdict(list)
        for candidate in RankingService._candidates(db, now or utcnow()):
            by_category[candidate["professional"].category_id].append(candidate)

        return {
            category_id: RankingService._to_entries(candidates)[0]
            for category_id, candidates in by_category.items()
        }

    @staticmethod
    def search(
        db: Session,
        category_id: Optional[str] = None,
        city: Optional[str] = None,
        now: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[RankingEntry]:
        """
        Directory search over active professionals, in ranking order.

        Positions here are positions within the search result, not the
        category ranking.
        """
        entries = RankingService._to_entries(
            RankingService._candidates(db, now or utcnow(), category_id=category_id, city=city)
        )
        return entries[offset:offset + limit]
