"""
Review Tests

Review submission, rating cache and verification.
"""

from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from models.professional import ProfessionalStatus
from services.review_service import ReviewService, round_rating


def test_rating_cache_follows_review_log(db: Session, active_professional):
    for rating in (5, 4, 4):
        ReviewService.submit_review(active_professional.id, {"customer_name": "Ana", "rating": rating}, db)

    db.refresh(active_professional)
    assert active_professional.total_reviews == 3
    assert active_professional.rating == Decimal("4.33")
    assert ReviewService.aggregate(active_professional.id, db) == (Decimal("4.33"), 3)


def test_round_rating_half_up():
    assert round_rating(4.675) == Decimal("4.68")
    assert round_rating(None) == Decimal("0.00")


@pytest.mark.parametrize("rating", [0, 6, "5", None])
def test_invalid_rating_rejected(db: Session, active_professional, rating):
    with pytest.raises(HTTPException) as exc_info:
        ReviewService.submit_review(active_professional.id, {"customer_name": "Ana", "rating": rating}, db)
    assert exc_info.value.status_code == 400


def test_review_for_unknown_professional(db: Session):
    with pytest.raises(HTTPException) as exc_info:
        ReviewService.submit_review("missing", {"customer_name": "Ana", "rating": 5}, db)
    assert exc_info.value.status_code == 404


def test_reviews_accepted_for_inactive_professional(db: Session, pending_professional):
    review = ReviewService.submit_review(pending_professional.id, {"customer_name": "Ana", "rating": 3}, db)

    db.refresh(pending_professional)
    assert review.id is not None
    assert pending_professional.status == ProfessionalStatus.PENDING
    assert pending_professional.total_reviews == 1


def test_verification_does_not_change_aggregate(db: Session, active_professional):
    review = ReviewService.submit_review(active_professional.id, {"customer_name": "Ana", "rating": 2}, db)

    ReviewService.set_verification(review.id, True, db)

    db.refresh(active_professional)
    assert review.is_verified is True
    assert active_professional.rating == Decimal("2.00")
    assert active_professional.total_reviews == 1


def test_list_reviews_newest_first(db: Session, active_professional):
    first = ReviewService.submit_review(active_professional.id, {"customer_name": "Ana", "rating": 5}, db)
    second = ReviewService.submit_review(active_professional.id, {"customer_name": "Bia", "rating": 4}, db)

    reviews = ReviewService.list_reviews(active_professional.id, db)

    assert {r.id for r in reviews} == {first.id, second.id}
    assert reviews[0].created_at >= reviews[1].created_at
