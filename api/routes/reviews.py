"""
Review Routes

Public review submission.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from core.database import get_db
from api.middleware.rate_limit import limiter, route_limit
from services.review_service import ReviewService

router = APIRouter()


class ReviewCreate(BaseModel):
    """Review submission request model."""
    professional_id: str
    customer_name: str = Field(..., min_length=1, max_length=150)
    customer_email: Optional[EmailStr] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(route_limit("10/minute"))
async def submit_review(
    request: Request,
    review: ReviewCreate,
    db: Session = Depends(get_db)
):
    """
    Submit a review. The professional's rating and position update immediately.

    Reviews are accepted regardless of the professional's subscription state.

    **Response 201**: Created review
    **Response 404**: Professional not found
    **Response 422**: Rating outside 1..5
    """
    created = ReviewService.submit_review(
        review.professional_id,
        review.model_dump(exclude={"professional_id"}),
        db,
    )
    return created.to_dict()
