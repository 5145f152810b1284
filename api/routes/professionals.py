"""
Professional Routes

Directory search, public profiles and reviews, and the professional's own
dashboard endpoints (profile edit, contact quota, contact history, portfolio
photos).
"""

from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from core.database import get_db
from core.logger import get_logger
from api.dependencies import get_current_professional
from api.routes.contacts import rejection_response
from models.professional import Professional
from services.contact_service import ContactService
from services.portfolio_service import PortfolioService
from services.quota_service import QuotaService
from services.ranking_service import RankingService
from services.review_service import ReviewService
from services.subscription_service import SubscriptionService
from services.professional_service import ProfessionalService
from services.results import QuotaSnapshot, RankingEntry, PhotoChange

logger = get_logger(__name__)

router = APIRouter()


class PhotoAdd(BaseModel):
    photo_ref: str = Field(..., min_length=1, max_length=500)


class ProfileUpdate(BaseModel):
    """Profile edit request model. Only fields present in the body are changed."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=150)
    phone: Optional[str] = Field(None, max_length=30)
    city: Optional[str] = Field(None, max_length=100)
    category_id: Optional[str] = None
    description: Optional[str] = Field(None, max_length=2000)


@router.get("/search", response_model=List[RankingEntry])
async def search_professionals(
    category_id: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """
    Search the directory by category and/or city.

    Only professionals with an active, unexpired subscription are listed,
    in ranking order.
    """
    return RankingService.search(db, category_id=category_id, city=city, limit=limit, offset=offset)


@router.patch("/me")
async def update_my_profile(
    profile: ProfileUpdate,
    current_professional: Professional = Depends(get_current_professional),
    db: Session = Depends(get_db)
):
    """
    Edit the professional's own profile.

    **Response 200**: Updated profile
    **Response 400**: Blank name or unknown category
    **Response 403**: error_code subscription_inactive, editing needs an active subscription
    """
    result = ProfessionalService.update_profile(current_professional.id, profile.model_dump(exclude_unset=True), db)
    if not result.ok:
        return rejection_response(result.rejection)
    return result.professional


@router.get("/me/contacts/monthly", response_model=QuotaSnapshot)
async def get_monthly_contacts(
    current_professional: Professional = Depends(get_current_professional),
    db: Session = Depends(get_db)
):
    """Contacts used this calendar month against the plan limit."""
    return QuotaService.contact_snapshot(current_professional, db)


@router.get("/me/contacts")
async def list_my_contacts(
    limit: int = Query(50, ge=1, le=500),
    current_professional: Professional = Depends(get_current_professional),
    db: Session = Depends(get_db)
):
    """The professional's contact history, newest first."""
    contacts = ContactService.list_contacts(current_professional.id, db, limit=limit)
    return [contact.to_dict() for contact in contacts]


@router.get("/me/photos/quota", response_model=QuotaSnapshot)
async def get_photo_quota(
    current_professional: Professional = Depends(get_current_professional),
    db: Session = Depends(get_db)
):
    """Portfolio photos used against the plan limit."""
    return QuotaService.photo_snapshot(current_professional, db)


@router.post("/me/photos", response_model=PhotoChange, status_code=status.HTTP_201_CREATED)
async def add_photo(
    photo: PhotoAdd,
    current_professional: Professional = Depends(get_current_professional),
    db: Session = Depends(get_db)
):
    """
    Add an uploaded photo to the portfolio.

    **Response 201**: Updated portfolio and photo quota
    **Response 403**: error_code subscription_inactive
    **Response 429**: error_code quota_exceeded, photo limit reached
    """
    result = PortfolioService.add_photo(current_professional.id, photo.photo_ref, db)
    if not result.ok:
        return rejection_response(result.rejection)
    return result


@router.delete("/me/photos", response_model=PhotoChange)
async def remove_photo(
    photo_ref: str = Query(..., min_length=1),
    current_professional: Professional = Depends(get_current_professional),
    db: Session = Depends(get_db)
):
    """Remove a photo from the portfolio. Allowed in any subscription state."""
    return PortfolioService.remove_photo(current_professional.id, photo_ref, db)


@router.get("/{professional_id}")
async def get_professional(
    professional_id: str,
    db: Session = Depends(get_db)
):
    """Public profile. Only listed while the subscription is active."""
    professional = SubscriptionService.get_professional_or_404(professional_id, db)
    if not SubscriptionService.is_active(professional):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Professional not found"
        )
    return professional.to_public_dict()


@router.get("/{professional_id}/reviews")
async def list_reviews(
    professional_id: str,
    db: Session = Depends(get_db)
):
    """Reviews for a professional, newest first."""
    return [review.to_dict() for review in ReviewService.list_reviews(professional_id, db)]
