"""
Admin Routes

Handles admin-only operations, authenticated with the service token:
- Plan catalog management
- Category management
- Professional status changes
- Review verification
"""

from decimal import Decimal
from typing import Optional, Literal
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from core.database import get_db
from core.logger import get_logger
from api.dependencies import verify_service_token
from services.category_service import CategoryService
from services.plan_service import PlanService
from services.review_service import ReviewService
from services.subscription_service import SubscriptionService

router = APIRouter()
logger = get_logger(__name__)


# ===== Request Models =====

class PlanCreate(BaseModel):
    """Plan creation request model. Null limits mean unlimited."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    monthly_price: Decimal = Field(..., ge=0)
    yearly_price: Optional[Decimal] = Field(None, ge=0)
    max_contacts: Optional[int] = Field(None, ge=0)
    max_photos: Optional[int] = Field(None, ge=0)
    priority: int = 0
    is_featured: bool = False
    is_active: bool = True
    gateway_plan_id: Optional[str] = None


class PlanUpdate(BaseModel):
    """Plan update request model. Only fields present in the body are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    monthly_price: Optional[Decimal] = Field(None, ge=0)
    yearly_price: Optional[Decimal] = Field(None, ge=0)
    max_contacts: Optional[int] = Field(None, ge=0)
    max_photos: Optional[int] = Field(None, ge=0)
    priority: Optional[int] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None
    gateway_plan_id: Optional[str] = None


class CategoryCreate(BaseModel):
    """Category creation request model."""
    name: str = Field(..., min_length=1, max_length=150)
    slug: str = Field(..., min_length=1, max_length=150, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = None
    is_active: bool = True


class CategoryUpdate(BaseModel):
    """Category update request model. Only fields present in the body are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    slug: Optional[str] = Field(None, min_length=1, max_length=150, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ProfessionalStatusUpdate(BaseModel):
    status: Literal["active", "inactive"]


class ReviewVerificationUpdate(BaseModel):
    is_verified: bool


# ===== Plans =====

@router.get("/plans")
async def list_all_plans(
    _: bool = Depends(verify_service_token),
    db: Session = Depends(get_db)
):
    """All plans, including inactive ones."""
    return [plan.to_dict() for plan in PlanService.list_plans(db, include_inactive=True)]


@router.post("/plans", status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan_data: PlanCreate,
    _: bool = Depends(verify_service_token),
    db: Session = Depends(get_db)
):
    """Create a plan."""
    return PlanService.create_plan(plan_data.model_dump(), db).to_dict()


@router.put("/plans/{plan_id}")
async def update_plan(
    plan_id: str,
    plan_data: PlanUpdate,
    _: bool = Depends(verify_service_token),
    db: Session = Depends(get_db)
):
    """
    Update a plan.

    A new limit applies to the next quota check. Contacts already accepted
    this month are not revisited.
    """
    return PlanService.update_plan(plan_id, plan_data.model_dump(exclude_unset=True), db).to_dict()


# ===== Categories =====

@router.get("/categories")
async def list_all_categories(
    _: bool = Depends(verify_service_token),
    db: Session = Depends(get_db)
):
    """All categories, including inactive ones."""
    return [category.to_dict() for category in CategoryService.list_categories(db, include_inactive=True)]


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    _: bool = Depends(verify_service_token),
    db: Session = Depends(get_db)
):
    """Create a category. 400 if the slug is taken."""
    return CategoryService.create_category(category_data.model_dump(), db).to_dict()


@router.put("/categories/{category_id}")
async def update_category(
    category_id: str,
    category_data: CategoryUpdate,
    _: bool = Depends(verify_service_token),
    db: Session = Depends(get_db)
):
    """Rename, re-describe, or (de)activate a category."""
    return CategoryService.update_category(category_id, category_data.model_dump(exclude_unset=True), db).to_dict()


# ===== Professionals =====

@router.patch("/professionals/{professional_id}/status")
async def update_professional_status(
    professional_id: str,
    status_update: ProfessionalStatusUpdate,
    _: bool = Depends(verify_service_token),
    db: Session = Depends(get_db)
):
    """
    Activate or deactivate a professional.

    Activation restores the stored status only; the professional is listed
    again only while the paid period has not ended.
    """
    if status_update.status == "active":
        professional = SubscriptionService.reactivate(professional_id, db)
    else:
        professional = SubscriptionService.deactivate(professional_id, db)

    data = professional.to_dict()
    data["is_active"] = SubscriptionService.is_active(professional)
    return data


@router.patch("/reviews/{review_id}/verification")
async def update_review_verification(
    review_id: str,
    verification: ReviewVerificationUpdate,
    _: bool = Depends(verify_service_token),
    db: Session = Depends(get_db)
):
    """Mark a review verified or unverified. Does not change the rating aggregate."""
    review = ReviewService.set_verification(review_id, verification.is_verified, db)
    logger.info(f"Review verification updated: review_id={review_id}, is_verified={review.is_verified}")
    return review.to_dict()
