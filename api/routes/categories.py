"""
Category Routes

Public list of service categories for signup and browsing.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from services.category_service import CategoryService

router = APIRouter()


@router.get("")
async def list_categories(db: Session = Depends(get_db)):
    """Active categories, alphabetically."""
    return [category.to_dict() for category in CategoryService.list_categories(db)]


@router.get("/{category_id}")
async def get_category(category_id: str, db: Session = Depends(get_db)):
    return CategoryService.get_category_or_404(category_id, db).to_dict()
