"""
Category Service

Service category catalog:
- List categories (public: active only)
- Admin create / update
- Resolve a category a professional may be listed under
"""

from typing import Optional, List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models.category import Category
from core.logger import get_logger

logger = get_logger(__name__)

CATEGORY_FIELDS = ("name", "slug", "description", "is_active")


class CategoryService:
    """Service for service categories."""

    @staticmethod
    def list_categories(db: Session, include_inactive: bool = False) -> List[Category]:
        query = db.query(Category)
        if not include_inactive:
            query = query.filter(Category.is_active.is_(True))
        return query.order_by(Category.name.asc()).all()

    @staticmethod
    def get_category(category_id: str, db: Session) -> Optional[Category]:
        return db.query(Category).filter(Category.id == category_id).first()

    @staticmethod
    def get_category_or_404(category_id: str, db: Session) -> Category:
        category = CategoryService.get_category(category_id, db)
        if not category:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found"
            )
        return category

    @staticmethod
    def get_listable_category(category_id: str, db: Session) -> Category:
        """
        Resolve a category a professional can register or move into.

        Raises:
            HTTPException: 400 if the category is unknown or inactive
        """
        category = CategoryService.get_category(category_id, db)
        if not category or not category.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unknown category"
            )
        return category

    @staticmethod
    def _commit(category: Category, db: Session) -> Category:
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category slug already exists"
            )
        db.refresh(category)
        return category

    @staticmethod
    def create_category(data: dict, db: Session) -> Category:
        """
        Create a category (admin).

        Raises:
            HTTPException: 400 if the slug is taken
        """
        category = Category(**{key: value for key, value in data.items() if key in CATEGORY_FIELDS})
        db.add(category)
        category = CategoryService._commit(category, db)
        logger.info(f"Category created: id={category.id}, slug={category.slug}")
        return category

    @staticmethod
    def update_category(category_id: str, data: dict, db: Session) -> Category:
        """
        Update a category (admin).

        Deactivating a category hides it from signup; professionals already
        in it keep their ranking there.
        """
        category = CategoryService.get_category_or_404(category_id, db)
        for key, value in data.items():
            # Only description is nullable
            if key in CATEGORY_FIELDS and (value is not None or key == "description"):
                setattr(category, key, value)
        category = CategoryService._commit(category, db)
        logger.info(f"Category updated: id={category.id}, fields={sorted(k for k in data if k in CATEGORY_FIELDS)}")
        return category
