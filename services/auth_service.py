"""
Authentication Service

Handles professional authentication business logic:
- Professional registration (starts in pending until the first payment)
- Professional login
- Token generation
"""

from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models.professional import Professional, ProfessionalStatus
from core.security import verify_password, get_password_hash, create_access_token
from core.config import get_settings
from core.logger import get_logger
from services.category_service import CategoryService
from services.plan_service import PlanService

settings = get_settings()
logger = get_logger(__name__)


class AuthService:
    """Service for handling professional authentication operations."""

    @staticmethod
    def register_professional(data: dict, db: Session) -> Professional:
        """
        Register a new professional.

        The professional is created in pending status with no paid period.
        It appears in search and ranking only after the first payment is
        confirmed by the gateway.

        Args:
            data: full_name, email, password, phone, city, description,
                category_id and optional plan_id
            db: Database session

        Returns:
            Professional: Created professional

        Raises:
            HTTPException: If the email is taken or the category/plan is unknown
        """
        email = data["email"].strip().lower()

        existing = db.query(Professional).filter(Professional.email == email).first()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        category = CategoryService.get_listable_category(data["category_id"], db)

        plan_id = data.get("plan_id")
        if plan_id:
            plan = PlanService.get_plan_or_404(plan_id, db)
            if not plan.is_active:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Plan is no longer available"
                )

        professional = Professional(
            full_name=data["full_name"],
            email=email,
            password_hash=get_password_hash(data["password"]),
            phone=data.get("phone") or "",
            city=data.get("city"),
            description=data.get("description"),
            category_id=category.id,
            subscription_plan_id=plan_id,
            status=ProfessionalStatus.PENDING,
            portfolio=[],
        )
        db.add(professional)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )
        db.refresh(professional)

        logger.info(f"Professional registered: id={professional.id}, category_id={category.id}, plan_id={plan_id}")
        return professional

    @staticmethod
    def authenticate_professional(email: str, password: str, db: Session) -> Optional[Professional]:
        """
        Authenticate a professional with email and password.

        Login is allowed in every subscription state so that pending and
        lapsed professionals can reach the payment page.

        Returns:
            Professional if credentials are valid, None otherwise
        """
        professional = db.query(Professional).filter(
            Professional.email == email.strip().lower()
        ).first()

        if not professional or not professional.password_hash:
            return None

        if not verify_password(password, professional.password_hash):
            return None

        return professional

    @staticmethod
    def create_token_for_professional(professional: Professional) -> dict:
        """
        Create an access token for an authenticated professional.

        Returns:
            dict: access_token, token_type and expires_in (seconds)
        """
        return {
            "access_token": create_access_token(data={"sub": professional.id}),
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }

    @staticmethod
    def get_professional_by_id(professional_id: str, db: Session) -> Optional[Professional]:
        return db.query(Professional).filter(Professional.id == professional_id).first()
