"""
Authentication Routes

Handles professional registration and login.
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Request
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from core.database import get_db
from core.logger import get_logger
from services.auth_service import AuthService
from services.subscription_service import SubscriptionService
from api.dependencies import get_current_professional
from api.middleware.rate_limit import limiter, route_limit
from models.professional import Professional

logger = get_logger(__name__)

router = APIRouter()


# Request/Response Models
class ProfessionalRegister(BaseModel):
    """Professional registration request model."""
    full_name: str = Field(..., min_length=2, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone: str = Field(..., max_length=30)
    city: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    category_id: str
    plan_id: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "full_name": "Maria Souza",
                "email": "maria@example.com",
                "password": "senhaSegura123",
                "phone": "+55 11 99999-0000",
                "city": "São Paulo",
                "category_id": "c0a8012e-0000-0000-0000-000000000001",
                "plan_id": None
            }
        }


class ProfessionalLogin(BaseModel):
    """Professional login request model."""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Token response model."""
    access_token: str
    token_type: str
    expires_in: int
    professional: dict


def _with_subscription_state(professional: Professional) -> dict:
    data = professional.to_dict()
    data["is_active"] = SubscriptionService.is_active(professional)
    data["inactive_reason"] = SubscriptionService.inactive_reason(professional)
    return data


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(route_limit("5/minute"))
async def register(
    request: Request,
    registration: ProfessionalRegister,
    db: Session = Depends(get_db)
):
    """
    Register a new professional.

    The account starts in **pending** status and is not listed until the
    first payment is confirmed.

    **Response 201**: access token and profile
    **Response 400**: Email already registered, unknown category or plan
    """
    professional = AuthService.register_professional(registration.model_dump(), db)
    token = AuthService.create_token_for_professional(professional)
    return TokenResponse(**token, professional=_with_subscription_state(professional))


@router.post("/login", response_model=TokenResponse)
@limiter.limit(route_limit("10/minute"))
async def login(
    request: Request,
    credentials: ProfessionalLogin,
    db: Session = Depends(get_db)
):
    """
    Log in a professional.

    **Response 200**: access token and profile
    **Response 401**: Invalid email or password
    """
    professional = AuthService.authenticate_professional(credentials.email, credentials.password, db)
    if not professional:
        logger.info(f"Failed login attempt for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = AuthService.create_token_for_professional(professional)
    return TokenResponse(**token, professional=_with_subscription_state(professional))


@router.get("/me")
async def get_me(current_professional: Professional = Depends(get_current_professional)):
    """Current professional's profile with derived subscription state."""
    return _with_subscription_state(current_professional)
