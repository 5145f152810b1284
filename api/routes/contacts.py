"""
Contact Routes

Public contact intake: a customer reaching a professional through
WhatsApp, the contact form or the phone button.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from core.database import get_db
from core.logger import get_logger
from api.middleware.rate_limit import limiter, route_limit
from models.contact import ContactMethod
from services.contact_service import ContactService
from services.results import ContactAccepted, QuotaExceeded, Rejection

logger = get_logger(__name__)

router = APIRouter()


class ContactCreate(BaseModel):
    """Contact submission request model."""
    professional_id: str
    contact_method: ContactMethod = ContactMethod.FORM
    customer_name: Optional[str] = Field(None, max_length=150)
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = Field(None, max_length=30)
    message: Optional[str] = Field(None, max_length=2000)

    class Config:
        json_schema_extra = {
            "example": {
                "professional_id": "8d3b5c1e-0000-0000-0000-000000000001",
                "contact_method": "whatsapp",
                "customer_name": "João",
                "customer_phone": "+55 11 98888-0000"
            }
        }


def rejection_response(rejection: Rejection) -> JSONResponse:
    """Render a quota or subscription rejection: 429 for quota, 403 for subscription state."""
    status_code = (
        status.HTTP_429_TOO_MANY_REQUESTS if isinstance(rejection, QuotaExceeded)
        else status.HTTP_403_FORBIDDEN
    )
    return JSONResponse(status_code=status_code, content=rejection.model_dump(exclude_none=True))


@router.post(
    "",
    response_model=ContactAccepted,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": Rejection}, 429: {"model": QuotaExceeded}},
)
@limiter.limit(route_limit("20/minute"))
async def submit_contact(
    request: Request,
    contact: ContactCreate,
    db: Session = Depends(get_db)
):
    """
    Submit a customer contact.

    **Response 201**: Contact recorded, with this month's usage
    **Response 403**: error_code subscription_inactive, reason pending / expired /
    admin-deactivated / payment-failed / canceled
    **Response 404**: Professional not found
    **Response 429**: error_code quota_exceeded, monthly contact limit reached
    """
    data = contact.model_dump(exclude={"professional_id"})
    data["contact_method"] = contact.contact_method.value

    result = ContactService.submit_contact(contact.professional_id, data, db)
    if not result.ok:
        return rejection_response(result.rejection)
    return result.accepted
