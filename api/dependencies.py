"""
API Dependencies

Shared dependencies for FastAPI routes.
Provides professional authentication and service-token authentication.
"""

from typing import Optional
import hmac
from fastapi import Depends, HTTPException, Header, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from core.config import get_settings
from core.database import get_db
from core.security import decode_access_token
from core.logger import get_logger
from models.professional import Professional
from services.auth_service import AuthService

settings = get_settings()
logger = get_logger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer()


def get_current_professional(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Professional:
    """
    Dependency to get the authenticated professional from the JWT token.

    Subscription state is not checked here: pending and lapsed
    professionals still reach their dashboard, and each gated operation
    reports SubscriptionInactive on its own.

    Raises:
        HTTPException: 401 if the token is invalid or the professional is gone
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    professional_id: Optional[str] = payload.get("sub")
    if professional_id is None or payload.get("role") != "professional":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    professional = AuthService.get_professional_by_id(professional_id, db)
    if professional is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Professional not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return professional


def verify_service_token(x_service_token: Optional[str] = Header(None, alias="X-Service-Token")) -> bool:
    """
    Verify the service token for admin actions and scheduled jobs.

    Set SERVICE_TOKEN in environment variables. Without one, calls are
    allowed in development only.
    """
    service_token = settings.SERVICE_TOKEN

    if not service_token:
        if settings.ENVIRONMENT == "development":
            logger.warning("SERVICE_TOKEN not configured - allowing in development mode only")
            return True
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Service token not configured"
        )

    if not x_service_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Service token required. Set X-Service-Token header."
        )

    if not hmac.compare_digest(x_service_token, service_token):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid service token"
        )

    return True
