"""
Security Utilities

JWT token generation/validation, password hashing and webhook signatures.
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
import hashlib
import hmac

from core.config import get_settings

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _prehash_password(password: str) -> str:
    """
    Pre-hash password with SHA-256 to handle bcrypt's 72-byte limit.

    Args:
        password: Plain text password (any length)

    Returns:
        str: SHA-256 hash of password (64 hex characters)
    """
    return hashlib.sha256(password.encode('utf-8')).hexdigest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: Plain text password (any length)
        hashed_password: Hashed password from database

    Returns:
        bool: True if password matches, False otherwise
    """
    return pwd_context.verify(_prehash_password(plain_password), hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using SHA-256 + bcrypt.

    Args:
        password: Plain text password (any length)

    Returns:
        str: Bcrypt hash of the SHA-256 pre-hashed password
    """
    return pwd_context.hash(_prehash_password(password))


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data to encode in the token (usually {"sub": professional_id})
        expires_delta: Optional expiration time delta

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "role": "professional"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload if valid, None otherwise
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def compute_webhook_signature(payload: bytes, secret: str) -> str:
    """HMAC-SHA256 hex digest of a raw webhook body."""
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def verify_webhook_signature(payload: bytes, signature: Optional[str]) -> bool:
    """
    Verify the gateway's webhook signature header.

    Accepts the bare hex digest or the "sha256=<hex>" form. When no
    PAGARME_WEBHOOK_SECRET is configured verification is skipped.

    Args:
        payload: Raw webhook body
        signature: Value of the signature header

    Returns:
        bool: True if the signature is valid
    """
    if not settings.PAGARME_WEBHOOK_SECRET:
        return True

    if not signature:
        return False

    if signature.startswith("sha256="):
        signature = signature[len("sha256="):]

    expected = compute_webhook_signature(payload, settings.PAGARME_WEBHOOK_SECRET)
    return hmac.compare_digest(expected, signature)
