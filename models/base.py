"""
Base utilities for database models.

Centralized functions and mixins used across all models.
"""

import uuid
from sqlalchemy import Column, DateTime
from datetime import datetime
from typing import Optional


def generate_uuid() -> str:
    """
    Generate a UUID string.

    Returns:
        str: UUID string
    """
    return str(uuid.uuid4())


def format_utc_datetime(dt: Optional[datetime]) -> Optional[str]:
    """
    Format a naive UTC datetime to ISO format with 'Z' suffix.

    Args:
        dt: Datetime object (assumed to be UTC)

    Returns:
        ISO format string with 'Z' suffix (e.g., "2025-11-15T09:33:00Z") or None
    """
    if dt is None:
        return None
    iso_str = dt.isoformat()
    if dt.tzinfo is None:
        return iso_str + 'Z'
    return iso_str


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class CreatedAtMixin:
    """Mixin for append-only rows that are never updated."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
