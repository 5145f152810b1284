"""
Service Result Models

Business outcomes returned (never raised) by the engine services.
Quota and subscription rejections are expected results the caller renders,
e.g. as an upgrade prompt or a payment link.
"""

from typing import Optional, Literal, Union
from pydantic import BaseModel


class QuotaSnapshot(BaseModel):
    """Usage of one quota-limited resource against the plan limit."""
    resource: Literal["contacts", "photos"]
    current: int
    max_allowed: Optional[int] = None  # None = unlimited
    remaining: Optional[int] = None  # None = unlimited
    has_limit: bool
    limit_reached: bool
    approaching_limit: bool


class QuotaExceeded(BaseModel):
    """
    The plan limit for a resource has been reached.

    Contact rejections also carry current_month and max_contacts, the same
    names ContactAccepted reports usage under.
    """
    error_code: Literal["quota_exceeded"] = "quota_exceeded"
    resource: Literal["contacts", "photos"]
    current: int
    max_allowed: int
    remaining: int = 0
    current_month: Optional[int] = None
    max_contacts: Optional[int] = None


class SubscriptionInactive(BaseModel):
    """
    A gated action was attempted while the subscription is not active.

    reason lets the UI route to payment (pending, expired, payment-failed,
    canceled) or to support (admin-deactivated).
    """
    error_code: Literal["subscription_inactive"] = "subscription_inactive"
    reason: Literal["pending", "expired", "admin-deactivated", "payment-failed", "canceled"]


Rejection = Union[QuotaExceeded, SubscriptionInactive]


class ContactAccepted(BaseModel):
    """A contact was persisted within the monthly quota."""
    contact_id: str
    current_month: int
    max_contacts: Optional[int] = None
    remaining: Optional[int] = None
    approaching_limit: bool = False


class ContactSubmission(BaseModel):
    """Result of submit_contact: exactly one of accepted / rejection is set."""
    accepted: Optional[ContactAccepted] = None
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.accepted is not None


class PhotoChange(BaseModel):
    """Result of a portfolio add/remove: exactly one of portfolio / rejection is set."""
    portfolio: Optional[list[str]] = None
    photos: Optional[QuotaSnapshot] = None
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


class ProfileChange(BaseModel):
    """Result of a profile edit: exactly one of professional / rejection is set."""
    professional: Optional[dict] = None
    rejection: Optional[SubscriptionInactive] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


class WebhookResult(BaseModel):
    """Outcome of processing a single gateway webhook event."""
    status: Literal["applied", "duplicate", "stale", "ignored"]
    message: str
    professional_id: Optional[str] = None
    subscription_expires_at: Optional[str] = None


class RankingEntry(BaseModel):
    """A professional's place in its category ranking."""
    position: int
    professional_id: str
    full_name: str
    category_id: str
    city: Optional[str] = None
    rating: str
    total_reviews: int
    is_featured: bool


class NotificationItem(BaseModel):
    """A contact or review surfaced in the professional's notification feed."""
    id: str
    type: Literal["contact", "review"]
    title: str
    message: Optional[str] = None
    customer_name: Optional[str] = None
    contact_method: Optional[str] = None
    rating: Optional[int] = None
    created_at: str
    is_read: bool


class NotificationFeed(BaseModel):
    items: list[NotificationItem]
    unread_count: int


class MarkAllReadResult(BaseModel):
    """Items that became (or already were) read, and items that could not be found."""
    marked: list[dict]
    failed: list[dict]
