"""
Database Models Package

Contains all SQLAlchemy models for the application.
"""

from models.plan import Plan
from models.category import Category
from models.professional import Professional, ProfessionalStatus, DeactivationReason
from models.contact import ContactEvent, ContactMethod
from models.review import ReviewEvent
from models.contact_quota import ContactQuotaCounter
from models.notification_read import NotificationRead, NotificationType
from models.webhook_event import WebhookEvent, WebhookEventType, WebhookOutcome
from models.base import generate_uuid, TimestampMixin, CreatedAtMixin

__all__ = [
    "Plan",
    "Category",
    "Professional",
    "ProfessionalStatus",
    "DeactivationReason",
    "ContactEvent",
    "ContactMethod",
    "ReviewEvent",
    "ContactQuotaCounter",
    "NotificationRead",
    "NotificationType",
    "WebhookEvent",
    "WebhookEventType",
    "WebhookOutcome",
    "generate_uuid",
    "TimestampMixin",
    "CreatedAtMixin",
]
