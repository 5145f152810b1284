"""
Webhook Event Model

Idempotency keys and audit trail for payment gateway webhooks.
"""

from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Text, Index
import enum

from core.database import Base
from models.base import generate_uuid, CreatedAtMixin, format_utc_datetime


class WebhookEventType(enum.Enum):
    """Normalized gateway event types."""
    CONFIRMED = "confirmed"
    FAILED = "failed"
    CANCELED = "canceled"


class WebhookOutcome(enum.Enum):
    """What the engine did with a delivered event."""
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    STALE = "stale"
    IGNORED = "ignored"


class WebhookEvent(Base, CreatedAtMixin):
    """
    A processed gateway event.

    provider_transaction_id is unique: a redelivered event is recognized
    by it and never applied twice.

    Attributes:
        id: Unique row identifier (UUID)
        provider_transaction_id: Gateway event / transaction id
        event_type: confirmed, failed or canceled
        professional_id: Professional the event resolved to (if any)
        plan_id: Plan carried by the event
        period_end: Paid-through timestamp carried by confirmed events
        occurred_at: Gateway-side event timestamp
        outcome: applied, stale or ignored
        detail: Free text explaining the outcome
    """

    __tablename__ = "webhook_events"

    __table_args__ = (
        Index('ix_webhook_events_professional_created', 'professional_id', 'created_at'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    provider_transaction_id = Column(String(255), nullable=False, unique=True, index=True)
    event_type = Column(SQLEnum(WebhookEventType), nullable=False)
    professional_id = Column(String(36), nullable=True)
    plan_id = Column(String(36), nullable=True)
    period_end = Column(DateTime, nullable=True)
    occurred_at = Column(DateTime, nullable=True)
    outcome = Column(SQLEnum(WebhookOutcome), nullable=False)
    detail = Column(Text, nullable=True)

    def __repr__(self):
        return (
            f"<WebhookEvent(provider_transaction_id={self.provider_transaction_id}, "
            f"event_type={self.event_type.value}, outcome={self.outcome.value})>"
        )

    def to_dict(self):
        return {
            "id": self.id,
            "provider_transaction_id": self.provider_transaction_id,
            "event_type": self.event_type.value,
            "professional_id": self.professional_id,
            "plan_id": self.plan_id,
            "period_end": format_utc_datetime(self.period_end),
            "occurred_at": format_utc_datetime(self.occurred_at),
            "outcome": self.outcome.value,
            "detail": self.detail,
            "created_at": format_utc_datetime(self.created_at),
        }
