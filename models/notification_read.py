"""
Notification Read Marker Model

Records that a professional has read a contact or review notification.
"""

from sqlalchemy import Column, String, Enum as SQLEnum, ForeignKey, UniqueConstraint
import enum

from core.database import Base
from models.base import generate_uuid, CreatedAtMixin


class NotificationType(enum.Enum):
    """Kinds of events surfaced in the notification feed."""
    CONTACT = "contact"
    REVIEW = "review"


class NotificationRead(Base, CreatedAtMixin):
    """Read marker keyed by (professional, type, event id)."""

    __tablename__ = "notification_reads"

    __table_args__ = (
        UniqueConstraint(
            'professional_id', 'notification_type', 'notification_id',
            name='uq_notification_read_professional_item'
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    professional_id = Column(String(36), ForeignKey("professionals.id"), nullable=False, index=True)
    notification_type = Column(SQLEnum(NotificationType), nullable=False)
    notification_id = Column(String(36), nullable=False)

    def __repr__(self):
        return (
            f"<NotificationRead(professional_id={self.professional_id}, "
            f"type={self.notification_type.value}, id={self.notification_id})>"
        )
