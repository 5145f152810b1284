"""
Contact Event Model

A customer reaching out to a professional. Append-only: rows are never
updated or deleted, monthly quota counts are a filtered read.
"""

from sqlalchemy import Column, String, Text, ForeignKey, Enum as SQLEnum, Index
from sqlalchemy.orm import relationship
import enum

from core.database import Base
from models.base import generate_uuid, CreatedAtMixin, format_utc_datetime


class ContactMethod(enum.Enum):
    """How the customer contacted the professional."""
    WHATSAPP = "whatsapp"
    FORM = "form"
    PHONE = "phone"


class ContactEvent(Base, CreatedAtMixin):
    """Contact event model."""

    __tablename__ = "contacts"

    __table_args__ = (
        Index('ix_contacts_professional_created', 'professional_id', 'created_at'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    professional_id = Column(String(36), ForeignKey("professionals.id"), nullable=False, index=True)

    customer_name = Column(String(150), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(30), nullable=True)
    contact_method = Column(SQLEnum(ContactMethod), nullable=False)
    message = Column(Text, nullable=True)

    professional = relationship("Professional", back_populates="contacts")

    def __repr__(self):
        return f"<ContactEvent(id={self.id}, professional_id={self.professional_id}, method={self.contact_method.value})>"

    def to_dict(self):
        return {
            "id": self.id,
            "professional_id": self.professional_id,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "contact_method": self.contact_method.value,
            "message": self.message,
            "created_at": format_utc_datetime(self.created_at),
        }
