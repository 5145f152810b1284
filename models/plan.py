"""
Plan Model

Represents a subscription tier in the plan catalog.
"""

from sqlalchemy import Column, String, Integer, Boolean, Numeric, Text, CheckConstraint
from sqlalchemy.orm import relationship

from core.database import Base
from models.base import generate_uuid, TimestampMixin, format_utc_datetime


class Plan(Base, TimestampMixin):
    """
    Subscription plan model.

    Plans are admin-owned and read-only from the engine's perspective.
    A None limit means the resource is unlimited on this plan.

    Attributes:
        id: Unique plan identifier (UUID)
        name: Display name
        description: Marketing description
        monthly_price: Monthly price (BRL)
        yearly_price: Optional yearly price (BRL)
        max_contacts: Customer contacts allowed per calendar month (None = unlimited)
        max_photos: Portfolio photo slots (None = unlimited)
        priority: Ordering in plan selection
        is_featured: Featured plans win ranking ties
        is_active: Whether the plan can be subscribed to
        gateway_plan_id: Payment gateway plan reference

    Relationships:
        professionals: Professionals on this plan
    """

    __tablename__ = "subscription_plans"

    __table_args__ = (
        CheckConstraint('max_contacts IS NULL OR max_contacts >= 0', name='check_plan_max_contacts'),
        CheckConstraint('max_photos IS NULL OR max_photos >= 0', name='check_plan_max_photos'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    # Pricing
    monthly_price = Column(Numeric(10, 2), nullable=False)
    yearly_price = Column(Numeric(10, 2), nullable=True)

    # Limits
    max_contacts = Column(Integer, nullable=True)
    max_photos = Column(Integer, nullable=True, default=5)

    priority = Column(Integer, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    gateway_plan_id = Column(String(255), nullable=True)

    professionals = relationship("Professional", back_populates="plan")

    def __repr__(self):
        return f"<Plan(id={self.id}, name={self.name}, max_contacts={self.max_contacts}, max_photos={self.max_photos})>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "monthly_price": str(self.monthly_price) if self.monthly_price is not None else None,
            "yearly_price": str(self.yearly_price) if self.yearly_price is not None else None,
            "max_contacts": self.max_contacts,
            "max_photos": self.max_photos,
            "priority": self.priority,
            "is_featured": self.is_featured,
            "is_active": self.is_active,
            "created_at": format_utc_datetime(self.created_at),
            "updated_at": format_utc_datetime(self.updated_at),
        }
