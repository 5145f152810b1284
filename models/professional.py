"""
Professional Model

A service provider listed in the marketplace.
"""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Text, JSON, Enum as SQLEnum, Index
from sqlalchemy.orm import relationship
import enum

from core.database import Base
from models.base import generate_uuid, TimestampMixin, format_utc_datetime


class ProfessionalStatus(enum.Enum):
    """Stored subscription status. Activeness is re-derived at read time."""
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class DeactivationReason(enum.Enum):
    """Why a professional was moved to inactive."""
    EXPIRED = "expired"
    PAYMENT_FAILED = "payment_failed"
    CANCELED = "canceled"
    ADMIN = "admin"


class Professional(Base, TimestampMixin):
    """
    Professional model.

    status, subscription_expires_at, subscription_plan_id and the webhook
    bookkeeping columns are written only by SubscriptionService.
    rating and total_reviews are a cache written only by ReviewService.

    Attributes:
        id: Unique professional identifier (UUID)
        full_name, email, phone, city: Profile data
        password_hash: Dashboard login password
        category_id: Foreign key to Category
        subscription_plan_id: Foreign key to Plan
        status: pending, active or inactive
        deactivation_reason: Set while inactive
        subscription_expires_at: End of the paid period (naive UTC)
        last_payment_at: When the last confirmed payment was applied
        last_subscription_event_at: Gateway timestamp of the most recent applied event
        gateway_customer_id: Payment gateway customer reference
        rating: Average review rating (cache)
        total_reviews: Review count (cache)
        portfolio: Ordered list of photo references
    """

    __tablename__ = "professionals"

    __table_args__ = (
        Index('ix_professionals_category_status', 'category_id', 'status'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)

    # Profile
    full_name = Column(String(150), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=False, default="")
    city = Column(String(100), nullable=True, index=True)
    description = Column(Text, nullable=True)

    # Foreign Keys
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    subscription_plan_id = Column(String(36), ForeignKey("subscription_plans.id"), nullable=True, index=True)

    # Subscription state
    status = Column(SQLEnum(ProfessionalStatus), nullable=False, default=ProfessionalStatus.PENDING, index=True)
    deactivation_reason = Column(SQLEnum(DeactivationReason), nullable=True)
    subscription_expires_at = Column(DateTime, nullable=True, index=True)
    last_payment_at = Column(DateTime, nullable=True)
    last_subscription_event_at = Column(DateTime, nullable=True)
    gateway_customer_id = Column(String(255), nullable=True, unique=True, index=True)

    # Review aggregate cache
    rating = Column(Numeric(3, 2), nullable=False, default=0)
    total_reviews = Column(Integer, nullable=False, default=0)

    portfolio = Column(JSON, nullable=False, default=list)

    # Relationships
    plan = relationship("Plan", back_populates="professionals")
    category = relationship("Category", back_populates="professionals")
    contacts = relationship("ContactEvent", back_populates="professional")
    reviews = relationship("ReviewEvent", back_populates="professional")

    def __repr__(self):
        return f"<Professional(id={self.id}, status={self.status.value if self.status else None})>"

    def to_dict(self):
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "city": self.city,
            "description": self.description,
            "category_id": self.category_id,
            "subscription_plan_id": self.subscription_plan_id,
            "status": self.status.value if self.status else None,
            "deactivation_reason": self.deactivation_reason.value if self.deactivation_reason else None,
            "subscription_expires_at": format_utc_datetime(self.subscription_expires_at),
            "last_payment_at": format_utc_datetime(self.last_payment_at),
            "rating": str(self.rating) if self.rating is not None else "0.00",
            "total_reviews": self.total_reviews or 0,
            "portfolio": list(self.portfolio or []),
            "created_at": format_utc_datetime(self.created_at),
        }

    def to_public_dict(self):
        """Profile fields safe to show to customers."""
        data = self.to_dict()
        for key in ("email", "deactivation_reason", "last_payment_at", "subscription_expires_at"):
            data.pop(key, None)
        return data
