"""
Review Event Model

A customer review of a professional. The review log is the source of truth
for a professional's rating and review count.
"""

from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from core.database import Base
from models.base import generate_uuid, CreatedAtMixin, format_utc_datetime


class ReviewEvent(Base, CreatedAtMixin):
    """Review event model."""

    __tablename__ = "reviews"

    __table_args__ = (
        CheckConstraint('rating >= 1 AND rating <= 5', name='check_review_rating_range'),
        Index('ix_reviews_professional_created', 'professional_id', 'created_at'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    professional_id = Column(String(36), ForeignKey("professionals.id"), nullable=False, index=True)

    customer_name = Column(String(150), nullable=False)
    customer_email = Column(String(255), nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    professional = relationship("Professional", back_populates="reviews")

    def __repr__(self):
        return f"<ReviewEvent(id={self.id}, professional_id={self.professional_id}, rating={self.rating})>"

    def to_dict(self):
        return {
            "id": self.id,
            "professional_id": self.professional_id,
            "customer_name": self.customer_name,
            "rating": self.rating,
            "comment": self.comment,
            "is_verified": self.is_verified,
            "created_at": format_utc_datetime(self.created_at),
        }
