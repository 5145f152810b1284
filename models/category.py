"""
Category Model

Service category used for browsing and per-category ranking.
"""

from sqlalchemy import Column, String, Boolean, Text
from sqlalchemy.orm import relationship

from core.database import Base
from models.base import generate_uuid, TimestampMixin


class Category(Base, TimestampMixin):
    """Service category (e.g. "Eletricista", "Encanador")."""

    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(150), nullable=False)
    slug = Column(String(150), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    professionals = relationship("Professional", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, slug={self.slug})>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "is_active": self.is_active,
        }
