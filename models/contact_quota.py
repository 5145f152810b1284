"""
Contact Quota Counter Model

Serialization point for the monthly contact quota.
"""

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint

from core.database import Base
from models.base import generate_uuid, TimestampMixin, format_utc_datetime


class ContactQuotaCounter(Base, TimestampMixin):
    """
    One row per professional per calendar month.

    The contact check-then-insert locks this row (SELECT ... FOR UPDATE)
    before counting the month's contacts, so concurrent submissions for the
    same professional serialize here. `count` mirrors the number of contacts
    accepted through the quota path this month; the contacts table stays
    the source of truth for the quota decision.

    Attributes:
        id: Unique counter identifier (UUID)
        professional_id: Foreign key to Professional
        period_start: Start of the calendar month (naive UTC)
        period_end: Start of the next calendar month (naive UTC)
        count: Contacts accepted this period
    """

    __tablename__ = "contact_quota_counters"

    __table_args__ = (
        UniqueConstraint('professional_id', 'period_start', name='uq_contact_quota_professional_period'),
        CheckConstraint('count >= 0', name='check_contact_quota_count_positive'),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    professional_id = Column(String(36), ForeignKey("professionals.id"), nullable=False, index=True)

    period_start = Column(DateTime, nullable=False, index=True)
    period_end = Column(DateTime, nullable=False)
    count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<ContactQuotaCounter(professional_id={self.professional_id}, period_start={self.period_start}, count={self.count})>"

    def to_dict(self):
        return {
            "id": self.id,
            "professional_id": self.professional_id,
            "period_start": format_utc_datetime(self.period_start),
            "period_end": format_utc_datetime(self.period_end),
            "count": self.count,
        }
