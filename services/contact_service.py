"""
Contact Service

Customer contact intake and the professional's contact history.
"""

from typing import Optional, List
from datetime import datetime
from sqlalchemy.orm import Session

from models.contact import ContactEvent
from services.quota_service import QuotaService
from services.results import ContactSubmission
from core.logger import get_logger

logger = get_logger(__name__)


class ContactService:
    """Service for customer contacts."""

    @staticmethod
    def submit_contact(
        professional_id: str,
        contact_data: dict,
        db: Session,
        now: Optional[datetime] = None,
    ) -> ContactSubmission:
        """
        Record a customer contact, subject to subscription state and quota.

        Args:
            professional_id: Professional UUID
            contact_data: customer_name, customer_email, customer_phone,
                          contact_method (whatsapp, form, phone), message
            db: Database session
            now: Naive UTC reference time

        Returns:
            ContactSubmission: accepted or rejected (never raises for quota/state)
        """
        result = QuotaService.try_consume_contact(professional_id, contact_data, db, now)
        if result.ok:
            logger.info(
                f"Contact recorded: professional_id={professional_id}, "
                f"contact_id={result.accepted.contact_id}, current_month={result.accepted.current_month}"
            )
        return result

    @staticmethod
    def list_contacts(professional_id: str, db: Session, limit: Optional[int] = None) -> List[ContactEvent]:
        """Contacts for a professional, newest first."""
        query = db.query(ContactEvent).filter(
            ContactEvent.professional_id == professional_id
        ).order_by(ContactEvent.created_at.desc(), ContactEvent.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()
