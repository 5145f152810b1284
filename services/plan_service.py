"""
Plan Service

Plan catalog access:
- List / get plans
- Admin create / update
- Seed the default catalog
- Resolve a professional's plan
"""

from typing import Optional, List
from decimal import Decimal
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from models.plan import Plan
from models.professional import Professional
from core.config import get_settings
from core.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

PLAN_FIELDS = (
    "name", "description", "monthly_price", "yearly_price", "max_contacts",
    "max_photos", "priority", "is_featured", "is_active", "gateway_plan_id",
)


class PlanService:
    """Service for the subscription plan catalog."""

    @staticmethod
    def list_plans(db: Session, include_inactive: bool = False) -> List[Plan]:
        """
        List plans ordered by priority.

        Args:
            db: Database session
            include_inactive: Include plans that can no longer be subscribed to

        Returns:
            list: Plans
        """
        query = db.query(Plan)
        if not include_inactive:
            query = query.filter(Plan.is_active.is_(True))
        return query.order_by(Plan.priority.asc(), Plan.monthly_price.asc()).all()

    @staticmethod
    def get_plan(plan_id: str, db: Session) -> Optional[Plan]:
        return db.query(Plan).filter(Plan.id == plan_id).first()

    @staticmethod
    def get_plan_or_404(plan_id: str, db: Session) -> Plan:
        plan = PlanService.get_plan(plan_id, db)
        if not plan:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Plan not found"
            )
        return plan

    @staticmethod
    def get_plan_for_professional(professional: Professional, db: Session) -> Optional[Plan]:
        """Resolve the plan a professional is subscribed to, if any."""
        if not professional.subscription_plan_id:
            return None
        return PlanService.get_plan(professional.subscription_plan_id, db)

    @staticmethod
    def create_plan(data: dict, db: Session) -> Plan:
        """
        Create a plan (admin).

        Args:
            data: Plan fields
            db: Database session

        Returns:
            Plan: Created plan
        """
        plan = Plan(**{key: value for key, value in data.items() if key in PLAN_FIELDS})
        db.add(plan)
        db.commit()
        db.refresh(plan)
        logger.info(f"Plan created: id={plan.id}, name={plan.name}")
        return plan

    @staticmethod
    def update_plan(plan_id: str, data: dict, db: Session) -> Plan:
        """
        Update a plan (admin).

        Limit changes apply to subsequent quota checks; contacts already
        accepted this month are not revisited.
        """
        plan = PlanService.get_plan_or_404(plan_id, db)
        for key, value in data.items():
            if key in PLAN_FIELDS:
                setattr(plan, key, value)
        db.commit()
        db.refresh(plan)
        logger.info(f"Plan updated: id={plan.id}, fields={sorted(k for k in data if k in PLAN_FIELDS)}")
        return plan

    @staticmethod
    def seed_default_plans(db: Session) -> int:
        """
        Insert DEFAULT_PLANS when the catalog is empty.

        Returns:
            int: Number of plans created
        """
        if db.query(Plan).first():
            return 0

        for entry in settings.DEFAULT_PLANS:
            data = dict(entry)
            data["monthly_price"] = Decimal(str(data["monthly_price"]))
            db.add(Plan(**data))

        db.commit()
        return len(settings.DEFAULT_PLANS)
