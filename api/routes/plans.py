"""
Plan Routes

Public plan catalog.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from services.plan_service import PlanService

router = APIRouter()


@router.get("")
async def list_plans(db: Session = Depends(get_db)):
    """Plans available for subscription, ordered by priority."""
    return [plan.to_dict() for plan in PlanService.list_plans(db)]


@router.get("/{plan_id}")
async def get_plan(plan_id: str, db: Session = Depends(get_db)):
    return PlanService.get_plan_or_404(plan_id, db).to_dict()
