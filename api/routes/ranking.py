"""
Ranking Routes

Category rankings and a professional's own position.
"""

from typing import Optional, List, Dict
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from services.ranking_service import RankingService
from services.results import RankingEntry

router = APIRouter()


@router.get("/categories/{category_id}", response_model=List[RankingEntry])
async def rank_category(
    category_id: str,
    limit: Optional[int] = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Active professionals of a category in ranking order, with absolute positions."""
    return RankingService.rank_category(category_id, db, limit=limit, offset=offset)


@router.get("/top", response_model=Dict[str, RankingEntry])
async def top_by_category(db: Session = Depends(get_db)):
    """The #1 professional of each category, keyed by category id."""
    return RankingService.top_by_category(db)


@router.get("/professionals/{professional_id}", response_model=RankingEntry)
async def get_position(
    professional_id: str,
    db: Session = Depends(get_db)
):
    """
    A professional's position within its category.

    **Response 404**: Unknown professional, or not currently ranked
    (subscription not active)
    """
    entry = RankingService.get_position(professional_id, db)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Professional is not ranked"
        )
    return entry
