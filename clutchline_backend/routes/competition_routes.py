# clutchline_backend/routes/competition_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clutchline_backend.core.database import get_db
from clutchline_backend.models.competition_model import Competition, CompetitionRead, CompetitorRead
from clutchline_backend.services import competition_service

router = APIRouter()


@router.get("", response_model=List[CompetitionRead])
async def list_competitions(season: Optional[int] = None, db: AsyncSession = Depends(get_db)):
    query = select(Competition).order_by(Competition.id)
    if season is not None:
        query = query.where(Competition.season == season)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{competition_id}/standings", response_model=List[CompetitorRead])
async def get_standings(competition_id: int, db: AsyncSession = Depends(get_db)):
    """Competitors ordered by final or current position; unplaced teams last."""
    competition = await db.get(Competition, competition_id)
    if not competition:
        raise HTTPException(status_code=404, detail="Competition not found")
    return await competition_service.standings(db, competition_id)
