# clutchline_backend/routes/calendar_routes.py
# Drives the day loop: advance the calendar and play the user's match.

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import select

from clutchline_backend.models.calendar_model import Calendar, CalendarRead
from clutchline_backend.routes.profile_routes import get_context
from clutchline_backend.services import game_tick_service
from clutchline_backend.services.game_context import GameContext
from clutchline_backend.services.game_tick_service import ClockBusy

router = APIRouter()


@router.post("/advance")
async def advance_calendar(days: int = Query(1, ge=1, le=365), ctx: GameContext = Depends(get_context)):
    """
    Advance up to `days` days. Stops early when the user has a match to play
    or an offer about to expire.
    """
    try:
        return await game_tick_service.advance(ctx, days)
    except ClockBusy as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.post("/sim")
async def sim_user_match(ctx: GameContext = Depends(get_context)):
    try:
        return await game_tick_service.sim(ctx)
    except ClockBusy as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.get("/upcoming", response_model=List[CalendarRead])
async def upcoming_entries(limit: int = Query(50, ge=1, le=500), ctx: GameContext = Depends(get_context)):
    result = await ctx.db.execute(
        select(Calendar)
        .where(Calendar.date >= ctx.today, Calendar.completed == False)  # noqa: E712
        .order_by(Calendar.date, Calendar.id)
        .limit(limit)
    )
    return result.scalars().all()
