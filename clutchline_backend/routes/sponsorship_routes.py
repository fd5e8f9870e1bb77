# clutchline_backend/routes/sponsorship_routes.py

from typing import List

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlmodel import select

from clutchline_backend.models.sponsorship_model import Sponsor, Sponsorship, SponsorshipCreate, SponsorshipRead
from clutchline_backend.routes.profile_routes import get_context
from clutchline_backend.services import economy_service
from clutchline_backend.services.game_context import GameContext

router = APIRouter()


@router.get("", response_model=List[SponsorshipRead])
async def list_sponsorships(ctx: GameContext = Depends(get_context)):
    if ctx.profile.team_id is None:
        return []
    result = await ctx.db.execute(
        select(Sponsorship).where(Sponsorship.team_id == ctx.profile.team_id).order_by(Sponsorship.id)
    )
    return result.scalars().all()


@router.post("", response_model=SponsorshipRead)
async def create_sponsorship(request: SponsorshipCreate, ctx: GameContext = Depends(get_context)):
    """Pitch a deal to a sponsor on behalf of the user's team."""
    if not await ctx.db.get(Sponsor, request.sponsor_id):
        raise HTTPException(status_code=404, detail="Sponsor not found")
    try:
        return await economy_service.create_sponsorship_offer(
            ctx, request.sponsor_id, request.amount, request.frequency, request.start, request.end
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/{sponsorship_id}/respond")
async def respond_to_sponsorship(
    sponsorship_id: int,
    accept: bool = Body(..., embed=True),
    ctx: GameContext = Depends(get_context),
):
    sponsorship = await ctx.db.get(Sponsorship, sponsorship_id)
    if not sponsorship or sponsorship.team_id != ctx.profile.team_id:
        raise HTTPException(status_code=404, detail="Sponsorship not found")
    entry = await economy_service.respond_to_sponsorship(ctx, sponsorship_id, accept)
    return {"message": "Response queued.", "date": entry.date}
