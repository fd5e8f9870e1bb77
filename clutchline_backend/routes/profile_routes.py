# clutchline_backend/routes/profile_routes.py
# The loaded save: profile and the GameContext dependency shared by every route.

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from clutchline_backend.core.database import get_db
from clutchline_backend.models.player_model import PlayerRead
from clutchline_backend.models.profile_model import ProfileRead, ProfileSettings
from clutchline_backend.models.team_model import TeamRead
from clutchline_backend.services.game_context import GameContext, ProfileNotFound

router = APIRouter()


async def get_context(db: AsyncSession = Depends(get_db)) -> GameContext:
    try:
        return await GameContext.load(db)
    except ProfileNotFound:
        raise HTTPException(status_code=404, detail="Profile not found")


@router.get("")
async def get_profile(ctx: GameContext = Depends(get_context)):
    """Current date and season, plus the user's player and team."""
    player = await ctx.user_player()
    team = await ctx.user_team()
    return {
        "profile": ProfileRead.model_validate(ctx.profile),
        "settings": ctx.settings,
        "player": PlayerRead.model_validate(player) if player else None,
        "team": TeamRead.model_validate(team) if team else None,
    }


@router.put("/settings", response_model=ProfileSettings)
async def update_settings(settings: ProfileSettings, ctx: GameContext = Depends(get_context)):
    ctx.profile.set_settings(settings)
    ctx.db.add(ctx.profile)
    await ctx.db.commit()
    return settings
