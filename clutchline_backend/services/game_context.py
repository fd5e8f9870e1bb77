# clutchline_backend/services/game_context.py
# Everything a calendar handler needs for one loaded save: the DB session,
# the profile and the random source.

import random
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clutchline_backend.models.player_model import Player
from clutchline_backend.models.profile_model import Profile
from clutchline_backend.models.team_model import Team


class ProfileNotFound(LookupError):
    pass


@dataclass
class GameContext:
    db: AsyncSession
    profile: Profile
    rng: random.Random = field(default_factory=random.Random)

    @property
    def today(self):
        return self.profile.date

    @property
    def settings(self):
        return self.profile.get_settings()

    @classmethod
    async def load(cls, db: AsyncSession, rng: Optional[random.Random] = None) -> "GameContext":
        result = await db.execute(select(Profile).order_by(Profile.id))
        profile = result.scalars().first()
        if profile is None:
            raise ProfileNotFound("no save profile found; seed the world first")
        return cls(db=db, profile=profile, rng=rng or random.Random())

    async def user_player(self) -> Optional[Player]:
        if self.profile.player_id is None:
            return None
        return await self.db.get(Player, self.profile.player_id)

    async def user_team(self) -> Optional[Team]:
        if self.profile.team_id is None:
            return None
        return await self.db.get(Team, self.profile.team_id)
