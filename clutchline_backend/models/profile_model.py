# clutchline_backend/models/profile_model.py
# The save-game profile: current in-game date, season and the user's player/team.

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


class SimulationMode(str, Enum):
    """How the user's own matches are resolved when simulated."""
    DEFAULT = "default"
    DRAW = "draw"
    LOSE = "lose"
    WIN = "win"


class ProfileSettings(BaseModel):
    """User preferences stored as JSON on the profile."""
    simulation_mode: SimulationMode = SimulationMode.DEFAULT
    pause_on_offer_expiry: bool = True


class Profile(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    date: datetime.date = Field(index=True)
    season: int = Field(default=0)

    # teamId null means the user player is teamless (free agent)
    team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    player_id: Optional[int] = Field(default=None, foreign_key="player.id")

    settings: str = Field(default_factory=lambda: ProfileSettings().model_dump_json())
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)

    def get_settings(self) -> ProfileSettings:
        return ProfileSettings.model_validate_json(self.settings)

    def set_settings(self, settings: ProfileSettings):
        self.settings = settings.model_dump_json()


class ProfileRead(BaseModel):
    id: int
    name: str
    date: datetime.date
    season: int
    team_id: Optional[int]
    player_id: Optional[int]

    class Config:
        from_attributes = True
