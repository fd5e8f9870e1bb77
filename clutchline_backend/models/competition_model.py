# clutchline_backend/models/competition_model.py
# One running instance of a tier for a season and federation, plus its entrants.

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


class CompetitionStatus(str, Enum):
    SCHEDULED = "scheduled"
    STARTED = "started"
    COMPLETED = "completed"


class Competition(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    season: int = Field(index=True)
    status: CompetitionStatus = Field(default=CompetitionStatus.SCHEDULED)
    tier_id: int = Field(foreign_key="tier.id")
    federation_id: int = Field(foreign_key="federation.id")

    # serialized Tournament state (see core/tournament.py)
    tournament: Optional[str] = None
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)


class Competitor(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    competition_id: int = Field(foreign_key="competition.id", index=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    seed: Optional[int] = None
    group: Optional[int] = None
    position: Optional[int] = None
    win: int = Field(default=0)
    loss: int = Field(default=0)
    draw: int = Field(default=0)


class GameMap(SQLModel, table=True):
    """A map in the pool. Only maps with a position are in active rotation."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    position: Optional[int] = None


class CompetitorRead(BaseModel):
    team_id: int
    seed: Optional[int]
    group: Optional[int]
    position: Optional[int]
    win: int
    loss: int
    draw: int

    class Config:
        from_attributes = True


class CompetitionRead(BaseModel):
    id: int
    season: int
    status: CompetitionStatus
    tier_id: int
    federation_id: int

    class Config:
        from_attributes = True
