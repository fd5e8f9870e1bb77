# clutchline_backend/models/match_model.py
# Scheduled and played matches, their two sides, the individual games and player stat lines.

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


class MatchStatus(str, Enum):
    LOCKED = "locked"        # no competitor known yet
    WAITING = "waiting"      # one competitor known
    READY = "ready"          # both competitors known
    PLAYING = "playing"
    COMPLETED = "completed"


class MatchResult(str, Enum):
    WIN = "win"
    DRAW = "draw"
    LOSS = "loss"


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    competition_id: Optional[int] = Field(default=None, foreign_key="competition.id", index=True)

    # JSON of the bracket match id, unique within a competition
    payload: str = Field(index=True)
    round: int
    total_rounds: int
    status: MatchStatus = Field(default=MatchStatus.LOCKED)
    date: datetime.date = Field(index=True)


class MatchCompetitor(SQLModel, table=True):
    """One side of a match."""
    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    seed: Optional[int] = None
    score: Optional[int] = None
    result: Optional[MatchResult] = None


class Game(SQLModel, table=True):
    """A single map within a best-of series."""
    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    num: int
    map: str
    status: MatchStatus = Field(default=MatchStatus.READY)

    # rounds won by the first and second side (by seed); null when the map was not needed
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    winner_id: Optional[int] = Field(default=None, foreign_key="team.id")


class PlayerMatchStat(SQLModel, table=True):
    """Kills and deaths of one player in one match."""
    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    player_id: int = Field(foreign_key="player.id", index=True)
    team_id: int = Field(foreign_key="team.id")
    kills: int = Field(default=0)
    deaths: int = Field(default=0)
    date: datetime.date = Field(index=True)


class MatchCompetitorRead(BaseModel):
    team_id: int
    seed: Optional[int]
    score: Optional[int]
    result: Optional[MatchResult]

    class Config:
        from_attributes = True
