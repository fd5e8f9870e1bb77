# clutchline_backend/models/player_model.py

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


class PlayerRole(str, Enum):
    RIFLER = "rifler"
    SNIPER = "sniper"


class Player(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    federation_id: int = Field(foreign_key="federation.id")
    role: PlayerRole = Field(default=PlayerRole.RIFLER)
    xp: int = Field(default=0)

    team_id: Optional[int] = Field(default=None, foreign_key="team.id", index=True)
    starter: bool = Field(default=False)
    transfer_listed: bool = Field(default=False)

    # Contract terms
    wages: int = Field(default=0)
    cost: int = Field(default=0)
    contract_end: Optional[datetime.date] = None


class CareerStint(SQLModel, table=True):
    """
    A period a player spent at one team (team_id null = free agent).
    At most one open stint (ended_at null) per player.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    player_id: int = Field(foreign_key="player.id", index=True)
    team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    tier: Optional[int] = None
    started_at: datetime.date
    ended_at: Optional[datetime.date] = None


class PlayerRead(BaseModel):
    id: int
    name: str
    role: PlayerRole
    xp: int
    team_id: Optional[int]
    starter: bool
    transfer_listed: bool
    wages: int
    contract_end: Optional[datetime.date]

    class Config:
        from_attributes = True
