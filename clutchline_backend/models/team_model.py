# clutchline_backend/models/team_model.py

from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


class Team(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    federation_id: int = Field(foreign_key="federation.id", index=True)

    # index into the global prestige ordering
    prestige: int = Field(default=0)   # fixed class of the organisation
    tier: int = Field(default=0)       # current domestic division, synced each season

    elo: float = Field(default=1000)
    earnings: int = Field(default=0)


class PersonaRole(str, Enum):
    MANAGER = "manager"
    ASSISTANT = "assistant"


class Persona(SQLModel, table=True):
    """Staff member that signs the e-mails the user receives."""
    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    name: str
    role: PersonaRole = Field(default=PersonaRole.MANAGER)


class TeamRead(BaseModel):
    id: int
    name: str
    federation_id: int
    prestige: int
    tier: int
    elo: float
    earnings: int

    class Config:
        from_attributes = True
