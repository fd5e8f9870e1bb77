# clutchline_backend/models/sponsorship_model.py
# Sponsors, the sponsorship deals a team signs with them and the offers inside a deal.

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


class SponsorshipStatus(str, Enum):
    SPONSOR_PENDING = "sponsor_pending"
    SPONSOR_ACCEPTED = "sponsor_accepted"
    SPONSOR_REJECTED = "sponsor_rejected"
    SPONSOR_TERMINATED = "sponsor_terminated"
    TEAM_PENDING = "team_pending"
    TEAM_ACCEPTED = "team_accepted"
    TEAM_REJECTED = "team_rejected"
    CONTRACT_EXPIRED = "contract_expired"


ACTIVE_SPONSORSHIP_STATUSES = [SponsorshipStatus.SPONSOR_ACCEPTED, SponsorshipStatus.TEAM_ACCEPTED]


class Sponsor(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)


class Sponsorship(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    status: SponsorshipStatus = Field(default=SponsorshipStatus.SPONSOR_PENDING)
    sponsor_id: int = Field(foreign_key="sponsor.id")
    team_id: int = Field(foreign_key="team.id", index=True)


class SponsorshipOffer(SQLModel, table=True):
    """amount is paid every `frequency` weeks between start and end."""
    id: Optional[int] = Field(default=None, primary_key=True)
    sponsorship_id: int = Field(foreign_key="sponsorship.id", index=True)
    status: SponsorshipStatus = Field(default=SponsorshipStatus.SPONSOR_PENDING)
    amount: int
    frequency: int
    start: datetime.date
    end: datetime.date


class SponsorshipCreate(BaseModel):
    sponsor_id: int
    amount: int
    frequency: int
    start: datetime.date
    end: datetime.date


class SponsorshipRead(BaseModel):
    id: int
    status: SponsorshipStatus
    sponsor_id: int
    team_id: int

    class Config:
        from_attributes = True
