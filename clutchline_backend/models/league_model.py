# clutchline_backend/models/league_model.py
# Federations, leagues and the tiers (divisions) inside each league.

from typing import Optional

from sqlmodel import Field, SQLModel


class Federation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)


class LeagueFederationLink(SQLModel, table=True):
    """Which federations run their own edition of a league."""
    league_id: Optional[int] = Field(default=None, foreign_key="league.id", primary_key=True)
    federation_id: Optional[int] = Field(default=None, foreign_key="federation.id", primary_key=True)


class League(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    start_offset_days: int = Field(default=0)


class Tier(SQLModel, table=True):
    """
    A division of a league.
    - group_size set: round-robin groups of that size (below 2 = one group)
    - group_size null: elimination bracket
    - trigger_tier_slug: tier whose competition starts when this one finishes
    - trigger_offset_days: set on tiers that are started by a trigger
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    league_id: int = Field(foreign_key="league.id")
    size: int
    group_size: Optional[int] = None
    trigger_tier_slug: Optional[str] = None
    trigger_offset_days: Optional[int] = None
