# clutchline_backend/services/autofill.py
# Decides which teams enter a tier's competition, from last season's
# standings, this season's earlier stages, or team prestige as a fallback.

import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, model_validator
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clutchline_backend.core.autofill_config import AUTOFILL_ITEMS
from clutchline_backend.core.competition_config import FEDERATION_WORLD, PRESTIGE
from clutchline_backend.models.competition_model import Competition, Competitor
from clutchline_backend.models.league_model import Federation, League, Tier
from clutchline_backend.models.team_model import Team

logger = logging.getLogger(__name__)


class AutofillAction(str, Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"
    FALLBACK = "fallback"


class AutofillEntry(BaseModel):
    action: AutofillAction
    league: str
    target: str
    start: int
    end: Optional[int] = None
    season: Optional[int] = None
    federation: Optional[str] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.start == 0:
            raise ValueError("autofill positions are 1-based; start cannot be 0")
        if self.start < 0 and self.end is not None:
            raise ValueError("a negative start already means 'last N'; it cannot be combined with end")
        if self.end is not None and self.start > 0 and self.end < self.start:
            raise ValueError(f"autofill window {self.start}..{self.end} is empty")
        return self

    def window(self, items: list) -> list:
        """Slice `items` (ordered best first) to this entry's positions."""
        if self.start < 0:
            return items[self.start:]
        return items[self.start - 1:self.end]

    def width(self, tier_size: int) -> int:
        if self.start < 0:
            return abs(self.start)
        return (self.end or tier_size) - (self.start - 1)

    def matches_federation(self, federation_slug: str) -> bool:
        return federation_slug == FEDERATION_WORLD or not self.federation or self.federation == federation_slug


class AutofillItem(BaseModel):
    tier: str
    on: str
    entries: List[AutofillEntry]


ITEMS = [AutofillItem.model_validate(item) for item in AUTOFILL_ITEMS]


def items_for(tier_slug: str, on: str) -> List[AutofillItem]:
    return [item for item in ITEMS if item.tier == tier_slug and item.on == on]


def quota_for(item: AutofillItem, federation_slug: str, tier_size: int) -> int:
    """How many teams the include rules are expected to provide."""
    return sum(
        entry.width(tier_size)
        for entry in item.entries
        if entry.action == AutofillAction.INCLUDE and entry.matches_federation(federation_slug)
    )


def _unique(teams: List[Team]) -> List[Team]:
    seen = set()
    unique = []
    for team in teams:
        if team.id not in seen:
            seen.add(team.id)
            unique.append(team)
    return unique


async def _teams_by_id(db: AsyncSession, team_ids: List[int]) -> List[Team]:
    if not team_ids:
        return []
    result = await db.execute(select(Team).where(Team.id.in_(team_ids)))
    by_id = {team.id: team for team in result.scalars().all()}
    return [by_id[team_id] for team_id in team_ids if team_id in by_id]


# =====================================
# ACTIONS
# =====================================
async def handle_include(db: AsyncSession, entry: AutofillEntry, federation: Federation, season: int) -> List[Team]:
    """Teams from a finished (or running) competition, in final standing order."""
    federation_slug = entry.federation or federation.slug
    result = await db.execute(
        select(Competition)
        .join(Tier, Tier.id == Competition.tier_id)
        .join(League, League.id == Tier.league_id)
        .join(Federation, Federation.id == Competition.federation_id)
        .where(
            Competition.season == season + (entry.season or 0),
            Tier.slug == entry.target,
            League.slug == entry.league,
            Federation.slug == federation_slug,
        )
        .order_by(Competition.id)
    )
    competition = result.scalars().first()
    if competition is None:
        return []

    result = await db.execute(
        select(Competitor)
        .where(Competitor.competition_id == competition.id)
        .order_by(Competitor.position.is_(None), Competitor.position, Competitor.id)
    )
    competitors = entry.window(result.scalars().all())
    return await _teams_by_id(db, [competitor.team_id for competitor in competitors])


async def handle_exclude(db: AsyncSession, entry: AutofillEntry, federation: Federation, season: int) -> List[Team]:
    # exclusions are declared but never resolve to teams
    return []


async def handle_fallback(db: AsyncSession, entry: AutofillEntry, tier: Tier, federation: Federation) -> List[Team]:
    """Backfill by prestige: teams whose fixed prestige matches the entry's target tier."""
    if entry.target not in PRESTIGE:
        logger.warning("Fallback target %s is not a prestige tier; skipping", entry.target)
        return []

    federation_slug = entry.federation or federation.slug
    result = await db.execute(
        select(Team)
        .join(Federation, Federation.id == Team.federation_id)
        .where(Team.prestige == PRESTIGE.index(entry.target), Federation.slug == federation_slug)
        .order_by(Team.id)
    )
    teams = result.scalars().all()
    if not teams:
        logger.warning("Could not backfill %s - %s. Found %d teams.", federation.name, tier.name, len(teams))
    return entry.window(teams)


# =====================================
# PARSER
# =====================================
async def parse(db: AsyncSession, item: AutofillItem, tier: Tier, federation: Federation, season: int) -> List[Team]:
    """
    Resolve an autofill item into an ordered list of at most `tier.size` teams.

    1. includes minus excludes (symmetric difference by team id)
    2. if short of the include quota (or there is no quota), season-bound
       fallbacks are tried first and prestige fallbacks after that
    """
    eligible = [entry for entry in item.entries if entry.matches_federation(federation.slug)]

    include_list: List[Team] = []
    exclude_list: List[Team] = []
    for entry in eligible:
        if entry.action == AutofillAction.INCLUDE:
            include_list.extend(await handle_include(db, entry, federation, season))
        elif entry.action == AutofillAction.EXCLUDE:
            exclude_list.extend(await handle_exclude(db, entry, federation, season))

    # symmetric difference: an excluded team that was never included gets in too
    include_ids = {team.id for team in include_list}
    exclude_ids = {team.id for team in exclude_list}
    competitors = _unique(
        [team for team in include_list if team.id not in exclude_ids]
        + [team for team in exclude_list if team.id not in include_ids]
    )

    quota = quota_for(item, federation.slug, tier.size)
    if not quota or len(competitors) < quota:
        taken = {team.id for team in competitors}
        fallback_list: List[Team] = []
        for entry in eligible:
            if entry.action == AutofillAction.FALLBACK and entry.season is not None:
                fallback_list.extend(await handle_include(db, entry, federation, season))
        fallback_list = [team for team in _unique(fallback_list) if team.id not in taken]

        # only teams not already in count towards the shortfall
        if not fallback_list or len(fallback_list) < quota - len(competitors):
            fallback_list = []
            for entry in eligible:
                if entry.action == AutofillAction.FALLBACK and entry.season is None:
                    fallback_list.extend(await handle_fallback(db, entry, tier, federation))
            fallback_list = [team for team in _unique(fallback_list) if team.id not in taken]

        competitors.extend(fallback_list)

    competitors = competitors[:tier.size]
    logger.info("Autofilled %s - %s with %d teams", federation.name, tier.name, len(competitors))
    return competitors
