# tests/factories.py
# Small builders for hand-made worlds on an in-memory database.

import random
from contextlib import asynccontextmanager
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import select

from clutchline_backend.core.database import init_db
from clutchline_backend.models.competition_model import Competition, CompetitionStatus, Competitor
from clutchline_backend.models.league_model import Federation, League, LeagueFederationLink, Tier
from clutchline_backend.models.match_model import Match, MatchStatus, PlayerMatchStat
from clutchline_backend.models.player_model import CareerStint, Player, PlayerRole
from clutchline_backend.models.profile_model import Profile
from clutchline_backend.models.team_model import Persona, Team
from clutchline_backend.services.game_context import GameContext

TODAY = date(2025, 3, 3)


@asynccontextmanager
async def open_db():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(bind=engine)
    maker = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with maker() as db:
            yield db
    finally:
        await engine.dispose()


async def add_federation(db, slug: str = "europa", name: Optional[str] = None) -> Federation:
    federation = Federation(slug=slug, name=name or slug.title())
    db.add(federation)
    await db.flush()
    return federation


async def add_tier(db, federations: List[Federation], league_slug: str, tier_slug: str, size: int,
                   group_size: Optional[int] = None, start_offset_days: int = 0,
                   trigger_tier_slug: Optional[str] = None, trigger_offset_days: Optional[int] = None) -> Tier:
    league = (await db.execute(select(League).where(League.slug == league_slug))).scalars().first()
    if league is None:
        league = League(name=league_slug.upper(), slug=league_slug, start_offset_days=start_offset_days)
        db.add(league)
        await db.flush()
        for federation in federations:
            db.add(LeagueFederationLink(league_id=league.id, federation_id=federation.id))

    tier = Tier(name=tier_slug, slug=tier_slug, league_id=league.id, size=size, group_size=group_size,
                trigger_tier_slug=trigger_tier_slug, trigger_offset_days=trigger_offset_days)
    db.add(tier)
    await db.flush()
    return tier


async def add_team(db, federation: Federation, name: str, tier: int = 0, prestige: Optional[int] = None,
                   elo: float = 1000, starters: int = 5, bench: int = 0, xp: int = 100,
                   contract_end: Optional[date] = None) -> Team:
    team = Team(name=name, slug=name.lower().replace(" ", "-"), federation_id=federation.id,
                tier=tier, prestige=tier if prestige is None else prestige, elo=elo)
    db.add(team)
    await db.flush()
    db.add(Persona(team_id=team.id, name=f"{name} Manager"))
    for index in range(starters + bench):
        role = PlayerRole.SNIPER if index == 0 else PlayerRole.RIFLER
        await add_player(db, federation, f"{name} #{index}", team=team, role=role, xp=xp + index,
                         starter=index < starters, contract_end=contract_end or TODAY + timedelta(days=365))
    return team


async def add_player(db, federation: Federation, name: str, team: Optional[Team] = None,
                     role: PlayerRole = PlayerRole.RIFLER, xp: int = 100, starter: bool = False,
                     contract_end: Optional[date] = None, wages: int = 1000, cost: int = 2000,
                     transfer_listed: bool = False, stint_start: Optional[date] = None) -> Player:
    player = Player(
        name=name,
        federation_id=federation.id,
        role=role,
        xp=xp,
        team_id=team.id if team else None,
        starter=starter,
        transfer_listed=transfer_listed,
        wages=wages,
        cost=cost,
        contract_end=contract_end if team else None,
    )
    db.add(player)
    await db.flush()
    db.add(CareerStint(player_id=player.id, team_id=team.id if team else None,
                       tier=team.tier if team else None, started_at=stint_start or TODAY - timedelta(days=30)))
    await db.flush()
    return player


async def add_profile(db, player: Optional[Player] = None, team: Optional[Team] = None, on: date = TODAY,
                      season: int = 1) -> Profile:
    profile = Profile(name="Tester", date=on, season=season,
                      player_id=player.id if player else None, team_id=team.id if team else None)
    db.add(profile)
    await db.commit()
    return profile


def context(db, profile: Profile, seed: int = 99) -> GameContext:
    return GameContext(db=db, profile=profile, rng=random.Random(seed))


async def add_finished_competition(db, tier: Tier, federation: Federation, season: int,
                                   teams: List[Team]) -> Competition:
    """A completed competition whose final standings follow the order of `teams`."""
    competition = Competition(season=season, tier_id=tier.id, federation_id=federation.id, status=CompetitionStatus.COMPLETED)
    db.add(competition)
    await db.flush()
    for position, team in enumerate(teams, start=1):
        db.add(Competitor(competition_id=competition.id, team_id=team.id, position=position))
    await db.flush()
    return competition


async def add_stat_lines(db, player: Player, team: Team, kills: int, deaths: int, count: int,
                         last_day: date = TODAY) -> None:
    """`count` played matches for `player`, one a day ending on `last_day`."""
    for offset in range(count):
        day = last_day - timedelta(days=offset)
        match = Match(payload=f"stat-{player.id}-{day.isoformat()}", round=1, total_rounds=1,
                      status=MatchStatus.COMPLETED, date=day)
        db.add(match)
        await db.flush()
        db.add(PlayerMatchStat(match_id=match.id, player_id=player.id, team_id=team.id,
                               kills=kills, deaths=deaths, date=day))
    await db.flush()


async def add_competition(db, tier: Tier, federation: Federation, teams: List[Team], season: int = 1) -> Competition:
    competition = Competition(season=season, tier_id=tier.id, federation_id=federation.id)
    db.add(competition)
    await db.flush()
    for team in teams:
        db.add(Competitor(competition_id=competition.id, team_id=team.id))
    await db.flush()
    return competition
