import random

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from clutchline_backend import models  # noqa: F401
from clutchline_backend.core.competition_config import DOMESTIC_FEDERATIONS, MAP_POOL, PRESTIGE, SPONSORS
from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.competition_model import GameMap
from clutchline_backend.models.league_model import Federation, League, Tier
from clutchline_backend.models.player_model import CareerStint, Player
from clutchline_backend.models.profile_model import Profile
from clutchline_backend.models.sponsorship_model import Sponsor
from clutchline_backend.models.team_model import Team
from clutchline_backend.seed.seed_all import seed_all


@pytest.fixture
def session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


def test_world_reference_data(session):
    seed_all(session, teams_per_tier=2, rng=random.Random(3))

    assert len(session.exec(select(Federation)).all()) == len(DOMESTIC_FEDERATIONS) + 1
    assert session.exec(select(League)).all()
    assert session.exec(select(Tier)).all()
    assert [m.name for m in session.exec(select(GameMap).order_by(GameMap.position)).all()] == MAP_POOL
    assert len(session.exec(select(Sponsor)).all()) == len(SPONSORS)


def test_every_domestic_federation_gets_a_pyramid(session):
    seed_all(session, teams_per_tier=2, rng=random.Random(3))

    teams = session.exec(select(Team)).all()
    assert len(teams) == len(DOMESTIC_FEDERATIONS) * len(PRESTIGE) * 2
    assert all(team.tier == team.prestige for team in teams)

    for team in teams[:4]:
        squad = session.exec(select(Player).where(Player.team_id == team.id)).all()
        assert len(squad) in (7, 8)
        assert sum(1 for player in squad if player.starter) == 5

    # every signed player has an open stint at their team
    signed = session.exec(select(Player).where(Player.team_id.is_not(None))).all()
    open_stints = session.exec(select(CareerStint).where(CareerStint.ended_at.is_(None))).all()
    assert {(s.player_id, s.team_id) for s in open_stints} >= {(p.id, p.team_id) for p in signed}


def test_user_starts_on_the_weakest_open_team(session):
    seed_all(session, teams_per_tier=3, rng=random.Random(3))

    profile = session.exec(select(Profile)).one()
    user = session.get(Player, profile.player_id)
    team = session.get(Team, profile.team_id)
    assert (profile.season, user.team_id, user.starter) == (0, team.id, True)
    assert team.tier == 0

    rivals = session.exec(select(Team).where(Team.federation_id == team.federation_id, Team.tier == 0)).all()
    assert team.elo == min(rival.elo for rival in rivals)

    starters = session.exec(select(Player).where(Player.team_id == team.id, Player.starter == True)).all()  # noqa: E712
    assert len(starters) == 5

    entries = session.exec(select(Calendar).order_by(Calendar.date)).all()
    assert {entry.type for entry in entries} == {
        CalendarEntry.SEASON_START,
        CalendarEntry.PLAYER_SCOUTING_CHECK,
        CalendarEntry.PLAYER_CONTRACT_REVIEW,
        CalendarEntry.PLAYER_CONTRACT_EXTENSION_EVAL,
        CalendarEntry.PLAYER_CONTRACT_EXPIRE,
    }
    assert entries[0].type == CalendarEntry.SEASON_START


def test_teamless_start(session):
    seed_all(session, teams_per_tier=2, teamless=True, rng=random.Random(3))

    profile = session.exec(select(Profile)).one()
    assert profile.team_id is None
    assert session.get(Player, profile.player_id).team_id is None
    types = {entry.type for entry in session.exec(select(Calendar)).all()}
    assert types == {CalendarEntry.SEASON_START, CalendarEntry.PLAYER_SCOUTING_CHECK}


def test_seeding_twice_is_harmless(session):
    seed_all(session, teams_per_tier=2, rng=random.Random(3))
    teams = len(session.exec(select(Team)).all())
    seed_all(session, teams_per_tier=2, rng=random.Random(4))
    assert len(session.exec(select(Team)).all()) == teams
    assert len(session.exec(select(Profile)).all()) == 1
