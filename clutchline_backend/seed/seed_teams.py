# clutchline_backend/seed/seed_teams.py
# Teams for every domestic federation and prestige level, each with a manager,
# five starters and a bench, plus a pool of free agents.

import logging
import random
from datetime import date, timedelta

from sqlmodel import Session, select

from clutchline_backend.core.competition_config import DOMESTIC_FEDERATIONS, ELO_RATINGS, PRESTIGE
from clutchline_backend.models.league_model import Federation
from clutchline_backend.models.player_model import CareerStint, Player, PlayerRole
from clutchline_backend.models.team_model import Persona, PersonaRole, Team
from clutchline_backend.services.economy_service import roll_wages

logger = logging.getLogger(__name__)

TEAMS_PER_TIER = 20
STARTERS_PER_TEAM = 5
BENCH_PER_TEAM = 2
FREE_AGENTS_PER_FEDERATION = 20

# one sniper per lineup; the rest are riflers
STARTER_ROLES = [PlayerRole.SNIPER] + [PlayerRole.RIFLER] * (STARTERS_PER_TEAM - 1)

TEAM_PREFIXES = ["Apex", "Nova", "Iron", "Static", "Crimson", "Vortex", "Lunar", "Rogue", "Echo", "Pulse",
                 "Frost", "Blaze", "Hollow", "Zenith", "Onyx", "Drift", "Vector", "Ember", "Shade", "Titan"]
TEAM_SUFFIXES = ["Gaming", "Esports", "Five", "Squad", "Collective", "Club", "Academy", "Legion"]
HANDLES = ["ace", "blink", "cipher", "dusk", "flick", "ghost", "hex", "jolt", "kite", "lynx",
           "mako", "nyx", "orbit", "pixel", "quill", "rift", "sly", "tempo", "umbra", "volt"]

# XP band of a player by the prestige index of their team
XP_BY_PRESTIGE = [(20, 120), (100, 220), (200, 320), (300, 420)]


def player_name(rng: random.Random, index: int) -> str:
    return f"{rng.choice(HANDLES)}{index}"


def new_player(rng: random.Random, index: int, federation_id: int, prestige: int, role: PlayerRole) -> Player:
    low, high = XP_BY_PRESTIGE[min(prestige, len(XP_BY_PRESTIGE) - 1)]
    return Player(
        name=player_name(rng, index),
        federation_id=federation_id,
        role=role,
        xp=rng.randint(low, high),
    )


def sign(player: Player, team: Team, start: date, rng: random.Random, starter: bool):
    wages, cost = roll_wages(PRESTIGE[team.tier], rng)
    player.team_id = team.id
    player.starter = starter
    player.wages = wages
    player.cost = cost
    player.contract_end = start + timedelta(days=365 * rng.randint(1, 2))


def seed_teams(session: Session, start: date, teams_per_tier: int = TEAMS_PER_TIER, rng: random.Random = None):
    rng = rng or random.Random()
    existing = session.exec(select(Team)).first()
    if existing:
        logger.info("✅ Teams already seeded. Skipping.")
        return

    federations = session.exec(select(Federation).where(Federation.slug.in_(DOMESTIC_FEDERATIONS))).all()
    player_index = 1
    team_count = 0

    for federation in federations:
        for prestige, tier_slug in enumerate(PRESTIGE):
            teams = []
            for number in range(teams_per_tier):
                name = f"{TEAM_PREFIXES[number % len(TEAM_PREFIXES)]} {TEAM_SUFFIXES[prestige % len(TEAM_SUFFIXES)]}"
                if number >= len(TEAM_PREFIXES):
                    name = f"{name} {number // len(TEAM_PREFIXES) + 1}"
                team = Team(
                    name=f"{name} {federation.name}",
                    slug=f"{federation.slug}-{prestige}-{number}",
                    federation_id=federation.id,
                    prestige=prestige,
                    tier=prestige,
                    elo=ELO_RATINGS[tier_slug] + rng.randint(-50, 50),
                )
                teams.append(team)
            session.add_all(teams)
            session.flush()

            for team in teams:
                session.add(Persona(team_id=team.id, name=f"{team.name} Manager", role=PersonaRole.MANAGER))
                roles = STARTER_ROLES + [rng.choice(list(PlayerRole)) for _ in range(BENCH_PER_TEAM)]
                for slot, role in enumerate(roles):
                    player = new_player(rng, player_index, federation.id, prestige, role)
                    player_index += 1
                    sign(player, team, start, rng, starter=slot < STARTERS_PER_TEAM)
                    session.add(player)
                    session.flush()
                    session.add(CareerStint(player_id=player.id, team_id=team.id, tier=team.tier, started_at=start))
            team_count += len(teams)

        for _ in range(FREE_AGENTS_PER_FEDERATION):
            session.add(new_player(rng, player_index, federation.id, 0, rng.choice(list(PlayerRole))))
            player_index += 1

    session.commit()
    logger.info("👥 Seeded %d teams and %d players", team_count, player_index - 1)
