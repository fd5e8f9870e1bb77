# clutchline_backend/seed/seed_leagues.py
# Static reference data: federations, leagues with their tiers, map pool and sponsors.

import logging

from sqlmodel import Session, select

from clutchline_backend.core.competition_config import FEDERATIONS, LEAGUES, MAP_POOL, SPONSORS
from clutchline_backend.models.competition_model import GameMap
from clutchline_backend.models.league_model import Federation, League, LeagueFederationLink, Tier
from clutchline_backend.models.sponsorship_model import Sponsor

logger = logging.getLogger(__name__)


def seed_leagues(session: Session):
    existing = session.exec(select(League)).first()
    if existing:
        logger.info("✅ Leagues already seeded. Skipping.")
        return

    federations = {}
    for data in FEDERATIONS:
        federation = Federation(name=data["name"], slug=data["slug"])
        session.add(federation)
        federations[data["slug"]] = federation
    session.flush()

    for data in LEAGUES:
        league = League(name=data["name"], slug=data["slug"], start_offset_days=data["start_offset_days"])
        session.add(league)
        session.flush()

        for slug in data["federations"]:
            session.add(LeagueFederationLink(league_id=league.id, federation_id=federations[slug].id))

        for tier in data["tiers"]:
            session.add(Tier(
                name=tier["name"],
                slug=tier["slug"],
                league_id=league.id,
                size=tier["size"],
                group_size=tier.get("group_size"),
                trigger_tier_slug=tier.get("trigger_tier_slug"),
                trigger_offset_days=tier.get("trigger_offset_days"),
            ))
        logger.info("🏆 Seeded league %s with %d tiers", league.name, len(data["tiers"]))

    # every map starts in the active rotation
    session.add_all([GameMap(name=name, position=index) for index, name in enumerate(MAP_POOL)])
    session.add_all([Sponsor(name=data["name"], slug=data["slug"]) for data in SPONSORS])
    session.commit()
