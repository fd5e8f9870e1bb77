# seed_all.py
# Orchestrates all seed scripts to populate a new save in the correct order.

import logging
import random
from datetime import date
from typing import Optional

from sqlmodel import Session

from clutchline_backend.core.config import START_DATE, configure_logging
from clutchline_backend.core.database import sync_engine
from clutchline_backend.seed.seed_leagues import seed_leagues
from clutchline_backend.seed.seed_profile import seed_profile
from clutchline_backend.seed.seed_teams import TEAMS_PER_TIER, seed_teams

logger = logging.getLogger(__name__)


def seed_all(session: Optional[Session] = None, teams_per_tier: int = TEAMS_PER_TIER, teamless: bool = False,
             rng: Optional[random.Random] = None):
    start = date.fromisoformat(START_DATE)
    rng = rng or random.Random()
    own_session = session is None
    session = session or Session(sync_engine)

    try:
        logger.info("🌱 Starting full database seeding...")

        logger.info("➡️  Step 1: Seeding federations, leagues, maps and sponsors...")
        seed_leagues(session)

        logger.info("➡️  Step 2: Seeding teams and players...")
        seed_teams(session, start, teams_per_tier=teams_per_tier, rng=rng)

        logger.info("➡️  Step 3: Creating the profile...")
        seed_profile(session, start, teamless=teamless, rng=rng)

        logger.info("✅ Database seeding complete. First season starts %s.", start)
    finally:
        if own_session:
            session.close()


if __name__ == "__main__":
    configure_logging()
    seed_all()
