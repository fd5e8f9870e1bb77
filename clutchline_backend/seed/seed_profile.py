# clutchline_backend/seed/seed_profile.py
# The save profile, the user player and the first calendar entries.

import logging
import random
from datetime import date, timedelta
from typing import Optional

from sqlmodel import Session, select

from clutchline_backend.core.career_config import PLAYER_CONTRACT_SETTINGS, USER_OFFER_SETTINGS
from clutchline_backend.core.competition_config import DOMESTIC_FEDERATIONS
from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.league_model import Federation
from clutchline_backend.models.player_model import CareerStint, Player, PlayerRole
from clutchline_backend.models.profile_model import Profile
from clutchline_backend.models.team_model import Team
from clutchline_backend.seed.seed_teams import new_player, sign
from clutchline_backend.services.calendar_service import PlayerRef, encode_payload

logger = logging.getLogger(__name__)


def seed_profile(session: Session, start: date, name: str = "Player", federation_slug: str = DOMESTIC_FEDERATIONS[0],
                 role: PlayerRole = PlayerRole.RIFLER, teamless: bool = False,
                 rng: Optional[random.Random] = None) -> Profile:
    """
    Create the profile and the user player. Unless `teamless`, the player
    takes a starting spot on the weakest open-division team of their federation.
    """
    rng = rng or random.Random()
    existing = session.exec(select(Profile)).first()
    if existing:
        logger.info("✅ Profile already exists. Skipping.")
        return existing

    federation = session.exec(select(Federation).where(Federation.slug == federation_slug)).one()
    player = new_player(rng, 0, federation.id, 0, role)
    player.name = name
    session.add(player)
    session.flush()

    profile = Profile(name=name, date=start, season=0, player_id=player.id)
    team = None
    if not teamless:
        team = session.exec(
            select(Team).where(Team.federation_id == federation.id, Team.tier == 0).order_by(Team.elo, Team.id)
        ).first()

    if team is not None:
        # make room in the lineup
        benched = session.exec(
            select(Player)
            .where(Player.team_id == team.id, Player.starter == True, Player.role == role)  # noqa: E712
            .order_by(Player.xp)
        ).first()
        if benched is not None:
            benched.starter = False
            benched.transfer_listed = True
            session.add(benched)

        sign(player, team, start, rng, starter=True)
        session.add(player)
        profile.team_id = team.id

    session.add(CareerStint(player_id=player.id, team_id=team.id if team else None,
                            tier=team.tier if team else None, started_at=start))
    session.add(profile)

    ref = encode_payload(PlayerRef(player_id=player.id))
    entries = [
        Calendar(date=start, type=CalendarEntry.SEASON_START),
        Calendar(date=start + timedelta(days=USER_OFFER_SETTINGS["SCOUTING_INTERVAL_DAYS"]),
                 type=CalendarEntry.PLAYER_SCOUTING_CHECK, payload=ref),
    ]
    if team is not None:
        evaluate_on = player.contract_end - timedelta(days=PLAYER_CONTRACT_SETTINGS["EXTENSION_EVAL_DAYS_BEFORE_END"])
        entries += [
            Calendar(date=player.contract_end, type=CalendarEntry.PLAYER_CONTRACT_EXPIRE, payload=ref),
            Calendar(date=evaluate_on, type=CalendarEntry.PLAYER_CONTRACT_EXTENSION_EVAL, payload=ref),
            Calendar(date=start + timedelta(days=PLAYER_CONTRACT_SETTINGS["REVIEW_INTERVAL_DAYS"]),
                     type=CalendarEntry.PLAYER_CONTRACT_REVIEW, payload=ref),
        ]
    session.add_all(entries)
    session.commit()
    logger.info("🎮 Created profile %s (%s)", name, team.name if team else "free agent")
    return profile
