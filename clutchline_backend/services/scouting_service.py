# clutchline_backend/services/scouting_service.py
# Weekly scouting check for the user player: turns recent performance into a
# 0..1 signal, picks a target tier and a team, and creates a transfer offer.

import logging
import math
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlmodel import select

from clutchline_backend.core.career_config import ROLE_RIFLER, TRANSFER_SETTINGS, USER_OFFER_SETTINGS
from clutchline_backend.core.chance import pluck, roll_d2, weighted_choice
from clutchline_backend.core.competition_config import PRESTIGE
from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.player_model import CareerStint, Player
from clutchline_backend.models.team_model import Team
from clutchline_backend.models.transfer_model import PENDING_TRANSFER_STATUSES, Offer, Transfer, TransferStatus
from clutchline_backend.services import career_service, economy_service, mail_service, match_service
from clutchline_backend.services.calendar_service import PlayerRef, TransferRef, decode_payload, schedule
from clutchline_backend.services.game_context import GameContext

logger = logging.getLogger(__name__)

settings = USER_OFFER_SETTINGS


# =====================================
# PERFORMANCE SIGNAL
# =====================================
def kd_to_signal(kd: float) -> float:
    floor, ceiling = settings["SIGNAL_KD_FLOOR"], settings["SIGNAL_KD_CEILING"]
    return min(1.0, max(0.0, (kd - floor) / (ceiling - floor)))


async def performance_signal(db, player: Player, team: Optional[Team], today: date) -> float:
    """
    Blend of the last RECENT_MATCHES K/D and the lifetime K/D, nudged by the
    team's recent results. A player with no matches on record sits at 0.5.
    """
    recent = await match_service.player_kd(db, player.id, limit=settings["RECENT_MATCHES"])
    lifetime = await match_service.player_kd(db, player.id)
    if recent is None or lifetime is None:
        signal = 0.5
    else:
        kd = recent * settings["SIGNAL_RECENT_WEIGHT"] + lifetime * settings["SIGNAL_LIFETIME_WEIGHT"]
        signal = kd_to_signal(kd)

    if team is not None:
        form = await match_service.team_form(db, team.id, today, settings["RECENT_MATCHES"])
        if form is not None:
            weight = settings["SIGNAL_TEAM_FORM_WEIGHT"]
            signal = signal * (1 - weight) + form * weight
    return signal


async def reference_tier(db, player: Player, team: Optional[Team], today: date) -> int:
    """The player's current tier, or the best tier they reached in the last year when teamless."""
    if team is not None:
        return team.tier
    result = await db.execute(
        select(CareerStint.tier).where(
            CareerStint.player_id == player.id,
            CareerStint.tier.is_not(None),
            (CareerStint.ended_at.is_(None)) | (CareerStint.ended_at >= today - timedelta(days=365)),
        )
    )
    tiers = result.scalars().all()
    return max(tiers) if tiers else 0


def eligible_tiers(current: int, signal: float) -> Dict[int, float]:
    """{tier index: weight}. Lateral always; up only past the signal thresholds; down always but heavier when poor."""
    weights = settings["TIER_WEIGHTS"]
    tiers = {current: float(weights["lateral"])}

    for jump, threshold in sorted(settings["UPWARD_SIGNAL_THRESHOLDS"].items()):
        target = current + jump
        if target < len(PRESTIGE) and signal >= threshold:
            tiers[target] = weights["up"] / jump

    if current > 0:
        down = float(weights["down"])
        if signal < settings["DOWNWARD_SIGNAL_THRESHOLD"]:
            down *= settings["POOR_SIGNAL_DOWN_WEIGHT_MULT"]
        tiers[current - 1] = down
    return tiers


# =====================================
# OFFER GATE
# =====================================
async def last_offer_date(db, player_id: int) -> Optional[date]:
    """Most recent outside offer; extensions do not count."""
    result = await db.execute(
        select(Transfer.created_at)
        .where(
            Transfer.player_id == player_id,
            or_(Transfer.to_team_id.is_(None), Transfer.from_team_id != Transfer.to_team_id),
        )
        .order_by(Transfer.created_at.desc())
    )
    return result.scalars().first()


async def pending_offers(db, player_id: int) -> List[Transfer]:
    result = await db.execute(
        select(Transfer).where(Transfer.player_id == player_id, Transfer.status.in_(PENDING_TRANSFER_STATUSES))
    )
    return result.scalars().all()


async def offer_chance(ctx: GameContext, player: Player) -> float:
    """Percent chance this check produces an offer; 0 while cooling down or saturated."""
    role = settings["ROLE_OFFER_TUNING"].get(player.role.value, settings["ROLE_OFFER_TUNING"][ROLE_RIFLER])
    teamless = player.team_id is None

    if teamless and len(await pending_offers(ctx.db, player.id)) >= settings["TEAMLESS_MAX_PENDING_OFFERS"]:
        return 0

    if teamless:
        cooldown = settings["TEAMLESS_OFFER_COOLDOWN_DAYS"] * role["cooldown_mult_teamless"]
    else:
        cooldown = settings["TEAM_OFFER_COOLDOWN_DAYS"] * role["cooldown_mult_team"]
    last = await last_offer_date(ctx.db, player.id)
    if last is not None and (ctx.today - last).days < cooldown:
        return 0

    chance = settings["BASE_OFFER_PBX"] * role["pbx_mult"]
    if teamless:
        chance *= settings["TEAMLESS_OFFER_PBX_MULT"]
    else:
        if not player.starter:
            chance *= settings["BENCHED_OFFER_PBX_MULT"]
        if player.transfer_listed:
            chance *= settings["LISTED_OFFER_PBX_MULT"]
        if player.contract_end and (player.contract_end - ctx.today).days > settings["LONG_CONTRACT_DAYS"]:
            chance *= settings["LONG_CONTRACT_PBX_MULT"]
    return chance


# =====================================
# TEAM SELECTION
# =====================================
async def pick_team(ctx: GameContext, player: Player, target: int, downward: bool) -> Optional[Team]:
    """
    A team of the target tier, usually from the player's federation. Moving
    down a level only the bottom third of that tier by Elo is interested.
    """
    cross = roll_d2(settings["CROSS_FEDERATION_PBX_BY_TIER"][PRESTIGE[target]], ctx.rng)
    query = select(Team).where(Team.tier == target)
    if cross:
        query = query.where(Team.federation_id != player.federation_id)
    else:
        query = query.where(Team.federation_id == player.federation_id)
    if player.team_id is not None:
        query = query.where(Team.id != player.team_id)

    result = await ctx.db.execute(query.order_by(Team.elo, Team.id))
    busy = {transfer.from_team_id for transfer in await pending_offers(ctx.db, player.id)}
    teams = [team for team in result.scalars().all() if team.id not in busy]
    if downward:
        teams = teams[: math.ceil(len(teams) / 3)]
    if not teams:
        logger.info("No %s teams interested in %s", PRESTIGE[target], player.name)
        return None
    return pluck(teams, rng=ctx.rng)


# =====================================
# OFFER CREATION
# =====================================
async def create_offer(ctx: GameContext, player: Player, buyer: Team) -> Transfer:
    """
    Contracted players go through their team first (TEAM_PENDING); free agents
    receive the offer straight away with a response deadline.
    """
    db = ctx.db
    tier = PRESTIGE[buyer.tier]
    wages_low, wages_high = TRANSFER_SETTINGS["BID_WAGES_RANGE"]
    tier_wages, _ = economy_service.roll_wages(tier, ctx.rng)
    wages = max(round(player.wages * ctx.rng.uniform(wages_low, wages_high)), tier_wages)

    contracted = player.team_id is not None
    cost = 0
    if contracted:
        cost_low, cost_high = TRANSFER_SETTINGS["BID_COST_RANGE"]
        cost = round(player.cost * ctx.rng.uniform(cost_low, cost_high))

    status = TransferStatus.TEAM_PENDING if contracted else TransferStatus.PLAYER_PENDING
    transfer = Transfer(status=status, player_id=player.id, from_team_id=buyer.id,
                        to_team_id=player.team_id, created_at=ctx.today)
    db.add(transfer)
    await db.flush()
    offer = Offer(transfer_id=transfer.id, status=status, cost=cost, wages=wages,
                  contract_years=career_service.roll_contract_years(tier, ctx.rng), created_at=ctx.today)
    db.add(offer)

    if contracted:
        days = ctx.rng.randint(TRANSFER_SETTINGS["RESPONSE_MIN_DAYS"], TRANSFER_SETTINGS["RESPONSE_MAX_DAYS"])
        await schedule(db, ctx.today + timedelta(days=days), CalendarEntry.TRANSFER_PARSE,
                       TransferRef(transfer_id=transfer.id))
    else:
        await career_service.arm_offer_deadline(ctx, transfer, offer)
        await mail_service.send_template(ctx, "offer_incoming", buyer.id, team=buyer.name,
                                         years=offer.contract_years, wages=offer.wages,
                                         expires=offer.expires_at.isoformat())

    logger.info("🔎 %s made an offer for %s (%s)", buyer.name, player.name, status.value)
    return transfer


async def scout(ctx: GameContext, player: Player) -> Optional[Transfer]:
    """One scouting pass. Returns the created transfer, if any."""
    db = ctx.db
    team = await db.get(Team, player.team_id) if player.team_id else None

    if team is not None and await match_service.matches_played(db, player.id) < settings["MIN_MATCHES_BEFORE_OFFERS"]:
        return None

    chance = await offer_chance(ctx, player)
    if not roll_d2(chance, ctx.rng):
        return None

    signal = await performance_signal(db, player, team, ctx.today)
    current = await reference_tier(db, player, team, ctx.today)
    target = weighted_choice(eligible_tiers(current, signal), ctx.rng)
    logger.debug("Scouting %s: signal %.2f, tier %s -> %s", player.name, signal, current, target)

    buyer = await pick_team(ctx, player, target, downward=target < current)
    if buyer is None:
        return None
    return await create_offer(ctx, player, buyer)


async def on_scouting_check(ctx: GameContext, entry: Calendar):
    payload = decode_payload(entry.type, entry.payload)
    if payload.player_id != ctx.profile.player_id:
        logger.warning("Scouting check for %s is not the user player", payload.player_id)
        return

    player = await ctx.db.get(Player, payload.player_id)
    if player is None:
        return

    await schedule(ctx.db, ctx.today + timedelta(days=settings["SCOUTING_INTERVAL_DAYS"]),
                   CalendarEntry.PLAYER_SCOUTING_CHECK, PlayerRef(player_id=player.id))
    await scout(ctx, player)
    await ctx.db.commit()
