# clutchline_backend/services/career_service.py
# The user player's career: answering transfer offers, contract extensions,
# expiry, weekly reviews that can bench or release the player, and the roster
# side effects those moves have on the teams involved.

import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import update
from sqlmodel import select

from clutchline_backend.core.career_config import PLAYER_CONTRACT_SETTINGS, TRANSFER_SETTINGS, USER_OFFER_SETTINGS
from clutchline_backend.core.chance import roll_d2, weighted_choice
from clutchline_backend.core.competition_config import PRESTIGE
from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.player_model import CareerStint, Player, PlayerRole
from clutchline_backend.models.team_model import Team
from clutchline_backend.models.transfer_model import (
    PENDING_TRANSFER_STATUSES,
    Offer,
    Transfer,
    TransferStatus,
    can_transition,
)
from clutchline_backend.services import mail_service, match_service
from clutchline_backend.services.calendar_service import (
    PlayerRef,
    TickSignal,
    TransferRef,
    cancel,
    decode_payload,
    schedule,
    set_matchday_owner,
)
from clutchline_backend.services.competition_service import add_years
from clutchline_backend.services.game_context import GameContext

logger = logging.getLogger(__name__)

CONTRACT_ENTRY_TYPES = [
    CalendarEntry.PLAYER_CONTRACT_EXPIRE,
    CalendarEntry.PLAYER_CONTRACT_REVIEW,
    CalendarEntry.PLAYER_CONTRACT_EXTENSION_EVAL,
]


class TransferNotFound(LookupError):
    pass


def tier_slug(team: Optional[Team]) -> str:
    if team is None:
        return PRESTIGE[0]
    return PRESTIGE[min(max(team.tier, 0), len(PRESTIGE) - 1)]


# =====================================
# NEGOTIATION HEURISTICS
# =====================================
def team_accepts(offer_cost: int, player: Player, rng) -> bool:
    """Will the team holding `player` let them go for `offer_cost`?"""
    premium = offer_cost - player.cost
    if premium < 0:
        chance = TRANSFER_SETTINGS["PBX_TEAM_LOWBALL_OFFER"] if player.transfer_listed else 0
    elif player.transfer_listed:
        chance = 100
    else:
        chance = TRANSFER_SETTINGS["PBX_TEAM_SELL_UNLISTED"] + premium * TRANSFER_SETTINGS["PBX_TEAM_HIGHBALL_MODIFIER"]
    return roll_d2(chance, rng)


def player_accepts(offer_wages: int, player: Player, relocating: bool, rng) -> bool:
    """Will an NPC player sign for `offer_wages`?"""
    if relocating and not roll_d2(TRANSFER_SETTINGS["PBX_PLAYER_RELOCATE"], rng):
        return False
    premium = offer_wages - player.wages
    if premium < 0:
        return roll_d2(TRANSFER_SETTINGS["PBX_PLAYER_LOWBALL_OFFER"], rng)
    return roll_d2(TRANSFER_SETTINGS["PBX_PLAYER_ACCEPT"] + premium * TRANSFER_SETTINGS["PBX_PLAYER_HIGHBALL_MODIFIER"], rng)


def roll_contract_years(tier: str, rng) -> int:
    weights = USER_OFFER_SETTINGS["CONTRACT_YEARS_WEIGHTS"].get(tier, {1: 100})
    return weighted_choice(weights, rng)


# =====================================
# CAREER STINTS
# =====================================
async def open_stint(db, player_id: int) -> Optional[CareerStint]:
    result = await db.execute(
        select(CareerStint).where(CareerStint.player_id == player_id, CareerStint.ended_at.is_(None))
    )
    return result.scalars().first()


async def move_stint(db, player: Player, team: Optional[Team], on: date) -> CareerStint:
    """Close the player's open stint and open the next one (team None = free agent)."""
    result = await db.execute(
        select(CareerStint).where(CareerStint.player_id == player.id, CareerStint.ended_at.is_(None))
    )
    for stint in result.scalars().all():
        stint.ended_at = on
        db.add(stint)
    await db.flush()

    stint = CareerStint(
        player_id=player.id,
        team_id=team.id if team else None,
        tier=team.tier if team else None,
        started_at=on,
    )
    db.add(stint)
    return stint


# =====================================
# ROSTER SIDE EFFECTS
# =====================================
async def starters(db, team_id: int) -> List[Player]:
    result = await db.execute(
        select(Player).where(Player.team_id == team_id, Player.starter == True).order_by(Player.id)  # noqa: E712
    )
    return result.scalars().all()


async def choose_bench_victim(db, team_id: int, incoming: Player) -> Optional[Player]:
    """
    Starter who loses their place when `incoming` joins a full lineup:
    same role first, within XP tolerance of the weakest starter, then the
    shortest remaining contract and the lowest XP.
    """
    current = [p for p in await starters(db, team_id) if p.id != incoming.id]
    if len(current) < PLAYER_CONTRACT_SETTINGS["STARTERS"]:
        return None

    candidates = [p for p in current if p.role == incoming.role] or current
    floor = min(p.xp for p in current) + PLAYER_CONTRACT_SETTINGS["BENCH_VICTIM_XP_TOLERANCE"]
    candidates = [p for p in candidates if p.xp <= floor] or candidates
    return sorted(candidates, key=lambda p: (p.contract_end or date.max, p.xp, p.id))[0]


async def promote_replacement(ctx: GameContext, team_id: int, role: PlayerRole) -> Optional[Player]:
    """
    Fill a vacated starting spot from the bench: listed players of the same
    role first, then unlisted ones of that role, then any listed player.
    Highest XP wins, then the longest contract. An empty bench sends the team
    after free agents instead.
    """
    if len(await starters(ctx.db, team_id)) >= PLAYER_CONTRACT_SETTINGS["STARTERS"]:
        return None

    result = await ctx.db.execute(
        select(Player).where(Player.team_id == team_id, Player.starter == False)  # noqa: E712
    )
    bench = [p for p in result.scalars().all() if p.id != ctx.profile.player_id]
    bench = sorted(bench, key=lambda p: (-p.xp, -(p.contract_end or date.min).toordinal(), p.id))
    candidate = (
        next((p for p in bench if p.role == role and p.transfer_listed), None)
        or next((p for p in bench if p.role == role), None)
        or next((p for p in bench if p.transfer_listed), None)
    )
    if candidate is None:
        await approach_free_agents(ctx, team_id, role)
        return None

    candidate.starter = True
    candidate.transfer_listed = False
    ctx.db.add(candidate)
    logger.info("⬆️ %s promoted to the starting lineup of team %s", candidate.name, team_id)
    return candidate


async def approach_free_agents(ctx: GameContext, team_id: int, role: PlayerRole, limit: int = 2) -> List[Transfer]:
    """Send offers to the best free agents of a role; they answer through TRANSFER_PARSE."""
    result = await ctx.db.execute(
        select(Player)
        .where(Player.team_id.is_(None), Player.role == role)
        .order_by(Player.xp.desc(), Player.id)
    )
    pending = await ctx.db.execute(
        select(Transfer.player_id).where(
            Transfer.from_team_id == team_id, Transfer.status.in_(PENDING_TRANSFER_STATUSES)
        )
    )
    approached = set(pending.scalars().all())

    transfers = []
    for player in result.scalars().all():
        if player.id == ctx.profile.player_id or player.id in approached:
            continue
        transfer = Transfer(status=TransferStatus.PLAYER_PENDING, player_id=player.id,
                            from_team_id=team_id, to_team_id=None, created_at=ctx.today)
        ctx.db.add(transfer)
        await ctx.db.flush()
        ctx.db.add(Offer(transfer_id=transfer.id, status=TransferStatus.PLAYER_PENDING, cost=0,
                         wages=player.wages, contract_years=1, created_at=ctx.today))
        days = ctx.rng.randint(TRANSFER_SETTINGS["RESPONSE_MIN_DAYS"], TRANSFER_SETTINGS["RESPONSE_MAX_DAYS"])
        await schedule(ctx.db, ctx.today + timedelta(days=days), CalendarEntry.TRANSFER_PARSE,
                       TransferRef(transfer_id=transfer.id))
        transfers.append(transfer)
        if len(transfers) >= limit:
            break
    return transfers


# =====================================
# CONTRACT CALENDAR
# =====================================
async def schedule_contract_entries(ctx: GameContext, player: Player):
    """Expiry, extension evaluation and the weekly review for a freshly signed contract."""
    ref = PlayerRef(player_id=player.id)
    await cancel(ctx.db, CONTRACT_ENTRY_TYPES, ref, ctx.today)
    if player.contract_end is None:
        return

    await schedule(ctx.db, player.contract_end, CalendarEntry.PLAYER_CONTRACT_EXPIRE, ref)
    evaluate_on = player.contract_end - timedelta(days=PLAYER_CONTRACT_SETTINGS["EXTENSION_EVAL_DAYS_BEFORE_END"])
    if evaluate_on > ctx.today:
        await schedule(ctx.db, evaluate_on, CalendarEntry.PLAYER_CONTRACT_EXTENSION_EVAL, ref)
    await schedule(ctx.db, ctx.today + timedelta(days=PLAYER_CONTRACT_SETTINGS["REVIEW_INTERVAL_DAYS"]),
                   CalendarEntry.PLAYER_CONTRACT_REVIEW, ref)


async def arm_offer_deadline(ctx: GameContext, transfer: Transfer, offer: Offer):
    """Give the user OFFER_EXPIRY_DAYS to answer, with a reminder the day before."""
    offer.expires_at = ctx.today + timedelta(days=TRANSFER_SETTINGS["OFFER_EXPIRY_DAYS"])
    ctx.db.add(offer)
    ref = TransferRef(transfer_id=transfer.id)
    await schedule(ctx.db, offer.expires_at, CalendarEntry.TRANSFER_OFFER_EXPIRY_CHECK, ref)
    await schedule(ctx.db, offer.expires_at - timedelta(days=1), CalendarEntry.TRANSFER_OFFER_REMINDER, ref)


# =====================================
# TRANSFER STATE
# =====================================
async def latest_offer(db, transfer_id: int) -> Optional[Offer]:
    result = await db.execute(select(Offer).where(Offer.transfer_id == transfer_id).order_by(Offer.id.desc()))
    return result.scalars().first()


def set_transfer_status(db, transfer: Transfer, offer: Optional[Offer], status: TransferStatus) -> bool:
    if not can_transition(transfer.status, status):
        logger.warning("Transfer %s cannot move from %s to %s", transfer.id, transfer.status.value, status.value)
        return False
    transfer.status = status
    db.add(transfer)
    if offer is not None:
        offer.status = status
        db.add(offer)
    return True


def is_expired(ctx: GameContext, offer: Optional[Offer]) -> bool:
    return offer is not None and offer.expires_at is not None and ctx.today >= offer.expires_at


async def _team_name(db, team_id: Optional[int]) -> str:
    team = await db.get(Team, team_id) if team_id else None
    return team.name if team else "Free agency"


async def expire_transfer(ctx: GameContext, transfer: Transfer, offer: Optional[Offer]) -> bool:
    if not set_transfer_status(ctx.db, transfer, offer, TransferStatus.EXPIRED):
        return False
    if transfer.player_id == ctx.profile.player_id:
        await mail_service.send_template(ctx, "offer_expired", transfer.from_team_id,
                                         team=await _team_name(ctx.db, transfer.from_team_id))
    return True


async def _load_user_transfer(ctx: GameContext, transfer_id: int):
    transfer = await ctx.db.get(Transfer, transfer_id)
    if transfer is None or transfer.player_id != ctx.profile.player_id:
        raise TransferNotFound(f"transfer {transfer_id} not found")
    return transfer, await latest_offer(ctx.db, transfer.id)


async def reject_other_offers(ctx: GameContext, player_id: int, keep_id: int) -> int:
    result = await ctx.db.execute(
        select(Transfer).where(
            Transfer.player_id == player_id,
            Transfer.id != keep_id,
            Transfer.status.in_(PENDING_TRANSFER_STATUSES),
        )
    )
    rejected = 0
    for transfer in result.scalars().all():
        if set_transfer_status(ctx.db, transfer, await latest_offer(ctx.db, transfer.id), TransferStatus.PLAYER_REJECTED):
            rejected += 1
    return rejected


# =====================================
# USER RESPONSES
# =====================================
async def accept_offer(ctx: GameContext, transfer_id: int) -> Transfer:
    """
    The user signs an offer. An offer from the player's own team extends the
    contract in place; anything else moves the player to the new team.
    """
    db = ctx.db
    transfer, offer = await _load_user_transfer(ctx, transfer_id)
    if transfer.status != TransferStatus.PLAYER_PENDING:
        logger.warning("Transfer %s is %s; nothing to accept", transfer.id, transfer.status.value)
        return transfer

    if is_expired(ctx, offer):
        await expire_transfer(ctx, transfer, offer)
        await db.commit()
        return transfer

    player = await db.get(Player, transfer.player_id)
    set_transfer_status(db, transfer, offer, TransferStatus.PLAYER_ACCEPTED)
    team = await db.get(Team, transfer.from_team_id)

    if transfer.from_team_id == player.team_id:
        start = max(ctx.today, player.contract_end or ctx.today)
        player.contract_end = add_years(start, offer.contract_years)
        player.wages = offer.wages
        db.add(player)
        await schedule_contract_entries(ctx, player)
        await mail_service.send_template(ctx, "offer_extended", team.id, team=team.name,
                                         contract_end=player.contract_end.isoformat())
        await db.commit()
        logger.info("✍️ %s extended with %s until %s", player.name, team.name, player.contract_end)
        return transfer

    old_team_id = player.team_id
    await move_stint(db, player, team, ctx.today)

    player.team_id = team.id
    player.starter = True
    player.transfer_listed = False
    player.wages = offer.wages
    player.contract_end = add_years(ctx.today, offer.contract_years)
    db.add(player)
    ctx.profile.team_id = team.id
    db.add(ctx.profile)
    await db.flush()

    victim = await choose_bench_victim(db, team.id, player)
    if victim is not None:
        victim.starter = False
        victim.transfer_listed = True
        db.add(victim)

    if offer.cost:
        await db.execute(update(Team).where(Team.id == team.id).values(earnings=Team.earnings - offer.cost))
        if old_team_id is not None:
            await db.execute(update(Team).where(Team.id == old_team_id).values(earnings=Team.earnings + offer.cost))

    if old_team_id is not None:
        await set_matchday_owner(db, old_team_id, ctx.today, user=False)
        await promote_replacement(ctx, old_team_id, player.role)
    await set_matchday_owner(db, team.id, ctx.today, user=True)

    await schedule_contract_entries(ctx, player)
    await reject_other_offers(ctx, player.id, transfer.id)
    await mail_service.send_template(ctx, "offer_accepted", team.id, team=team.name,
                                     contract_end=player.contract_end.isoformat())
    await db.commit()
    logger.info("✍️ %s signed with %s until %s", player.name, team.name, player.contract_end)
    return transfer


async def reject_offer(ctx: GameContext, transfer_id: int) -> Transfer:
    transfer, offer = await _load_user_transfer(ctx, transfer_id)
    if transfer.status != TransferStatus.PLAYER_PENDING:
        logger.warning("Transfer %s is %s; nothing to reject", transfer.id, transfer.status.value)
        return transfer

    if is_expired(ctx, offer):
        await expire_transfer(ctx, transfer, offer)
    elif set_transfer_status(ctx.db, transfer, offer, TransferStatus.PLAYER_REJECTED):
        await mail_service.send_template(ctx, "offer_rejected", transfer.from_team_id,
                                         team=await _team_name(ctx.db, transfer.from_team_id))
    await ctx.db.commit()
    return transfer


async def user_transfers(ctx: GameContext) -> List[tuple]:
    """(transfer, latest offer) pairs for the user player, newest first."""
    result = await ctx.db.execute(
        select(Transfer).where(Transfer.player_id == ctx.profile.player_id).order_by(Transfer.id.desc())
    )
    return [(transfer, await latest_offer(ctx.db, transfer.id)) for transfer in result.scalars().all()]


# =====================================
# LEAVING A TEAM
# =====================================
async def release_player(ctx: GameContext, player: Player, template: str):
    """Detach the player from their team (contract expiry or kick)."""
    db = ctx.db
    old_team_id = player.team_id
    old_team_name = await _team_name(db, old_team_id)

    player.team_id = None
    player.contract_end = None
    player.starter = False
    player.transfer_listed = False
    db.add(player)
    await move_stint(db, player, None, ctx.today)
    await cancel(db, CONTRACT_ENTRY_TYPES, PlayerRef(player_id=player.id), ctx.today)

    if player.id == ctx.profile.player_id:
        ctx.profile.team_id = None
        db.add(ctx.profile)
        await set_matchday_owner(db, old_team_id, ctx.today, user=False)
        await mail_service.send_template(ctx, template, old_team_id, team=old_team_name)

    await db.flush()
    await promote_replacement(ctx, old_team_id, player.role)


async def bench_player(ctx: GameContext, player: Player):
    player.starter = False
    player.transfer_listed = True
    ctx.db.add(player)
    if player.id == ctx.profile.player_id:
        await set_matchday_owner(ctx.db, player.team_id, ctx.today, user=False)
        await mail_service.send_template(ctx, "player_benched", player.team_id,
                                         team=await _team_name(ctx.db, player.team_id))
    await ctx.db.flush()
    await promote_replacement(ctx, player.team_id, player.role)


def form_multiplier(win_rate: Optional[float]) -> float:
    if win_rate is None:
        return 1.0
    for threshold, multiplier in PLAYER_CONTRACT_SETTINGS["FORM_MULTIPLIERS"]:
        if win_rate >= threshold:
            return multiplier
    return 1.0


async def _user_player_for(ctx: GameContext, entry: Calendar) -> Optional[Player]:
    payload = decode_payload(entry.type, entry.payload)
    if payload.player_id != ctx.profile.player_id:
        return None
    return await ctx.db.get(Player, payload.player_id)


# =====================================
# CALENDAR HANDLERS
# =====================================
async def on_contract_expire(ctx: GameContext, entry: Calendar):
    player = await _user_player_for(ctx, entry)
    if player is None or player.team_id is None or player.contract_end is None or player.contract_end > ctx.today:
        # extended or already released
        return
    await release_player(ctx, player, "contract_expired")
    await ctx.db.commit()
    logger.info("📝 Contract of %s expired", player.name)


async def on_contract_review(ctx: GameContext, entry: Calendar):
    """Weekly review: a poor run can get the user benched or released."""
    player = await _user_player_for(ctx, entry)
    if player is None or player.team_id is None:
        return

    settings = PLAYER_CONTRACT_SETTINGS
    db = ctx.db
    team = await db.get(Team, player.team_id)
    tier = tier_slug(team)
    ref = PlayerRef(player_id=player.id)
    next_review = ctx.today + timedelta(days=settings["REVIEW_INTERVAL_DAYS"])

    recent = await match_service.matches_played(db, player.id, since=ctx.today - timedelta(days=30))
    stint = await open_stint(db, player.id)
    since = stint.started_at if stint else None
    if recent >= settings["REVIEW_MIN_MATCHES_LAST_30_DAYS"]:
        played = await match_service.matches_played(db, player.id, since=since)
        kd = await match_service.player_kd(db, player.id, since=since)
        multiplier = form_multiplier(await match_service.team_form(db, team.id, ctx.today, settings["FORM_WINDOW_MATCHES"]))
        days_at_team = (ctx.today - since).days if since else 0

        if (
            kd is not None
            and days_at_team <= settings["KICK_WINDOW_DAYS"]
            and played >= settings["KICK_MIN_LEAGUE_MATCHES"]
            and kd <= settings["KICK_KD_MAX_BY_TIER"][tier]
            and roll_d2(settings["KICK_PBX_BY_TIER"][tier] * multiplier, ctx.rng)
        ):
            await release_player(ctx, player, "player_kicked")
            await db.commit()
            logger.info("🚪 %s was released by %s (K/D %.2f)", player.name, team.name, kd)
            return

        if (
            kd is not None
            and player.starter
            and played >= settings["BENCH_MIN_LEAGUE_MATCHES"]
            and kd < settings["BENCH_KD_MIN_BY_TIER"][tier]
            and roll_d2(settings["BENCH_PBX_BY_TIER"][tier] * multiplier, ctx.rng)
        ):
            await bench_player(ctx, player)
            logger.info("🪑 %s was benched by %s (K/D %.2f)", player.name, team.name, kd)

    await schedule(db, next_review, CalendarEntry.PLAYER_CONTRACT_REVIEW, ref)
    await db.commit()


async def pending_extension(db, player: Player) -> Optional[Transfer]:
    result = await db.execute(
        select(Transfer).where(
            Transfer.player_id == player.id,
            Transfer.from_team_id == player.team_id,
            Transfer.to_team_id == player.team_id,
            Transfer.status.in_(PENDING_TRANSFER_STATUSES),
        )
    )
    return result.scalars().first()


def extension_chance(team_good: bool, player_good: bool) -> int:
    settings = PLAYER_CONTRACT_SETTINGS
    if team_good and player_good:
        return settings["EXTENSION_PBX_GOOD_TEAM_GOOD_PLAYER"]
    if player_good:
        return settings["EXTENSION_PBX_BAD_TEAM_GOOD_PLAYER"]
    if team_good:
        return settings["EXTENSION_PBX_GOOD_TEAM_OK_PLAYER"]
    return settings["EXTENSION_PBX_BAD_TEAM_OK_PLAYER"]


async def on_extension_eval(ctx: GameContext, entry: Calendar):
    """Shortly before the contract ends the team decides whether to offer an extension."""
    player = await _user_player_for(ctx, entry)
    if player is None or player.team_id is None or player.contract_end is None or player.contract_end <= ctx.today:
        return
    if player.transfer_listed or await pending_extension(ctx.db, player):
        return

    settings = PLAYER_CONTRACT_SETTINGS
    db = ctx.db
    team = await db.get(Team, player.team_id)
    tier = tier_slug(team)
    stint = await open_stint(db, player.id)
    since = stint.started_at if stint else None

    if await match_service.matches_played(db, player.id, since=since) < settings["EXTENSION_MIN_MATCHES"]:
        return
    kd = await match_service.player_kd(db, player.id, since=since)
    ok_kd = settings["EXTENSION_PLAYER_OK_KD_BY_TIER"][tier]
    if kd is None or kd < ok_kd:
        return

    player_good = kd >= ok_kd + settings["EXTENSION_PLAYER_GOOD_KD_BONUS"]
    win_rate = await match_service.team_form(db, team.id, ctx.today, settings["FORM_WINDOW_MATCHES"] * 2)
    team_good = win_rate is not None and win_rate >= settings["EXTENSION_TEAM_GOOD_WIN_RATE"]

    if roll_d2(settings["EXTENSION_DECLINE_PBX_EVEN_IF_GOOD"], ctx.rng):
        logger.info("%s decided against extending %s", team.name, player.name)
        return
    if not roll_d2(extension_chance(team_good, player_good), ctx.rng):
        return

    wages_low, wages_high = TRANSFER_SETTINGS["BID_WAGES_RANGE"]
    transfer = Transfer(status=TransferStatus.PLAYER_PENDING, player_id=player.id,
                        from_team_id=team.id, to_team_id=team.id, created_at=ctx.today)
    db.add(transfer)
    await db.flush()
    offer = Offer(
        transfer_id=transfer.id,
        status=TransferStatus.PLAYER_PENDING,
        cost=0,
        wages=round(player.wages * ctx.rng.uniform(wages_low, wages_high)),
        contract_years=roll_contract_years(tier, ctx.rng),
        created_at=ctx.today,
    )
    db.add(offer)
    await arm_offer_deadline(ctx, transfer, offer)
    await mail_service.send_template(ctx, "offer_extension", team.id, team=team.name, years=offer.contract_years,
                                     wages=offer.wages, expires=offer.expires_at.isoformat())
    await db.commit()
    logger.info("📨 %s offered %s an extension", team.name, player.name)


async def on_offer_expiry_check(ctx: GameContext, entry: Calendar):
    payload = decode_payload(entry.type, entry.payload)
    transfer = await ctx.db.get(Transfer, payload.transfer_id)
    if transfer is None or transfer.status not in PENDING_TRANSFER_STATUSES:
        return
    offer = await latest_offer(ctx.db, transfer.id)
    if is_expired(ctx, offer):
        await expire_transfer(ctx, transfer, offer)
        await ctx.db.commit()


async def on_offer_reminder(ctx: GameContext, entry: Calendar):
    """Pause the day loop the day before an unanswered offer runs out."""
    payload = decode_payload(entry.type, entry.payload)
    transfer = await ctx.db.get(Transfer, payload.transfer_id)
    if transfer is None or transfer.status != TransferStatus.PLAYER_PENDING:
        return TickSignal.CONTINUE
    if transfer.player_id != ctx.profile.player_id or not ctx.settings.pause_on_offer_expiry:
        return TickSignal.CONTINUE

    await mail_service.send_template(ctx, "offer_expiring", transfer.from_team_id,
                                     team=await _team_name(ctx.db, transfer.from_team_id))
    await ctx.db.commit()
    return TickSignal.HALT


async def on_transfer_parse(ctx: GameContext, entry: Calendar):
    """The selling team, then the player, answer a pending offer."""
    db = ctx.db
    payload = decode_payload(entry.type, entry.payload)
    transfer = await db.get(Transfer, payload.transfer_id)
    if transfer is None or transfer.status not in PENDING_TRANSFER_STATUSES:
        return

    offer = await latest_offer(db, transfer.id)
    player = await db.get(Player, transfer.player_id)
    buyer = await db.get(Team, transfer.from_team_id)
    is_user = player.id == ctx.profile.player_id

    if transfer.status == TransferStatus.TEAM_PENDING:
        if player.team_id != transfer.to_team_id:
            # the player moved on while the team was thinking
            set_transfer_status(db, transfer, offer, TransferStatus.TEAM_REJECTED)
        elif team_accepts(offer.cost, player, ctx.rng):
            set_transfer_status(db, transfer, offer, TransferStatus.PLAYER_PENDING)
            if is_user:
                await arm_offer_deadline(ctx, transfer, offer)
                await mail_service.send_template(ctx, "offer_incoming", buyer.id, team=buyer.name,
                                                 years=offer.contract_years, wages=offer.wages,
                                                 expires=offer.expires_at.isoformat())
            else:
                days = ctx.rng.randint(TRANSFER_SETTINGS["RESPONSE_MIN_DAYS"], TRANSFER_SETTINGS["RESPONSE_MAX_DAYS"])
                await schedule(db, ctx.today + timedelta(days=days), CalendarEntry.TRANSFER_PARSE,
                               TransferRef(transfer_id=transfer.id))
        else:
            set_transfer_status(db, transfer, offer, TransferStatus.TEAM_REJECTED)
            if is_user:
                await mail_service.send_template(ctx, "offer_blocked", player.team_id, team=buyer.name)
        await db.commit()
        return

    if transfer.status == TransferStatus.PLAYER_PENDING and not is_user:
        if player.team_id != transfer.to_team_id:
            set_transfer_status(db, transfer, offer, TransferStatus.PLAYER_REJECTED)
        elif player_accepts(offer.wages, player, player.federation_id != buyer.federation_id, ctx.rng):
            await complete_npc_transfer(ctx, transfer, offer, player, buyer)
        else:
            set_transfer_status(db, transfer, offer, TransferStatus.PLAYER_REJECTED)
        await db.commit()


async def complete_npc_transfer(ctx: GameContext, transfer: Transfer, offer: Offer, player: Player, buyer: Team):
    db = ctx.db
    set_transfer_status(db, transfer, offer, TransferStatus.PLAYER_ACCEPTED)
    old_team_id = player.team_id
    await move_stint(db, player, buyer, ctx.today)

    player.team_id = buyer.id
    player.wages = offer.wages
    player.transfer_listed = False
    player.contract_end = add_years(ctx.today, offer.contract_years)
    player.starter = len(await starters(db, buyer.id)) < PLAYER_CONTRACT_SETTINGS["STARTERS"]
    db.add(player)
    await reject_other_offers(ctx, player.id, transfer.id)
    if old_team_id is not None:
        await db.flush()
        await promote_replacement(ctx, old_team_id, player.role)
    logger.info("🔀 %s joined %s", player.name, buyer.name)
