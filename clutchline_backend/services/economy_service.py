# clutchline_backend/services/economy_service.py
# Season-start economy: tier and wage sync, plus the sponsorship lifecycle
# (offers, responses, payments, renewals, bonuses and terminations).

import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import update
from sqlmodel import select

from clutchline_backend.core.career_config import TRANSFER_SETTINGS
from clutchline_backend.core.chance import roll_d2, weighted_choice
from clutchline_backend.core.competition_config import (
    DOMESTIC_TIERS,
    FEDERATION_WORLD,
    PLAYER_WAGES,
    PRESTIGE,
    SPONSOR_BONUS_PLACEMENT,
    SPONSOR_CONTRACTS,
    SPONSOR_REQUIREMENT_PLACEMENT,
)
from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.competition_model import Competition, CompetitionStatus, Competitor
from clutchline_backend.models.league_model import Federation, Tier
from clutchline_backend.models.player_model import Player
from clutchline_backend.models.sponsorship_model import (
    ACTIVE_SPONSORSHIP_STATUSES,
    Sponsor,
    Sponsorship,
    SponsorshipOffer,
    SponsorshipStatus,
)
from clutchline_backend.models.team_model import Team
from clutchline_backend.services import mail_service
from clutchline_backend.services.calendar_service import (
    CompetitionRef,
    SponsorshipRef,
    cancel,
    decode_payload,
    encode_payload,
    schedule,
)
from clutchline_backend.services.game_context import GameContext

logger = logging.getLogger(__name__)


# =====================================
# TIERS & WAGES
# =====================================
async def sync_tiers(ctx: GameContext) -> int:
    """Set every team's tier to the domestic division it plays in this season."""
    result = await ctx.db.execute(
        select(Competitor.team_id, Tier.slug)
        .join(Competition, Competition.id == Competitor.competition_id)
        .join(Tier, Tier.id == Competition.tier_id)
        .where(Competition.season == ctx.profile.season, Tier.slug.in_(DOMESTIC_TIERS))
    )
    rows = result.all()
    for team_id, tier_slug in rows:
        await ctx.db.execute(update(Team).where(Team.id == team_id).values(tier=PRESTIGE.index(tier_slug)))

    logger.info("🔁 Synced tiers for %d teams", len(rows))
    return len(rows)


def roll_wages(tier_slug: str, rng) -> tuple:
    """(wages, cost) for a player in `tier_slug`; (0, 0) when the tier pays nothing."""
    bands = PLAYER_WAGES.get(tier_slug)
    if not bands:
        return 0, 0
    band = bands[weighted_choice({index: band["percent"] for index, band in enumerate(bands)}, rng)]
    wages = rng.randint(band["low"], band["high"])
    return wages, wages * band["multiplier"]


async def sync_wages(ctx: GameContext) -> int:
    """Re-roll wages and transfer cost for the user's squad."""
    team = await ctx.user_team()
    if team is None:
        return 0

    result = await ctx.db.execute(select(Player).where(Player.team_id == team.id))
    players = result.scalars().all()
    tier_slug = PRESTIGE[team.tier] if 0 <= team.tier < len(PRESTIGE) else None
    for player in players:
        player.wages, player.cost = roll_wages(tier_slug, ctx.rng)
        ctx.db.add(player)
    return len(players)


# =====================================
# SPONSORSHIPS
# =====================================
async def latest_offer(db, sponsorship_id: int) -> Optional[SponsorshipOffer]:
    result = await db.execute(
        select(SponsorshipOffer)
        .where(SponsorshipOffer.sponsorship_id == sponsorship_id)
        .order_by(SponsorshipOffer.id.desc())
    )
    return result.scalars().first()


async def _set_status(db, sponsorship: Sponsorship, offer: Optional[SponsorshipOffer], status: SponsorshipStatus):
    sponsorship.status = status
    db.add(sponsorship)
    if offer is not None:
        offer.status = status
        db.add(offer)


async def _active_sponsorships(db, team_id: int) -> List[Sponsorship]:
    result = await db.execute(
        select(Sponsorship)
        .where(Sponsorship.team_id == team_id, Sponsorship.status.in_(ACTIVE_SPONSORSHIP_STATUSES))
        .order_by(Sponsorship.id)
    )
    return result.scalars().all()


async def last_season_position(ctx: GameContext, team_id: int) -> Optional[int]:
    """Final position of the team in last season's domestic division."""
    result = await ctx.db.execute(
        select(Competitor.position)
        .join(Competition, Competition.id == Competitor.competition_id)
        .join(Tier, Tier.id == Competition.tier_id)
        .where(
            Competitor.team_id == team_id,
            Competition.season == ctx.profile.season - 1,
            Tier.slug.in_(DOMESTIC_TIERS),
        )
        .order_by(Competition.id.desc())
    )
    return result.scalars().first()


async def sponsorship_check(ctx: GameContext):
    """
    End-of-season review of the user's sponsorships: failed requirements end
    the deal, placement bonuses are paid, then renewals and invites run.
    """
    team = await ctx.user_team()
    if team is None:
        return

    sponsorships = await _active_sponsorships(ctx.db, team.id)
    if not sponsorships:
        await sponsorship_propose(ctx, team)
        return

    position = await last_season_position(ctx, team.id)
    for sponsorship in sponsorships:
        sponsor = await ctx.db.get(Sponsor, sponsorship.sponsor_id)
        contract = SPONSOR_CONTRACTS.get(sponsor.slug, {})

        if position is not None:
            failed = [
                requirement for requirement in contract.get("requirements", [])
                if requirement["type"] == SPONSOR_REQUIREMENT_PLACEMENT and position > requirement["condition"]
            ]
            if failed:
                await _set_status(ctx.db, sponsorship, await latest_offer(ctx.db, sponsorship.id),
                                  SponsorshipStatus.SPONSOR_TERMINATED)
                await cancel(ctx.db, [CalendarEntry.SPONSORSHIP_PAYMENT],
                             SponsorshipRef(sponsorship_id=sponsorship.id), ctx.today)
                await mail_service.send_template(ctx, "sponsor_terminated", team.id,
                                                 sponsor=sponsor.name, position=position)
                logger.info("✂️ %s terminated the sponsorship of %s", sponsor.name, team.name)
                continue

            earnings = sum(
                bonus["amount"] for bonus in contract.get("bonuses", [])
                if bonus["type"] == SPONSOR_BONUS_PLACEMENT and position < bonus["condition"]
            )
            if earnings:
                await ctx.db.execute(update(Team).where(Team.id == team.id).values(earnings=Team.earnings + earnings))
                await mail_service.send_template(ctx, "sponsor_bonus", team.id,
                                                 sponsor=sponsor.name, position=position, amount=earnings)

        if await sponsorship_renew(ctx, sponsorship):
            continue
        await sponsorship_invite(ctx, sponsorship)


async def sponsorship_renew(ctx: GameContext, sponsorship: Sponsorship) -> bool:
    """Expire the deal once its latest offer has run out. True if it expired."""
    offer = await latest_offer(ctx.db, sponsorship.id)
    if offer is None or ctx.today < offer.end:
        return False

    sponsor = await ctx.db.get(Sponsor, sponsorship.sponsor_id)
    await _set_status(ctx.db, sponsorship, offer, SponsorshipStatus.CONTRACT_EXPIRED)
    await mail_service.send_template(ctx, "sponsor_expired", sponsorship.team_id, sponsor=sponsor.name)
    return True


async def sponsorship_invite(ctx: GameContext, sponsorship: Sponsorship, status: Optional[SponsorshipStatus] = None):
    """Schedule the sponsor's tournament invite for a random day before the event starts."""
    sponsor = await ctx.db.get(Sponsor, sponsorship.sponsor_id)
    contract = SPONSOR_CONTRACTS.get(sponsor.slug, {})
    if not contract.get("tournament"):
        logger.debug("%s has no tournament. skipping invite...", sponsor.name)
        return None

    if (status or sponsorship.status) not in ACTIVE_SPONSORSHIP_STATUSES:
        logger.warning("Sponsorship %s is not active. skipping invite...", sponsorship.id)
        return None

    offer = await latest_offer(ctx.db, sponsorship.id)
    if offer is None or ctx.today >= offer.end:
        return None

    team = await ctx.db.get(Team, sponsorship.team_id)
    world = (await ctx.db.execute(select(Federation).where(Federation.slug == FEDERATION_WORLD))).scalars().first()
    federation_ids = [team.federation_id] + ([world.id] if world else [])
    result = await ctx.db.execute(
        select(Competition)
        .join(Tier, Tier.id == Competition.tier_id)
        .where(
            Competition.season == ctx.profile.season,
            Competition.status == CompetitionStatus.SCHEDULED,
            Tier.slug == contract["tournament"],
            Competition.federation_id.in_(federation_ids),
        )
    )
    competition = result.scalars().first()
    if competition is None:
        logger.warning("%s tournament not found or already started. skipping invite...", sponsor.name)
        return None

    result = await ctx.db.execute(
        select(Calendar).where(
            Calendar.type == CalendarEntry.COMPETITION_START,
            Calendar.payload == encode_payload(CompetitionRef(competition_id=competition.id)),
            Calendar.completed == False,  # noqa: E712
        )
    )
    start = result.scalars().first()
    days = (start.date - ctx.today).days if start else 0
    if days <= 1:
        return None

    tier = await ctx.db.get(Tier, competition.tier_id)
    invite_on = ctx.today + timedelta(days=ctx.rng.randint(1, days - 1))
    return await mail_service.schedule_template(
        ctx, invite_on, "sponsor_invite", team.id,
        sponsor=sponsor.name, competition=tier.name, start=start.date.isoformat(),
    )


async def sponsorship_propose(ctx: GameContext, team: Team):
    """Sponsors that back the team's tier may approach a team without a deal."""
    tier_slug = PRESTIGE[team.tier] if 0 <= team.tier < len(PRESTIGE) else None
    result = await ctx.db.execute(select(Sponsor).order_by(Sponsor.id))
    for sponsor in result.scalars().all():
        contract = SPONSOR_CONTRACTS.get(sponsor.slug)
        if not contract or tier_slug not in contract["tiers"] or not roll_d2(50, ctx.rng):
            continue
        sponsorship = Sponsorship(sponsor_id=sponsor.id, team_id=team.id, status=SponsorshipStatus.TEAM_PENDING)
        ctx.db.add(sponsorship)
        await ctx.db.flush()
        ctx.db.add(SponsorshipOffer(
            sponsorship_id=sponsorship.id,
            status=SponsorshipStatus.TEAM_PENDING,
            amount=contract["amount"],
            frequency=contract["frequency"],
            start=ctx.today,
            end=ctx.today + timedelta(days=365),
        ))
        logger.info("🤝 %s offered a sponsorship to %s", sponsor.name, team.name)


async def create_sponsorship_offer(ctx: GameContext, sponsor_id: int, amount: int, frequency: int,
                                   start, end) -> Sponsorship:
    """The user's team pitches a deal to a sponsor; the sponsor answers in a few days."""
    team = await ctx.user_team()
    if team is None:
        raise ValueError("a teamless player cannot sign sponsorships")
    if frequency < 1 or end <= start:
        raise ValueError("sponsorship offers need a positive frequency and an end after the start")

    sponsorship = Sponsorship(sponsor_id=sponsor_id, team_id=team.id, status=SponsorshipStatus.SPONSOR_PENDING)
    ctx.db.add(sponsorship)
    await ctx.db.flush()
    ctx.db.add(SponsorshipOffer(sponsorship_id=sponsorship.id, status=SponsorshipStatus.SPONSOR_PENDING,
                                amount=amount, frequency=frequency, start=start, end=end))

    days = ctx.rng.randint(TRANSFER_SETTINGS["RESPONSE_MIN_DAYS"], TRANSFER_SETTINGS["RESPONSE_MAX_DAYS"])
    await schedule(ctx.db, ctx.today + timedelta(days=days), CalendarEntry.SPONSORSHIP_PARSE,
                   SponsorshipRef(sponsorship_id=sponsorship.id))
    await ctx.db.commit()
    return sponsorship


async def respond_to_sponsorship(ctx: GameContext, sponsorship_id: int, accept: bool):
    """Queue the user's answer to a sponsor's offer for the next tick."""
    status = SponsorshipStatus.TEAM_ACCEPTED if accept else SponsorshipStatus.TEAM_REJECTED
    entry = await schedule(ctx.db, ctx.today, CalendarEntry.SPONSORSHIP_PARSE,
                           SponsorshipRef(sponsorship_id=sponsorship_id, status=status))
    await ctx.db.commit()
    return entry


def parse_sponsor_side(team: Team, contract: dict, offer: SponsorshipOffer) -> SponsorshipStatus:
    tier_slug = PRESTIGE[team.tier] if 0 <= team.tier < len(PRESTIGE) else None
    if tier_slug in contract.get("tiers", []) and offer.amount <= contract.get("amount", 0):
        return SponsorshipStatus.SPONSOR_ACCEPTED
    return SponsorshipStatus.SPONSOR_REJECTED


async def on_sponsorship_offer(ctx: GameContext, entry: Calendar):
    payload = decode_payload(entry.type, entry.payload)
    sponsorship = await ctx.db.get(Sponsorship, payload.sponsorship_id)
    offer = await latest_offer(ctx.db, payload.sponsorship_id) if sponsorship else None
    if offer is None:
        logger.warning("Sponsorship %s has no offer to parse", payload.sponsorship_id)
        return

    sponsor = await ctx.db.get(Sponsor, sponsorship.sponsor_id)
    team = await ctx.db.get(Team, sponsorship.team_id)
    if offer.status == SponsorshipStatus.SPONSOR_PENDING:
        status = parse_sponsor_side(team, SPONSOR_CONTRACTS.get(sponsor.slug, {}), offer)
    elif offer.status == SponsorshipStatus.TEAM_PENDING and payload.status in (
        SponsorshipStatus.TEAM_ACCEPTED, SponsorshipStatus.TEAM_REJECTED
    ):
        status = payload.status
    else:
        return

    await _set_status(ctx.db, sponsorship, offer, status)
    if status not in ACTIVE_SPONSORSHIP_STATUSES:
        await mail_service.send_template(ctx, "sponsor_rejected", team.id, sponsor=sponsor.name)
        await ctx.db.commit()
        return

    # payments every `frequency` weeks, skipping dates already behind us
    payday = offer.start
    payments = 0
    while payday <= offer.end:
        if payday >= ctx.today:
            await schedule(ctx.db, payday, CalendarEntry.SPONSORSHIP_PAYMENT,
                           SponsorshipRef(sponsorship_id=sponsorship.id))
            payments += 1
        payday += timedelta(weeks=offer.frequency)

    await mail_service.send_template(ctx, "sponsor_accepted", team.id, sponsor=sponsor.name,
                                     amount=offer.amount, frequency=offer.frequency, end=offer.end.isoformat())
    await sponsorship_invite(ctx, sponsorship, status)
    await ctx.db.commit()
    logger.info("🤝 %s sponsors %s (%d payments scheduled)", sponsor.name, team.name, payments)


async def on_sponsorship_payment(ctx: GameContext, entry: Calendar):
    payload = decode_payload(entry.type, entry.payload)
    sponsorship = await ctx.db.get(Sponsorship, payload.sponsorship_id)
    if sponsorship is None or sponsorship.status not in ACTIVE_SPONSORSHIP_STATUSES:
        return
    offer = await latest_offer(ctx.db, sponsorship.id)
    await ctx.db.execute(
        update(Team).where(Team.id == sponsorship.team_id).values(earnings=Team.earnings + offer.amount)
    )
    await ctx.db.commit()
