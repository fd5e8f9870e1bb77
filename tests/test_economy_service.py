import asyncio
import random
from datetime import timedelta

import pytest
from sqlmodel import select

from clutchline_backend.core.competition_config import SPONSORS, TIER_MAIN, TIER_OPEN
from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.competition_model import Competitor
from clutchline_backend.models.player_model import Player
from clutchline_backend.models.sponsorship_model import Sponsor, Sponsorship, SponsorshipOffer, SponsorshipStatus
from clutchline_backend.models.team_model import Team
from clutchline_backend.services import calendar_service, economy_service
from clutchline_backend.services.calendar_service import SponsorshipRef

from factories import (
    TODAY,
    add_competition,
    add_federation,
    add_player,
    add_profile,
    add_team,
    add_tier,
    context,
    open_db,
)


async def add_sponsors(db):
    sponsors = {}
    for row in SPONSORS:
        sponsor = Sponsor(name=row["name"], slug=row["slug"])
        db.add(sponsor)
        await db.flush()
        sponsors[row["slug"]] = sponsor
    return sponsors


async def user_team_world(db, tier=0):
    europa = await add_federation(db)
    team = await add_team(db, europa, "Home", tier=tier, starters=4)
    user = await add_player(db, europa, "User", team=team, starter=True, contract_end=TODAY + timedelta(days=200))
    profile = await add_profile(db, player=user, team=team)
    return europa, team, user, profile


async def add_active_deal(db, sponsor, team, amount=500, frequency=4, end=TODAY + timedelta(days=365)):
    sponsorship = Sponsorship(sponsor_id=sponsor.id, team_id=team.id, status=SponsorshipStatus.SPONSOR_ACCEPTED)
    db.add(sponsorship)
    await db.flush()
    db.add(SponsorshipOffer(sponsorship_id=sponsorship.id, status=SponsorshipStatus.SPONSOR_ACCEPTED,
                            amount=amount, frequency=frequency, start=TODAY - timedelta(days=300), end=end))
    await db.flush()
    return sponsorship


async def earnings(db, team):
    result = await db.execute(select(Team.earnings).where(Team.id == team.id))
    return result.scalar_one()


async def entries_of(db, entry_type, pending_only=True):
    query = select(Calendar).where(Calendar.type == entry_type).order_by(Calendar.date)
    if pending_only:
        query = query.where(Calendar.completed == False)  # noqa: E712
    result = await db.execute(query)
    return result.scalars().all()


# =====================================
# TIERS & WAGES
# =====================================
def test_unpaid_tiers_roll_no_wages():
    assert economy_service.roll_wages(TIER_OPEN, random.Random(1)) == (0, 0)


def test_wages_come_from_the_tier_band():
    for seed in range(10):
        wages, cost = economy_service.roll_wages(TIER_MAIN, random.Random(seed))
        assert 500 <= wages <= 1500
        assert cost == wages * 2


def test_tiers_follow_this_season_division():
    async def scenario():
        async with open_db() as db:
            europa, team, user, profile = await user_team_world(db)
            other = await add_team(db, europa, "Other", starters=0, tier=3)
            main = await add_tier(db, [europa], "esl", TIER_MAIN, size=20, group_size=20)
            await add_competition(db, main, europa, [team, other], season=profile.season)
            ctx = context(db, profile)

            assert await economy_service.sync_tiers(ctx) == 2
            result = await db.execute(select(Team.tier).order_by(Team.id))
            return result.scalars().all()

    assert asyncio.run(scenario()) == [2, 2]


def test_wages_resync_for_the_user_squad():
    async def scenario():
        async with open_db() as db:
            europa, team, user, profile = await user_team_world(db, tier=2)
            outsider = await add_player(db, europa, "Outsider", wages=77)
            ctx = context(db, profile)

            assert await economy_service.sync_wages(ctx) == 5
            result = await db.execute(select(Player).where(Player.team_id == team.id))
            assert all(500 <= player.wages <= 1500 for player in result.scalars().all())
            assert outsider.wages == 77

    asyncio.run(scenario())


# =====================================
# SPONSORSHIP OFFERS
# =====================================
def test_sponsor_accepts_a_fair_pitch_and_schedules_payments():
    async def scenario():
        async with open_db() as db:
            _, team, _, profile = await user_team_world(db)
            sponsors = await add_sponsors(db)
            ctx = context(db, profile)

            sponsorship = await economy_service.create_sponsorship_offer(
                ctx, sponsors["hyperdrive"].id, 400, 4, TODAY, TODAY + timedelta(days=365)
            )
            assert sponsorship.status == SponsorshipStatus.SPONSOR_PENDING
            parse = (await entries_of(db, CalendarEntry.SPONSORSHIP_PARSE))[0]
            assert 1 <= (parse.date - TODAY).days <= 3

            await economy_service.on_sponsorship_offer(ctx, parse)

            assert sponsorship.status == SponsorshipStatus.SPONSOR_ACCEPTED
            payments = await entries_of(db, CalendarEntry.SPONSORSHIP_PAYMENT)
            assert [p.date for p in payments] == [TODAY + timedelta(weeks=4 * n) for n in range(14)]

            await economy_service.on_sponsorship_payment(ctx, payments[0])
            assert await earnings(db, team) == 400

    asyncio.run(scenario())


def test_sponsor_rejects_a_greedy_pitch():
    async def scenario():
        async with open_db() as db:
            _, team, _, profile = await user_team_world(db)
            sponsors = await add_sponsors(db)
            ctx = context(db, profile)

            sponsorship = await economy_service.create_sponsorship_offer(
                ctx, sponsors["hyperdrive"].id, 5000, 4, TODAY, TODAY + timedelta(days=365)
            )
            await economy_service.on_sponsorship_offer(ctx, (await entries_of(db, CalendarEntry.SPONSORSHIP_PARSE))[0])

            assert sponsorship.status == SponsorshipStatus.SPONSOR_REJECTED
            assert await entries_of(db, CalendarEntry.SPONSORSHIP_PAYMENT) == []

    asyncio.run(scenario())


def test_sponsor_rejects_teams_outside_its_tiers():
    async def scenario():
        async with open_db() as db:
            _, team, _, profile = await user_team_world(db)
            sponsors = await add_sponsors(db)
            ctx = context(db, profile)

            sponsorship = await economy_service.create_sponsorship_offer(
                ctx, sponsors["voltline"].id, 100, 2, TODAY, TODAY + timedelta(days=100)
            )
            await economy_service.on_sponsorship_offer(ctx, (await entries_of(db, CalendarEntry.SPONSORSHIP_PARSE))[0])
            assert sponsorship.status == SponsorshipStatus.SPONSOR_REJECTED

    asyncio.run(scenario())


def test_invalid_pitches_are_refused():
    async def scenario():
        async with open_db() as db:
            europa, team, user, profile = await user_team_world(db)
            sponsors = await add_sponsors(db)
            ctx = context(db, profile)

            with pytest.raises(ValueError):
                await economy_service.create_sponsorship_offer(ctx, sponsors["hyperdrive"].id, 100, 0, TODAY,
                                                               TODAY + timedelta(days=10))
            with pytest.raises(ValueError):
                await economy_service.create_sponsorship_offer(ctx, sponsors["hyperdrive"].id, 100, 1, TODAY, TODAY)

            ctx.profile.team_id = None
            with pytest.raises(ValueError):
                await economy_service.create_sponsorship_offer(ctx, sponsors["hyperdrive"].id, 100, 1, TODAY,
                                                               TODAY + timedelta(days=10))

    asyncio.run(scenario())


def test_user_answers_a_sponsor_proposal(monkeypatch):
    monkeypatch.setattr(economy_service, "roll_d2", lambda chance, rng=None: True)

    async def scenario():
        async with open_db() as db:
            _, team, _, profile = await user_team_world(db)
            sponsors = await add_sponsors(db)
            ctx = context(db, profile)

            await economy_service.sponsorship_propose(ctx, team)
            result = await db.execute(select(Sponsorship))
            proposal = result.scalars().one()
            # only the sponsor backing the open division comes forward
            assert proposal.sponsor_id == sponsors["hyperdrive"].id
            assert proposal.status == SponsorshipStatus.TEAM_PENDING

            entry = await economy_service.respond_to_sponsorship(ctx, proposal.id, accept=True)
            assert entry.payload == f'[{proposal.id}, "team_accepted"]'

            await economy_service.on_sponsorship_offer(ctx, entry)
            assert proposal.status == SponsorshipStatus.TEAM_ACCEPTED
            assert len(await entries_of(db, CalendarEntry.SPONSORSHIP_PAYMENT)) == 14

    asyncio.run(scenario())


def test_payments_stop_for_inactive_deals():
    async def scenario():
        async with open_db() as db:
            _, team, _, profile = await user_team_world(db)
            sponsors = await add_sponsors(db)
            sponsorship = await add_active_deal(db, sponsors["hyperdrive"], team)
            sponsorship.status = SponsorshipStatus.SPONSOR_TERMINATED
            ctx = context(db, profile)
            entry = await calendar_service.schedule(db, TODAY, CalendarEntry.SPONSORSHIP_PAYMENT,
                                                    SponsorshipRef(sponsorship_id=sponsorship.id))

            await economy_service.on_sponsorship_payment(ctx, entry)
            assert await earnings(db, team) == 0

    asyncio.run(scenario())


# =====================================
# SEASON REVIEW
# =====================================
async def finished_last_season(db, europa, team, position, season):
    tier = await add_tier(db, [europa], "esl", TIER_OPEN, size=20, group_size=20)
    competition = await add_competition(db, tier, europa, [], season=season - 1)
    db.add(Competitor(competition_id=competition.id, team_id=team.id, position=position))
    await db.flush()


def test_missing_the_placement_requirement_ends_the_deal():
    async def scenario():
        async with open_db() as db:
            europa, team, _, profile = await user_team_world(db)
            sponsors = await add_sponsors(db)
            sponsorship = await add_active_deal(db, sponsors["hyperdrive"], team)
            payment = await calendar_service.schedule(db, TODAY + timedelta(days=10), CalendarEntry.SPONSORSHIP_PAYMENT,
                                                      SponsorshipRef(sponsorship_id=sponsorship.id))
            await finished_last_season(db, europa, team, 19, profile.season)
            ctx = context(db, profile)

            await economy_service.sponsorship_check(ctx)

            assert sponsorship.status == SponsorshipStatus.SPONSOR_TERMINATED
            assert payment.completed
            assert await earnings(db, team) == 0

    asyncio.run(scenario())


def test_a_top_finish_pays_the_placement_bonus():
    async def scenario():
        async with open_db() as db:
            europa, team, _, profile = await user_team_world(db)
            sponsors = await add_sponsors(db)
            sponsorship = await add_active_deal(db, sponsors["hyperdrive"], team)
            await finished_last_season(db, europa, team, 2, profile.season)
            ctx = context(db, profile)

            await economy_service.sponsorship_check(ctx)

            assert sponsorship.status == SponsorshipStatus.SPONSOR_ACCEPTED
            assert await earnings(db, team) == 2500

    asyncio.run(scenario())


def test_deals_past_their_end_expire_at_the_review():
    async def scenario():
        async with open_db() as db:
            europa, team, _, profile = await user_team_world(db)
            sponsors = await add_sponsors(db)
            sponsorship = await add_active_deal(db, sponsors["hyperdrive"], team, end=TODAY)
            await finished_last_season(db, europa, team, 10, profile.season)
            ctx = context(db, profile)

            await economy_service.sponsorship_check(ctx)

            assert sponsorship.status == SponsorshipStatus.CONTRACT_EXPIRED
            offer = await economy_service.latest_offer(db, sponsorship.id)
            assert offer.status == SponsorshipStatus.CONTRACT_EXPIRED

    asyncio.run(scenario())
