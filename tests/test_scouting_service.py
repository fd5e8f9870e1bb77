import asyncio
import random
from datetime import timedelta

import pytest
from sqlmodel import select

from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.player_model import CareerStint, PlayerRole
from clutchline_backend.models.transfer_model import Offer, Transfer, TransferStatus
from clutchline_backend.services import calendar_service, scouting_service
from clutchline_backend.services.calendar_service import PlayerRef
from clutchline_backend.services.scouting_service import eligible_tiers, kd_to_signal

from factories import TODAY, add_federation, add_player, add_profile, add_team, context, open_db


def always(chance, rng=None):
    return True


def never(chance, rng=None):
    return False


async def add_transfer(db, player, buyer, holder=None, created_at=TODAY, status=TransferStatus.PLAYER_PENDING):
    transfer = Transfer(status=status, player_id=player.id, from_team_id=buyer.id,
                        to_team_id=holder.id if holder else None, created_at=created_at)
    db.add(transfer)
    await db.flush()
    return transfer


@pytest.mark.parametrize("kd, signal", [(0.6, 0.0), (0.2, 0.0), (1.0, 0.5), (1.4, 1.0), (2.5, 1.0)])
def test_kd_maps_onto_a_clamped_signal(kd, signal):
    assert kd_to_signal(kd) == pytest.approx(signal)


def test_average_players_only_get_lateral_offers_at_the_bottom():
    assert eligible_tiers(0, 0.5) == {0: 60.0}


def test_strong_signals_unlock_upward_jumps():
    assert eligible_tiers(0, 0.7) == {0: 60.0, 1: 25.0}
    assert eligible_tiers(0, 0.9) == {0: 60.0, 1: 25.0, 2: 12.5}


def test_no_upward_offers_past_the_top_tier():
    assert eligible_tiers(3, 0.9) == {3: 60.0, 2: 15.0}


def test_poor_signals_make_downward_offers_likely():
    assert eligible_tiers(2, 0.5) == {2: 60.0, 1: 15.0}
    assert eligible_tiers(2, 0.2) == {2: 60.0, 1: 60.0}


def test_teamless_offer_chance_and_saturation():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            rifler = await add_player(db, europa, "Rifler")
            sniper = await add_player(db, europa, "Sniper", role=PlayerRole.SNIPER)
            ctx = context(db, await add_profile(db, player=rifler))

            assert await scouting_service.offer_chance(ctx, rifler) == pytest.approx(52.5)
            assert await scouting_service.offer_chance(ctx, sniper) == pytest.approx(35 * 0.55 * 1.5)

            teams = [await add_team(db, europa, f"Team {i}", starters=0) for i in range(3)]
            for team in teams:
                await add_transfer(db, rifler, team, created_at=TODAY - timedelta(days=30))
            assert await scouting_service.offer_chance(ctx, rifler) == 0

    asyncio.run(scenario())


def test_recent_outside_offers_cool_the_player_down():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            team = await add_team(db, europa, "Team", starters=0)
            player = await add_player(db, europa, "Free")
            ctx = context(db, await add_profile(db, player=player))

            await add_transfer(db, player, team, created_at=TODAY - timedelta(days=5),
                               status=TransferStatus.PLAYER_REJECTED)
            assert await scouting_service.offer_chance(ctx, player) == 0

            ctx.profile.date = TODAY + timedelta(days=5)
            assert await scouting_service.offer_chance(ctx, player) > 0

    asyncio.run(scenario())


def test_extensions_do_not_count_towards_the_cooldown():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            team = await add_team(db, europa, "Team", starters=4)
            player = await add_player(db, europa, "User", team=team, starter=True,
                                      contract_end=TODAY + timedelta(days=100))
            ctx = context(db, await add_profile(db, player=player, team=team))

            await add_transfer(db, player, team, holder=team, status=TransferStatus.PLAYER_REJECTED)
            assert await scouting_service.last_offer_date(db, player.id) is None
            assert await scouting_service.offer_chance(ctx, player) == pytest.approx(35)

    asyncio.run(scenario())


def test_contracted_modifiers_stack():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            team = await add_team(db, europa, "Team", starters=0)
            player = await add_player(db, europa, "User", team=team, transfer_listed=True,
                                      contract_end=TODAY + timedelta(days=700))
            ctx = context(db, await add_profile(db, player=player, team=team))
            return await scouting_service.offer_chance(ctx, player)

    assert asyncio.run(scenario()) == pytest.approx(35 * 1.4 * 1.6 * 0.5)


def test_teamless_reference_tier_is_the_best_of_the_last_year():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            player = await add_player(db, europa, "Free")
            db.add(CareerStint(player_id=player.id, team_id=None, tier=3,
                               started_at=TODAY - timedelta(days=900), ended_at=TODAY - timedelta(days=400)))
            db.add(CareerStint(player_id=player.id, team_id=None, tier=2,
                               started_at=TODAY - timedelta(days=400), ended_at=TODAY - timedelta(days=100)))
            db.add(CareerStint(player_id=player.id, team_id=None, tier=1,
                               started_at=TODAY - timedelta(days=100), ended_at=TODAY - timedelta(days=30)))
            await db.flush()
            return await scouting_service.reference_tier(db, player, None, TODAY)

    assert asyncio.run(scenario()) == 2


def test_downward_offers_come_from_the_bottom_third(monkeypatch):
    monkeypatch.setattr(scouting_service, "roll_d2", never)

    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            elsewhere = await add_federation(db, "asia")
            teams = [await add_team(db, europa, f"Team {i}", starters=0, elo=900 + 100 * i) for i in range(6)]
            await add_team(db, elsewhere, "Foreign", starters=0, elo=100)
            player = await add_player(db, europa, "Free")
            ctx = context(db, await add_profile(db, player=player))

            picks = set()
            for seed in range(30):
                ctx.rng = random.Random(seed)
                picks.add((await scouting_service.pick_team(ctx, player, 0, downward=True)).name)
            assert picks == {"Team 0", "Team 1"}

            # a team already waiting on an answer does not bid again
            await add_transfer(db, player, teams[0])
            picks = set()
            for seed in range(30):
                ctx.rng = random.Random(seed)
                picks.add((await scouting_service.pick_team(ctx, player, 0, downward=True)).name)
            assert picks == {"Team 1", "Team 2"}

    asyncio.run(scenario())


def test_free_agents_receive_offers_directly():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            buyer = await add_team(db, europa, "Buyer", starters=0)
            player = await add_player(db, europa, "Free", wages=1000)
            ctx = context(db, await add_profile(db, player=player))

            transfer = await scouting_service.create_offer(ctx, player, buyer)

            assert transfer.status == TransferStatus.PLAYER_PENDING
            assert transfer.to_team_id is None
            result = await db.execute(select(Offer).where(Offer.transfer_id == transfer.id))
            offer = result.scalars().one()
            assert offer.cost == 0
            assert offer.wages >= 1000
            assert offer.expires_at == TODAY + timedelta(days=7)

    asyncio.run(scenario())


def test_contracted_players_are_bid_for_through_their_team():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            holder = await add_team(db, europa, "Holder", starters=0)
            buyer = await add_team(db, europa, "Buyer", starters=0)
            player = await add_player(db, europa, "User", team=holder, cost=2000)
            ctx = context(db, await add_profile(db, player=player, team=holder))

            transfer = await scouting_service.create_offer(ctx, player, buyer)

            assert transfer.status == TransferStatus.TEAM_PENDING
            assert transfer.to_team_id == holder.id
            result = await db.execute(select(Offer).where(Offer.transfer_id == transfer.id))
            offer = result.scalars().one()
            assert 1800 <= offer.cost <= 2500
            assert offer.expires_at is None

            result = await db.execute(select(Calendar).where(Calendar.type == CalendarEntry.TRANSFER_PARSE))
            parse = result.scalars().one()
            assert 1 <= (parse.date - TODAY).days <= 3

    asyncio.run(scenario())


def test_scouting_check_reschedules_and_scouts(monkeypatch):
    # the offer roll succeeds, the small cross-federation roll does not
    monkeypatch.setattr(scouting_service, "roll_d2", lambda chance, rng=None: chance > 10)

    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            buyer = await add_team(db, europa, "Buyer", starters=0)
            player = await add_player(db, europa, "Free")
            ctx = context(db, await add_profile(db, player=player))
            entry = await calendar_service.schedule(db, TODAY, CalendarEntry.PLAYER_SCOUTING_CHECK,
                                                    PlayerRef(player_id=player.id))

            await scouting_service.on_scouting_check(ctx, entry)

            result = await db.execute(
                select(Calendar).where(Calendar.type == CalendarEntry.PLAYER_SCOUTING_CHECK).order_by(Calendar.date)
            )
            assert [e.date for e in result.scalars().all()] == [TODAY, TODAY + timedelta(days=7)]

            result = await db.execute(select(Transfer).where(Transfer.player_id == player.id))
            transfer = result.scalars().one()
            assert (transfer.from_team_id, transfer.status) == (buyer.id, TransferStatus.PLAYER_PENDING)

    asyncio.run(scenario())


def test_contracted_players_need_matches_before_offers(monkeypatch):
    monkeypatch.setattr(scouting_service, "roll_d2", always)

    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            team = await add_team(db, europa, "Team", starters=0)
            await add_team(db, europa, "Buyer", starters=0)
            player = await add_player(db, europa, "User", team=team)
            ctx = context(db, await add_profile(db, player=player, team=team))
            return await scouting_service.scout(ctx, player)

    assert asyncio.run(scenario()) is None
