import asyncio
from datetime import timedelta

import pytest
from sqlmodel import select

from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.match_model import Match, MatchCompetitor, MatchStatus
from clutchline_backend.models.sponsorship_model import SponsorshipStatus
from clutchline_backend.services import calendar_service
from clutchline_backend.services.calendar_service import (
    EmailSend,
    MalformedPayload,
    MatchRef,
    NoPayload,
    PlayerRef,
    SponsorshipRef,
    decode_payload,
    encode_payload,
)

from factories import TODAY, add_federation, add_team, open_db


def test_single_id_payloads_are_stored_bare():
    assert encode_payload(PlayerRef(player_id=42)) == "42"
    assert decode_payload(CalendarEntry.PLAYER_CONTRACT_REVIEW, "42") == PlayerRef(player_id=42)
    assert encode_payload(NoPayload()) == ""
    assert decode_payload(CalendarEntry.SEASON_START, "") == NoPayload()


def test_multi_value_payloads_are_json_arrays():
    ref = SponsorshipRef(sponsorship_id=3, status=SponsorshipStatus.TEAM_ACCEPTED)
    raw = encode_payload(ref)
    assert raw == '[3, "team_accepted"]'
    assert decode_payload(CalendarEntry.SPONSORSHIP_PARSE, raw) == ref

    # unset trailing optionals are dropped
    assert encode_payload(SponsorshipRef(sponsorship_id=3)) == "3"

    mail = EmailSend(subject="Hi", content="There", persona_id=None)
    assert decode_payload(CalendarEntry.EMAIL_SEND, encode_payload(mail)) == mail


@pytest.mark.parametrize("raw", ["not json", "[1, 2, 3]", '"abc"'])
def test_malformed_payloads_raise(raw):
    with pytest.raises(MalformedPayload):
        decode_payload(CalendarEntry.TRANSFER_PARSE, raw)


def test_schedule_is_an_idempotent_upsert():
    async def scenario():
        async with open_db() as db:
            first = await calendar_service.schedule(db, TODAY, CalendarEntry.PLAYER_CONTRACT_REVIEW, PlayerRef(player_id=1))
            second = await calendar_service.schedule(db, TODAY, CalendarEntry.PLAYER_CONTRACT_REVIEW, PlayerRef(player_id=1))
            assert first.id == second.id

            # a cancelled entry is re-armed rather than duplicated
            cancelled = await calendar_service.cancel(
                db, [CalendarEntry.PLAYER_CONTRACT_REVIEW], PlayerRef(player_id=1), TODAY
            )
            assert cancelled == 1
            assert first.completed
            again = await calendar_service.schedule(db, TODAY, CalendarEntry.PLAYER_CONTRACT_REVIEW, PlayerRef(player_id=1))
            assert again.id == first.id
            assert not again.completed

            rows = (await db.execute(select(Calendar))).scalars().all()
            return len(rows)

    assert asyncio.run(scenario()) == 1


def test_scheduling_a_fired_entry_does_not_run_it_again():
    async def scenario():
        async with open_db() as db:
            ref = PlayerRef(player_id=3)
            fired = await calendar_service.schedule(db, TODAY, CalendarEntry.PLAYER_CONTRACT_REVIEW, ref)
            fired.completed = True
            db.add(fired)
            await db.flush()

            again = await calendar_service.schedule(db, TODAY, CalendarEntry.PLAYER_CONTRACT_REVIEW, ref)
            assert again.id == fired.id
            assert again.completed
            assert not again.cancelled
            assert await calendar_service.due_entries(db, TODAY) == []

    asyncio.run(scenario())


def test_cancel_only_touches_future_entries_of_the_payload():
    async def scenario():
        async with open_db() as db:
            ref = PlayerRef(player_id=7)
            past = await calendar_service.schedule(db, TODAY - timedelta(days=1), CalendarEntry.PLAYER_CONTRACT_EXPIRE, ref)
            future = await calendar_service.schedule(db, TODAY + timedelta(days=5), CalendarEntry.PLAYER_CONTRACT_EXPIRE, ref)
            other = await calendar_service.schedule(db, TODAY + timedelta(days=5), CalendarEntry.PLAYER_CONTRACT_EXPIRE,
                                                    PlayerRef(player_id=8))
            await calendar_service.cancel(db, [CalendarEntry.PLAYER_CONTRACT_EXPIRE], ref, TODAY)
            return past.completed, future.completed, other.completed

    assert asyncio.run(scenario()) == (False, True, False)


def test_due_entries_come_in_creation_order():
    async def scenario():
        async with open_db() as db:
            later = await calendar_service.schedule(db, TODAY, CalendarEntry.SEASON_START)
            earlier = await calendar_service.schedule(db, TODAY, CalendarEntry.MATCHDAY_NPC, MatchRef(match_id=1))
            await calendar_service.schedule(db, TODAY + timedelta(days=1), CalendarEntry.MATCHDAY_NPC, MatchRef(match_id=2))
            due = await calendar_service.due_entries(db, TODAY)
            return [entry.id for entry in due], [later.id, earlier.id]

    due, expected = asyncio.run(scenario())
    assert due == expected


def test_matchday_ownership_moves_between_user_and_npc():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            mine = await add_team(db, europa, "Mine", starters=0)
            theirs = await add_team(db, europa, "Theirs", starters=0)

            entries = []
            for offset in (-1, 3):
                match = Match(payload=f"m{offset}", round=1, total_rounds=1, status=MatchStatus.READY,
                              date=TODAY + timedelta(days=offset))
                db.add(match)
                await db.flush()
                db.add(MatchCompetitor(match_id=match.id, team_id=mine.id))
                db.add(MatchCompetitor(match_id=match.id, team_id=theirs.id))
                entries.append(await calendar_service.schedule(db, match.date, CalendarEntry.MATCHDAY_NPC,
                                                               MatchRef(match_id=match.id)))

            changed = await calendar_service.set_matchday_owner(db, mine.id, TODAY, user=True)
            return changed, [entry.type for entry in entries]

    changed, types = asyncio.run(scenario())
    assert changed == 1
    assert types == [CalendarEntry.MATCHDAY_NPC, CalendarEntry.MATCHDAY_USER]
