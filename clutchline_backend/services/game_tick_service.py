# clutchline_backend/services/game_tick_service.py
# The day loop: fires today's calendar entries through their handlers, closes
# the day (match results, date + 1) and stops early when the user is needed.

import asyncio
import logging
from datetime import timedelta
from typing import Optional

from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.services import (
    career_service,
    competition_service,
    economy_service,
    mail_service,
    match_service,
    scouting_service,
)
from clutchline_backend.services.calendar_service import MalformedPayload, TickSignal, due_entries
from clutchline_backend.services.game_context import GameContext

logger = logging.getLogger(__name__)

# one save, one clock: only a single advance or sim may run at a time
_clock_lock = asyncio.Lock()


class ClockBusy(RuntimeError):
    pass


HANDLERS = {
    CalendarEntry.SEASON_START: competition_service.on_season_start,
    CalendarEntry.COMPETITION_START: competition_service.on_competition_start,
    CalendarEntry.COMPETITION_END: competition_service.on_competition_end,
    CalendarEntry.MATCHDAY_NPC: match_service.on_matchday_npc,
    CalendarEntry.MATCHDAY_USER: match_service.on_matchday_user,
    CalendarEntry.EMAIL_SEND: mail_service.on_email_send,
    CalendarEntry.SPONSORSHIP_PARSE: economy_service.on_sponsorship_offer,
    CalendarEntry.SPONSORSHIP_PAYMENT: economy_service.on_sponsorship_payment,
    CalendarEntry.TRANSFER_PARSE: career_service.on_transfer_parse,
    CalendarEntry.TRANSFER_OFFER_EXPIRY_CHECK: career_service.on_offer_expiry_check,
    CalendarEntry.TRANSFER_OFFER_REMINDER: career_service.on_offer_reminder,
    CalendarEntry.PLAYER_SCOUTING_CHECK: scouting_service.on_scouting_check,
    CalendarEntry.PLAYER_CONTRACT_EXPIRE: career_service.on_contract_expire,
    CalendarEntry.PLAYER_CONTRACT_REVIEW: career_service.on_contract_review,
    CalendarEntry.PLAYER_CONTRACT_EXTENSION_EVAL: career_service.on_extension_eval,
}


async def dispatch(ctx: GameContext, entry: Calendar) -> TickSignal:
    """Run one entry's handler. Unknown types and unreadable payloads are skipped."""
    handler = HANDLERS.get(entry.type)
    if handler is None:
        logger.warning("No handler for calendar entry %s (%s)", entry.id, entry.type)
        return TickSignal.CONTINUE

    try:
        signal = await handler(ctx, entry)
    except MalformedPayload as exc:
        logger.warning("⚠️ Skipping calendar entry %s: %s", entry.id, exc)
        return TickSignal.CONTINUE
    except Exception:
        # leave the entry pending so it fires again on the next run
        await ctx.db.rollback()
        raise
    return signal or TickSignal.CONTINUE


async def run_day(ctx: GameContext) -> Optional[TickSignal]:
    """
    Fire every pending entry for today in creation order, including ones a
    handler schedules for today while the day is running. Returns the signal
    that stopped the day, or None when the day ran to the end.
    """
    seen = set()
    while True:
        entries = [entry for entry in await due_entries(ctx.db, ctx.today) if entry.id not in seen]
        if not entries:
            return None

        for entry in entries:
            seen.add(entry.id)
            signal = await dispatch(ctx, entry)
            if signal == TickSignal.DEFER:
                logger.info("⏸️ Waiting on the user (%s)", entry.type.value)
                return signal

            entry.completed = True
            ctx.db.add(entry)
            await ctx.db.commit()
            if signal == TickSignal.HALT:
                logger.info("⏸️ Day loop halted by %s", entry.type.value)
                return signal


async def end_day(ctx: GameContext):
    """Record today's results and move the clock forward one day."""
    recorded = await competition_service.record_match_results(ctx)
    ctx.profile.date = ctx.today + timedelta(days=1)
    ctx.db.add(ctx.profile)
    await ctx.db.commit()
    logger.debug("📅 Day closed with %d recorded matches; now %s", recorded, ctx.today)


def _hold_clock():
    if _clock_lock.locked():
        raise ClockBusy("the calendar is already advancing")
    return _clock_lock


async def advance(ctx: GameContext, days: int = 1) -> dict:
    """
    Advance up to `days` days. The loop stops on the first halt or deferred
    entry, leaving the date on the day that needs the user.
    """
    async with _hold_clock():
        start = ctx.today
        advanced = 0
        signal = None
        for _ in range(max(days, 0)):
            signal = await run_day(ctx)
            if signal is not None:
                break
            await end_day(ctx)
            advanced += 1

    logger.info("📆 Advanced %d day(s): %s -> %s", advanced, start, ctx.today)
    return {
        "message": "Calendar advanced.",
        "days_advanced": advanced,
        "date": ctx.today,
        "halted": signal is not None,
        "reason": signal.value if signal is not None else None,
    }


async def sim(ctx: GameContext) -> dict:
    """Play today's user match so the next advance can move past it."""
    async with _hold_clock():
        scores = await match_service.sim_user_match(ctx)
    if scores is None:
        return {"message": "No user match today.", "scores": None}
    return {"message": "Match simulated.", "scores": {str(team_id): score for team_id, score in scores.items()}}
