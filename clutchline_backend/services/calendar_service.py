# clutchline_backend/services/calendar_service.py
# Typed calendar payloads and the scheduling primitives every service uses
# to put work on the calendar, cancel it, or hand matchdays to/from the user.

import json
import logging
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Type

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.match_model import Match, MatchCompetitor
from clutchline_backend.models.sponsorship_model import SponsorshipStatus

logger = logging.getLogger(__name__)


# =====================================
# PAYLOADS
# =====================================
# Single-id payloads are stored as the bare id; anything richer is a JSON
# array of the field values in declaration order.

class NoPayload(BaseModel):
    pass


class CompetitionRef(BaseModel):
    competition_id: int


class MatchRef(BaseModel):
    match_id: int


class PlayerRef(BaseModel):
    player_id: int


class TransferRef(BaseModel):
    transfer_id: int


class SponsorshipRef(BaseModel):
    sponsorship_id: int
    status: Optional[SponsorshipStatus] = None


class EmailSend(BaseModel):
    subject: str
    content: str
    persona_id: Optional[int] = None


PAYLOAD_TYPES = {
    CalendarEntry.SEASON_START: NoPayload,
    CalendarEntry.COMPETITION_START: CompetitionRef,
    CalendarEntry.COMPETITION_END: CompetitionRef,
    CalendarEntry.MATCHDAY_NPC: MatchRef,
    CalendarEntry.MATCHDAY_USER: MatchRef,
    CalendarEntry.EMAIL_SEND: EmailSend,
    CalendarEntry.SPONSORSHIP_PARSE: SponsorshipRef,
    CalendarEntry.SPONSORSHIP_PAYMENT: SponsorshipRef,
    CalendarEntry.TRANSFER_PARSE: TransferRef,
    CalendarEntry.TRANSFER_OFFER_EXPIRY_CHECK: TransferRef,
    CalendarEntry.TRANSFER_OFFER_REMINDER: TransferRef,
    CalendarEntry.PLAYER_SCOUTING_CHECK: PlayerRef,
    CalendarEntry.PLAYER_CONTRACT_EXPIRE: PlayerRef,
    CalendarEntry.PLAYER_CONTRACT_REVIEW: PlayerRef,
    CalendarEntry.PLAYER_CONTRACT_EXTENSION_EVAL: PlayerRef,
}

MATCHDAY_TYPES = [CalendarEntry.MATCHDAY_NPC, CalendarEntry.MATCHDAY_USER]


class MalformedPayload(ValueError):
    pass


def encode_payload(payload: BaseModel) -> str:
    values = [value.value if hasattr(value, "value") else value for value in payload.model_dump().values()]
    # trailing optionals left unset are not stored
    while values and values[-1] is None:
        values.pop()
    if not values:
        return ""
    if len(values) == 1 and not isinstance(values[0], str):
        return str(values[0])
    return json.dumps(values)


def decode_payload(entry_type: CalendarEntry, raw: str) -> BaseModel:
    """Parse a stored payload back into its typed model."""
    model: Type[BaseModel] = PAYLOAD_TYPES[entry_type]
    fields = list(model.model_fields.keys())
    if not fields:
        return model()

    try:
        parsed = json.loads(raw) if raw else None
    except json.JSONDecodeError as exc:
        raise MalformedPayload(f"{entry_type.value}: cannot parse payload {raw!r}") from exc

    values = parsed if isinstance(parsed, list) else [parsed]
    if len(values) > len(fields):
        raise MalformedPayload(f"{entry_type.value}: too many values in payload {raw!r}")

    try:
        return model(**dict(zip(fields, values)))
    except ValidationError as exc:
        raise MalformedPayload(f"{entry_type.value}: invalid payload {raw!r}") from exc


# =====================================
# SCHEDULING
# =====================================
async def schedule(db: AsyncSession, on: date, entry_type: CalendarEntry,
                   payload: Optional[BaseModel] = None) -> Calendar:
    """
    Put an entry on the calendar. Scheduling the same (date, type, payload)
    twice returns the existing row; a cancelled one is re-armed, a fired one
    stays done.
    """
    raw = encode_payload(payload) if payload is not None else ""
    result = await db.execute(
        select(Calendar).where(Calendar.date == on, Calendar.type == entry_type, Calendar.payload == raw)
    )
    entry = result.scalars().first()
    if entry is not None:
        if entry.completed and entry.cancelled:
            entry.completed = False
            entry.cancelled = False
            db.add(entry)
        return entry

    entry = Calendar(date=on, type=entry_type, payload=raw)
    db.add(entry)
    await db.flush()
    return entry


async def cancel(db: AsyncSession, entry_types: Iterable[CalendarEntry], payload: BaseModel,
                 from_date: date) -> int:
    """Soft-delete pending entries of the given types from `from_date` on."""
    raw = encode_payload(payload)
    result = await db.execute(
        select(Calendar).where(
            Calendar.type.in_(list(entry_types)),
            Calendar.payload == raw,
            Calendar.date >= from_date,
            Calendar.completed == False,  # noqa: E712
        )
    )
    entries = result.scalars().all()
    for entry in entries:
        entry.completed = True
        entry.cancelled = True
        db.add(entry)
    return len(entries)


async def due_entries(db: AsyncSession, today: date) -> List[Calendar]:
    """Today's pending entries in creation order."""
    result = await db.execute(
        select(Calendar)
        .where(Calendar.date == today, Calendar.completed == False)  # noqa: E712
        .order_by(Calendar.id)
    )
    return result.scalars().all()


async def find_entry(db: AsyncSession, entry_types: Iterable[CalendarEntry], payload: BaseModel) -> Optional[Calendar]:
    result = await db.execute(
        select(Calendar)
        .where(Calendar.type.in_(list(entry_types)), Calendar.payload == encode_payload(payload))
        .order_by(Calendar.id)
    )
    return result.scalars().first()


async def set_matchday_owner(db: AsyncSession, team_id: int, from_date: date, user: bool) -> int:
    """
    Flip a team's upcoming matchdays between the user and NPC handlers.
    Returns how many entries changed.
    """
    result = await db.execute(
        select(Match.id)
        .join(MatchCompetitor, MatchCompetitor.match_id == Match.id)
        .where(MatchCompetitor.team_id == team_id, Match.date >= from_date)
    )
    payloads = [encode_payload(MatchRef(match_id=match_id)) for match_id in result.scalars().all()]
    if not payloads:
        return 0

    target = CalendarEntry.MATCHDAY_USER if user else CalendarEntry.MATCHDAY_NPC
    result = await db.execute(
        select(Calendar).where(
            Calendar.type.in_(MATCHDAY_TYPES),
            Calendar.payload.in_(payloads),
            Calendar.date >= from_date,
            Calendar.completed == False,  # noqa: E712
        )
    )
    changed = 0
    for entry in result.scalars().all():
        if entry.type != target:
            entry.type = target
            db.add(entry)
            changed += 1

    logger.debug("Moved %d matchdays of team %s to %s", changed, team_id, target.value)
    return changed


# =====================================
# HANDLER SIGNALS
# =====================================
class TickSignal(str, Enum):
    """What a calendar handler tells the day loop."""
    CONTINUE = "continue"   # entry done, keep going
    HALT = "halt"           # entry done, stop the loop for user input
    DEFER = "defer"         # entry not done, stop the loop and retry it next time
