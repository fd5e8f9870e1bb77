# clutchline_backend/models/calendar_model.py
# The persistent calendar driving the whole simulation.

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class CalendarEntry(str, Enum):
    """Stored in the database; values must never change."""
    COMPETITION_END = "competition_end"
    COMPETITION_START = "competition_start"
    EMAIL_SEND = "email_send"
    MATCHDAY_NPC = "matchday_npc"
    MATCHDAY_USER = "matchday_user"
    SEASON_START = "season_start"
    SPONSORSHIP_PARSE = "sponsorship_parse"
    SPONSORSHIP_PAYMENT = "sponsorship_payment"
    TRANSFER_PARSE = "transfer_parse"
    TRANSFER_OFFER_EXPIRY_CHECK = "transfer_offer_expiry_check"
    TRANSFER_OFFER_REMINDER = "transfer_offer_reminder"
    PLAYER_SCOUTING_CHECK = "player_scouting_check"
    PLAYER_CONTRACT_EXPIRE = "player_contract_expire"
    PLAYER_CONTRACT_REVIEW = "player_contract_review"
    PLAYER_CONTRACT_EXTENSION_EVAL = "player_contract_extension_eval"


class Calendar(SQLModel, table=True):
    """
    A scheduled event. `completed` doubles as the soft-delete flag: completed
    entries are never picked up again by the day loop. `cancelled` marks the
    ones that were withdrawn rather than fired.
    """
    __table_args__ = (UniqueConstraint("date", "type", "payload", name="uq_calendar_date_type_payload"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    date: datetime.date = Field(index=True)
    type: CalendarEntry
    payload: str = Field(default="")
    completed: bool = Field(default=False, index=True)
    cancelled: bool = Field(default=False)


class CalendarRead(BaseModel):
    id: int
    date: datetime.date
    type: CalendarEntry
    payload: str
    completed: bool

    class Config:
        from_attributes = True
