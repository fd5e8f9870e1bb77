# clutchline_backend/models/transfer_model.py
# Transfer negotiations and the offers exchanged inside them.

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


class TransferStatus(str, Enum):
    TEAM_PENDING = "team_pending"        # waiting on the selling team
    TEAM_ACCEPTED = "team_accepted"
    TEAM_REJECTED = "team_rejected"
    PLAYER_PENDING = "player_pending"    # waiting on the player
    PLAYER_ACCEPTED = "player_accepted"
    PLAYER_REJECTED = "player_rejected"
    EXPIRED = "expired"


# Allowed forward moves. Anything missing here is terminal.
TRANSFER_TRANSITIONS = {
    TransferStatus.TEAM_PENDING: {
        TransferStatus.TEAM_ACCEPTED,
        TransferStatus.TEAM_REJECTED,
        TransferStatus.PLAYER_PENDING,
        TransferStatus.EXPIRED,
    },
    TransferStatus.TEAM_ACCEPTED: {
        TransferStatus.PLAYER_PENDING,
        TransferStatus.PLAYER_ACCEPTED,
        TransferStatus.PLAYER_REJECTED,
        TransferStatus.EXPIRED,
    },
    TransferStatus.PLAYER_PENDING: {
        TransferStatus.PLAYER_ACCEPTED,
        TransferStatus.PLAYER_REJECTED,
        TransferStatus.EXPIRED,
    },
}

PENDING_TRANSFER_STATUSES = [
    TransferStatus.TEAM_PENDING,
    TransferStatus.TEAM_ACCEPTED,
    TransferStatus.PLAYER_PENDING,
]


def can_transition(current: TransferStatus, new: TransferStatus) -> bool:
    return new in TRANSFER_TRANSITIONS.get(current, set())


class Transfer(SQLModel, table=True):
    """
    from_team_id: the team making the offer
    to_team_id:   the team currently holding the player (null for free agents)
    When both are the same team the transfer is a contract extension.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    status: TransferStatus = Field(default=TransferStatus.TEAM_PENDING, index=True)
    player_id: int = Field(foreign_key="player.id", index=True)
    from_team_id: int = Field(foreign_key="team.id")
    to_team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    created_at: datetime.date


class Offer(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    transfer_id: int = Field(foreign_key="transfer.id", index=True)
    status: TransferStatus = Field(default=TransferStatus.TEAM_PENDING)
    cost: int = Field(default=0)
    wages: int = Field(default=0)
    contract_years: int = Field(default=1)
    expires_at: Optional[datetime.date] = None
    created_at: datetime.date


class OfferRead(BaseModel):
    id: int
    status: TransferStatus
    cost: int
    wages: int
    contract_years: int
    expires_at: Optional[datetime.date]

    class Config:
        from_attributes = True


class TransferRead(BaseModel):
    id: int
    status: TransferStatus
    player_id: int
    from_team_id: int
    to_team_id: Optional[int]
    created_at: datetime.date
    offer: Optional[OfferRead] = None

    class Config:
        from_attributes = True
