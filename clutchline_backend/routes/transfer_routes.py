# clutchline_backend/routes/transfer_routes.py
# The user player's transfer offers: list, accept, reject.

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from clutchline_backend.models.transfer_model import OfferRead, TransferRead
from clutchline_backend.routes.profile_routes import get_context
from clutchline_backend.services import career_service
from clutchline_backend.services.game_context import GameContext

router = APIRouter()


def to_read(transfer, offer) -> TransferRead:
    read = TransferRead.model_validate(transfer)
    read.offer = OfferRead.model_validate(offer) if offer else None
    return read


@router.get("", response_model=List[TransferRead])
async def list_transfers(ctx: GameContext = Depends(get_context)):
    return [to_read(transfer, offer) for transfer, offer in await career_service.user_transfers(ctx)]


@router.post("/{transfer_id}/accept", response_model=TransferRead)
async def accept_transfer(transfer_id: int, ctx: GameContext = Depends(get_context)):
    try:
        transfer = await career_service.accept_offer(ctx, transfer_id)
    except career_service.TransferNotFound:
        raise HTTPException(status_code=404, detail="Transfer not found")
    return to_read(transfer, await career_service.latest_offer(ctx.db, transfer.id))


@router.post("/{transfer_id}/reject", response_model=TransferRead)
async def reject_transfer(transfer_id: int, ctx: GameContext = Depends(get_context)):
    try:
        transfer = await career_service.reject_offer(ctx, transfer_id)
    except career_service.TransferNotFound:
        raise HTTPException(status_code=404, detail="Transfer not found")
    return to_read(transfer, await career_service.latest_offer(ctx.db, transfer.id))
