from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.core.dependencies import get_current_user
from splitledger.schemas.expense import ExpenseOut
from splitledger.schemas.settlements import SettleUpCreate
from splitledger.services.settlement_service import settle_up, get_settlement_history, undo_settlement

router = APIRouter()


@router.post("/{group_id}/settle-up", response_model=ExpenseOut, status_code=201)
async def add_settlement(
    group_id: int,
    data: SettleUpCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    return await settle_up(db, data, user.id, group_id)


@router.get("/{group_id}/history", response_model=list[ExpenseOut])
async def settlement_history(
    group_id: int,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    return await get_settlement_history(db, group_id, user.id)


@router.delete("/{settlement_id}")
async def undo(
    settlement_id: int,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    return await undo_settlement(db, settlement_id, user.id)
