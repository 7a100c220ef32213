import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fastapi import HTTPException
from splitledger.core.dependencies import check_group_membership, is_group_member
from splitledger.models.expense import Expense, SETTLEMENT
from splitledger.schemas.settlements import SettleUpCreate
from splitledger.services.expense_services import create_expense, load_expense, serialize_expense, with_people

logger = logging.getLogger(__name__)


async def settle_up(db: AsyncSession, data: SettleUpCreate, user_id: int, group_id: int):
    payer_id = data.payer_id if data.payer_id is not None else user_id
    recipient = data.shared_by[0]

    if recipient.user_id == payer_id:
        raise HTTPException(400, "You cannot settle up with yourself")

    return await create_expense(db, data, user_id, group_id, expense_type=SETTLEMENT)


async def get_settlement_history(db: AsyncSession, group_id: int, user_id: int):
    await check_group_membership(db, group_id, user_id)

    q = (
        select(Expense)
        .where(
            Expense.group_id == group_id,
            Expense.expense_type == SETTLEMENT,
            Expense.is_deleted == False,
        )
        .options(*with_people)
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
    )

    result = await db.execute(q)
    return [serialize_expense(s) for s in result.scalars().all()]


async def undo_settlement(db: AsyncSession, settlement_id: int, user_id: int):
    settlement = await load_expense(db, settlement_id)

    if not settlement or settlement.expense_type != SETTLEMENT:
        raise HTTPException(404, "Settlement entry not found")

    # Only the user who made the payment can undo it
    if settlement.paid_by != user_id:
        raise HTTPException(403, "You are not allowed to undo this settlement")

    if not await is_group_member(db, settlement.group_id, user_id):
        raise HTTPException(403, "You are not a member of this group")

    settlement.is_deleted = True
    await db.commit()

    logger.info("settlement %s undone by %s", settlement_id, user_id)
    return {"status": "undo successful"}
