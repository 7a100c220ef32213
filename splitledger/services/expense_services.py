import logging
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.orm import selectinload
from fastapi import HTTPException
from splitledger.core.dependencies import check_group_membership, fetch_group_member_ids, is_group_member
from splitledger.core.utils import qround, to_decimal
from splitledger.models.expense import Expense, EXPENSE
from splitledger.models.expense_split import ExpenseSplit
from splitledger.models.group import Group
from splitledger.schemas.expense import ExpenseCreate, ExpenseUpdate
from splitledger.schemas.ledger import BalanceReport, LedgerRecord, Payer, RecordType, Share
from splitledger.services.balance_services import InvalidRecordError, compute_balances

logger = logging.getLogger(__name__)

with_people = (
    selectinload(Expense.payer),
    selectinload(Expense.splits).selectinload(ExpenseSplit.user),
)


async def validate_shares(db: AsyncSession, group_id: int, payer_id: int, amount, shared_by):
    user_ids = [s.user_id for s in shared_by]

    if len(user_ids) != len(set(user_ids)):
        raise HTTPException(400, "Duplicate users found in splits")

    if any(to_decimal(s.amount) <= 0 for s in shared_by):
        raise HTTPException(400, "Split amounts must be positive")

    total_split = sum((to_decimal(s.amount) for s in shared_by), Decimal("0"))
    if total_split != to_decimal(amount):
        raise HTTPException(
            400,
            f"Split total ({total_split}) must equal expense amount ({amount})"
        )

    member_ids = await fetch_group_member_ids(db, group_id)

    if payer_id not in member_ids:
        raise HTTPException(400, "Payer is not a member of the group")

    if not set(user_ids) <= member_ids:
        raise HTTPException(
            400,
            "One or more users in splits are not members of the group"
        )


def serialize_expense(expense: Expense) -> dict:
    return {
        "id": expense.id,
        "group_id": expense.group_id,
        "expense_type": expense.expense_type,
        "amount": str(qround(to_decimal(expense.amount))),
        "description": expense.description,
        "split_type": expense.split_type,
        "expense_date": expense.expense_date,
        "paid_by": {
            "id": expense.payer.id,
            "first_name": expense.payer.first_name,
            "last_name": expense.payer.last_name,
        },
        "splits": [
            {
                "user_id": s.user_id,
                "first_name": s.user.first_name,
                "last_name": s.user.last_name,
                "amount": str(qround(to_decimal(s.amount))),
            }
            for s in sorted(expense.splits, key=lambda s: s.user_id)
        ],
    }


async def load_expense(db: AsyncSession, expense_id: int):
    # records of a deleted group are treated as deleted
    q = (
        select(Expense)
        .join(Group, Group.id == Expense.group_id)
        .where(
            Expense.id == expense_id,
            Expense.is_deleted == False,
            Group.is_deleted == False,
        )
        .options(*with_people)
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return res.scalar_one_or_none()


async def create_expense(db: AsyncSession, data: ExpenseCreate, user_id: int, group_id: int, expense_type: str = EXPENSE):
    await check_group_membership(db, group_id, user_id)

    payer_id = data.payer_id if data.payer_id is not None else user_id

    await validate_shares(db, group_id, payer_id, data.amount, data.shared_by)

    expense = Expense(
        group_id=group_id,
        paid_by=payer_id,
        created_by=user_id,
        amount=data.amount,
        description=getattr(data, "description", None),
        split_type=getattr(data, "split_type", None),
        expense_type=expense_type,
    )
    if data.expense_date is not None:
        expense.expense_date = data.expense_date

    db.add(expense)
    await db.flush()  # generates expense.id

    db.add_all([
        ExpenseSplit(expense_id=expense.id, user_id=s.user_id, amount=s.amount)
        for s in data.shared_by
    ])

    await db.commit()

    logger.info(
        "%s %s added to group %s by %s (payer %s, amount %s)",
        expense_type.lower(), expense.id, group_id, user_id, payer_id, data.amount,
    )
    return serialize_expense(await load_expense(db, expense.id))


async def delete_expense(db: AsyncSession, user_id: int, expense_id: int):
    expense = await load_expense(db, expense_id)

    # settlements are undone through the settlements route only
    if not expense or expense.expense_type != EXPENSE:
        raise HTTPException(404, "Expense not found")

    # Authorization: only payer or the member who logged it can delete
    if user_id not in (expense.paid_by, expense.created_by):
        raise HTTPException(403, "You cannot delete this expense")

    if not await is_group_member(db, expense.group_id, user_id):
        raise HTTPException(403, "You are not member of this group")

    expense.is_deleted = True
    await db.commit()

    logger.info("record %s deleted by %s", expense_id, user_id)
    return {"status": "deleted"}


async def edit_expense(db: AsyncSession, data: ExpenseUpdate, expense_id: int, user_id: int):
    expense = await load_expense(db, expense_id)

    if not expense or expense.expense_type != EXPENSE:
        raise HTTPException(404, "Expense doesn't exist")

    if user_id not in (expense.paid_by, expense.created_by):
        raise HTTPException(403, "You can't edit this expense")

    if not await is_group_member(db, expense.group_id, user_id):
        raise HTTPException(403, "You are not member of this group")

    changes = data.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(400, "Nothing to update")

    payer_id = data.payer_id if data.payer_id is not None else expense.paid_by
    amount = data.amount if data.amount is not None else to_decimal(expense.amount)
    shared_by = data.shared_by
    if shared_by is None:
        # re-check the stored splits against a new amount or payer
        shared_by = [s for s in expense.splits]

    await validate_shares(db, expense.group_id, payer_id, amount, shared_by)

    expense.paid_by = payer_id
    expense.amount = amount

    if data.description is not None:
        expense.description = data.description

    if data.split_type is not None:
        expense.split_type = data.split_type

    if data.expense_date is not None:
        expense.expense_date = data.expense_date

    if data.shared_by is not None:
        expense.splits = [
            ExpenseSplit(user_id=s.user_id, amount=s.amount)
            for s in data.shared_by
        ]

    await db.commit()

    logger.info("expense %s edited by %s: %s", expense_id, user_id, sorted(changes))
    return serialize_expense(await load_expense(db, expense_id))


async def get_expense_by_id(
    db: AsyncSession,
    expense_id: int,
    user_id: int
):
    expense = await load_expense(db, expense_id)

    if not expense:
        raise HTTPException(404, "Expense not found")

    if not await is_group_member(db, expense.group_id, user_id):
        raise HTTPException(403, "Unauthorized access")

    return serialize_expense(expense)


async def get_expenses_by_group(
    db: AsyncSession,
    group_id: int,
    user_id: int,
):
    await check_group_membership(db, group_id, user_id)

    q = (
        select(Expense)
        .where(
            Expense.group_id == group_id,
            Expense.is_deleted == False,
        )
        .options(*with_people)
        .order_by(
            Expense.expense_date.desc(),
            Expense.id.desc(),
        )
    )

    res = await db.execute(q)
    return [serialize_expense(e) for e in res.scalars().all()]


def to_ledger_record(expense: Expense) -> LedgerRecord:
    if expense.payer is None:
        raise InvalidRecordError(expense.id, "missing payer")

    return LedgerRecord(
        record_id=expense.id,
        record_type=RecordType(expense.expense_type),
        payer=Payer(
            id=expense.payer.id,
            first_name=expense.payer.first_name,
            last_name=expense.payer.last_name,
        ),
        total_amount=to_decimal(expense.amount),
        participants=[
            Share(
                participant_id=s.user_id,
                first_name=s.user.first_name,
                last_name=s.user.last_name,
                amount=to_decimal(s.amount),
            )
            for s in expense.splits
        ],
    )


async def get_ledger_records(db: AsyncSession, user_id: int):
    """
    Every live expense and settlement in which the user is payer or holds a share.
    Records of deleted groups are left out.
    """
    shared_in = select(ExpenseSplit.expense_id).where(ExpenseSplit.user_id == user_id)

    q = (
        select(Expense)
        .join(Group, Group.id == Expense.group_id)
        .where(
            or_(Expense.paid_by == user_id, Expense.id.in_(shared_in)),
            Expense.is_deleted == False,
            Group.is_deleted == False,
        )
        .options(*with_people)
        .order_by(Expense.id)
    )

    res = await db.execute(q)
    return [to_ledger_record(e) for e in res.scalars().all()]


async def get_dashboard(db: AsyncSession, user_id: int) -> BalanceReport:
    records = await get_ledger_records(db, user_id)
    return compute_balances(user_id, records)
