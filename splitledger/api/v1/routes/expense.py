from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseOut
from splitledger.schemas.ledger import BalanceReport
from splitledger.services.expense_services import (
    create_expense,
    delete_expense,
    edit_expense,
    get_dashboard,
    get_expense_by_id,
    get_expenses_by_group,
)
from splitledger.core.dependencies import get_current_user

router = APIRouter()

@router.get("/dashboard", response_model=BalanceReport)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await get_dashboard(db, current_user.id)

@router.post("/{group_id}/add", response_model=ExpenseOut, status_code=201)
async def add_expense(group_id: int, data: ExpenseCreate, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await create_expense(db, data, current_user.id, group_id)

@router.get("/{group_id}/all", response_model=list[ExpenseOut])
async def all_expenses(group_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await get_expenses_by_group(db, group_id, current_user.id)

@router.get("/{expense_id}", response_model=ExpenseOut)
async def fetch(
    expense_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user),
):
    return await get_expense_by_id(db, expense_id=expense_id, user_id=current_user.id)

@router.patch("/{expense_id}", response_model=ExpenseOut)
async def edit(expense_id: int, data: ExpenseUpdate, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await edit_expense(db, data, expense_id=expense_id, user_id=current_user.id)

@router.delete("/{expense_id}")
async def del_expense(expense_id: int, db: AsyncSession = Depends(get_db), current_user = Depends(get_current_user)):
    return await delete_expense(db, user_id=current_user.id, expense_id=expense_id)
