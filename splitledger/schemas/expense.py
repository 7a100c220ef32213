from pydantic import BaseModel, Field, condecimal
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from splitledger.schemas.user import UserSummary

Money = condecimal(gt=0, max_digits=10, decimal_places=2)

class ShareInput(BaseModel):
    user_id: int
    amount: Money

class ExpenseCreate(BaseModel):
    payer_id: Optional[int] = None
    amount: Money
    description: str = Field(min_length=1)
    split_type: Literal["equally", "unequally"]
    shared_by: List[ShareInput] = Field(min_length=1)
    expense_date: Optional[datetime] = None

class ExpenseUpdate(BaseModel):
    payer_id: Optional[int] = None
    amount: Optional[Money] = None
    description: Optional[str] = Field(default=None, min_length=1)
    split_type: Optional[Literal["equally", "unequally"]] = None
    shared_by: Optional[List[ShareInput]] = Field(default=None, min_length=1)
    expense_date: Optional[datetime] = None

class ShareOut(BaseModel):
    user_id: int
    first_name: str
    last_name: str
    amount: Decimal

class ExpenseOut(BaseModel):
    id: int
    group_id: int
    expense_type: str
    amount: Decimal
    description: Optional[str] = None
    split_type: Optional[str] = None
    expense_date: Optional[datetime] = None
    paid_by: UserSummary
    splits: List[ShareOut]
