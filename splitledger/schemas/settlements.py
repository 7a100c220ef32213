from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from splitledger.schemas.expense import Money, ShareInput

class SettleUpCreate(BaseModel):
    payer_id: Optional[int] = None
    amount: Money
    shared_by: List[ShareInput] = Field(min_length=1, max_length=1)
    expense_date: Optional[datetime] = None
