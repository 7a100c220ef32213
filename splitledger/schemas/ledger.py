from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RecordType(str, Enum):
    EXPENSE = "EXPENSE"
    SETTLEMENT = "SETTLEMENT"


class Payer(BaseModel):
    id: int
    first_name: str
    last_name: str

    model_config = ConfigDict(frozen=True)


class Share(BaseModel):
    participant_id: int
    first_name: str
    last_name: str
    amount: Decimal

    model_config = ConfigDict(frozen=True)


class LedgerRecord(BaseModel):
    """
    One expense or settlement as seen by the balance aggregator.

    Built from the persistence rows at the ingestion boundary, so amounts are
    not range-checked here; the aggregator rejects negative shares itself.
    """
    record_id: int
    record_type: RecordType
    payer: Optional[Payer]
    total_amount: Decimal
    participants: List[Share] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class CounterpartyBalance(BaseModel):
    first_name: str
    last_name: str
    balance: Decimal


class BalanceReport(BaseModel):
    total_balance: Decimal = Decimal("0.00")
    total_you_owe: Decimal = Decimal("0.00")
    total_due_to_you: Decimal = Decimal("0.00")
    per_counterparty: Dict[int, CounterpartyBalance] = Field(default_factory=dict)
