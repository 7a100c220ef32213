"""
Per-user balance aggregation over ledger records.

compute_balances() is pure: it never touches the database, never logs and
keeps no state between calls. Callers fetch every record in which the user
is payer or participant and hand the snapshot in.

Sign convention, for both the total and each counterparty:
    positive -> others owe the user
    negative -> the user owes others
"""
from decimal import Decimal
from typing import Dict, Iterable, Tuple

from splitledger.core.utils import qround, ZERO
from splitledger.schemas.ledger import (
    BalanceReport,
    CounterpartyBalance,
    LedgerRecord,
    RecordType,
)


class InvalidRecordError(Exception):
    """A ledger record violates the data invariants (no payer, no shares, negative share)."""

    def __init__(self, record_id, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"record {record_id}: {reason}")


def _money(amount: Decimal) -> Decimal:
    # + ZERO turns -0.00 into 0.00
    return qround(amount) + ZERO


def _validate(record: LedgerRecord):
    if record.payer is None:
        raise InvalidRecordError(record.record_id, "missing payer")

    if not record.participants:
        raise InvalidRecordError(record.record_id, "missing participants")

    for share in record.participants:
        if share.amount < 0:
            raise InvalidRecordError(
                record.record_id,
                f"negative share {share.amount} for participant {share.participant_id}",
            )


def compute_balances(user_id: int, records: Iterable[LedgerRecord]) -> BalanceReport:
    total = ZERO
    balances: Dict[int, Decimal] = {}
    names: Dict[int, Tuple[str, str]] = {}

    def attribute(counterparty_id: int, first_name: str, last_name: str, amount: Decimal):
        names.setdefault(counterparty_id, (first_name, last_name))
        balances[counterparty_id] = balances.get(counterparty_id, ZERO) + amount

    for record in records:
        _validate(record)
        payer = record.payer

        if record.record_type == RecordType.EXPENSE:
            if payer.id == user_id:
                # payer's own share is neither owed to them nor a counterparty
                for share in record.participants:
                    if share.participant_id == user_id:
                        continue
                    total += share.amount
                    attribute(share.participant_id, share.first_name, share.last_name, share.amount)
            else:
                for share in record.participants:
                    if share.participant_id == user_id:
                        total -= share.amount
                        attribute(payer.id, payer.first_name, payer.last_name, -share.amount)

        elif record.record_type == RecordType.SETTLEMENT:
            for share in record.participants:
                # paying yourself moves nothing
                if share.participant_id == payer.id:
                    continue
                if payer.id == user_id:
                    total += share.amount
                    attribute(share.participant_id, share.first_name, share.last_name, share.amount)
                elif share.participant_id == user_id:
                    total -= share.amount
                    attribute(payer.id, payer.first_name, payer.last_name, -share.amount)

    per_counterparty: Dict[int, CounterpartyBalance] = {}
    you_owe = ZERO
    due_to_you = ZERO

    for counterparty_id, amount in balances.items():
        balance = _money(amount)
        first_name, last_name = names[counterparty_id]
        per_counterparty[counterparty_id] = CounterpartyBalance(
            first_name=first_name,
            last_name=last_name,
            balance=balance,
        )
        if balance < 0:
            you_owe -= balance
        else:
            due_to_you += balance

    return BalanceReport(
        total_balance=_money(total),
        total_you_owe=_money(you_owe),
        total_due_to_you=_money(due_to_you),
        per_counterparty=per_counterparty,
    )
