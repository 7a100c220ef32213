from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func, false
from splitledger.db.session import Base

# expense_type values mirror splitledger.schemas.ledger.RecordType
EXPENSE = "EXPENSE"
SETTLEMENT = "SETTLEMENT"

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    paid_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(String, nullable=True)
    split_type = Column(String, nullable=True)
    expense_type = Column(String, nullable=False, server_default=EXPENSE)
    expense_date = Column(DateTime(timezone=True), server_default=func.now())

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    is_deleted = Column(Boolean, nullable=False, server_default=false())

    payer = relationship("User", foreign_keys=[paid_by])
    splits = relationship(
        "ExpenseSplit",
        back_populates="expense",
        cascade="all, delete-orphan"
    )
