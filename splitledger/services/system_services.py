import logging
from splitledger.db.session import engine
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.models.user import User
from splitledger.models.group import Group
from splitledger.models.expense import Expense, EXPENSE, SETTLEMENT

logger = logging.getLogger(__name__)

async def check_db_service():
    try:
        async with engine.connect() as conn:
            await conn.exec_driver_sql("SELECT 1")
        return {"db": True, "message": "Database is connected"}
    except Exception as e:
        logger.warning("database health check failed: %s", e)
        return {"db": False, "error": str(e)}

async def system_health():
    return {
        "status": "ok"
    }

async def system_metrics(db: AsyncSession):
    users_q = select(func.count(User.id)).where(User.is_active == True)
    groups_q = select(func.count(Group.id)).where(Group.is_deleted == False)
    records_q = (
        select(Expense.expense_type, func.count(Expense.id))
        .join(Group, Group.id == Expense.group_id)
        .where(Expense.is_deleted == False, Group.is_deleted == False)
        .group_by(Expense.expense_type)
    )

    users_res = await db.execute(users_q)
    groups_res = await db.execute(groups_q)
    records_res = await db.execute(records_q)
    records = dict(records_res.all())

    return {
        "users": users_res.scalar(),
        "groups": groups_res.scalar(),
        "expenses": records.get(EXPENSE, 0),
        "settlements": records.get(SETTLEMENT, 0),
    }
