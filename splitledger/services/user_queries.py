from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from splitledger.models.user import User

async def get_user_by_id(db: AsyncSession, user_id: int):
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()

async def get_user_by_email(db: AsyncSession, email: str):
    res = await db.execute(
        select(User).where(User.email == email.lower(), User.is_active == True)
    )
    return res.scalar_one_or_none()

async def find_active_conflict(db: AsyncSession, email: str | None, mobile_no: str | None, exclude_id: int | None = None):
    conditions = []
    if email:
        conditions.append(User.email == email.lower())
    if mobile_no:
        conditions.append(User.mobile_no == mobile_no)

    if not conditions:
        return None

    q = select(User).where(or_(*conditions), User.is_active == True)
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)

    res = await db.execute(q)
    return res.scalars().first()

async def get_active_users_by_ids(db: AsyncSession, user_ids):
    res = await db.execute(
        select(User).where(User.id.in_(list(user_ids)), User.is_active == True)
    )
    return res.scalars().all()

async def search_users(db: AsyncSession, first_name: str | None = None, email: str | None = None, mobile_no: str | None = None):
    q = select(User).where(User.is_active == True)

    if first_name:
        q = q.where(User.first_name.ilike(f"%{first_name}%"))
    if email:
        q = q.where(User.email.ilike(f"%{email}%"))
    if mobile_no:
        q = q.where(User.mobile_no.ilike(f"%{mobile_no}%"))

    res = await db.execute(q.order_by(User.first_name, User.id))
    return res.scalars().all()
