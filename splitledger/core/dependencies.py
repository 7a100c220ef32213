from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from splitledger.db.session import get_db
from splitledger.core.jwt_config import decode_token, get_request_token
from splitledger.services.user_queries import get_user_by_id
from splitledger.models.group import Group
from splitledger.models.group_member import GroupMember

async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)):
    token = get_request_token(request=request)
    payload = decode_token(token)
    user_id = payload.get("sub")

    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    try:
        user = await get_user_by_id(db, int(user_id))
    except ValueError:
        raise HTTPException(status_code=401, detail="Could not validate credentials")

    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")

    return user

async def get_active_group(db: AsyncSession, group_id: int):
    q_group = select(Group).where(Group.id == group_id, Group.is_deleted == False)
    res_group = await db.execute(q_group)
    group = res_group.scalar_one_or_none()

    if not group:
        raise HTTPException(404, "Group does not exist")

    return group

async def is_group_member(db: AsyncSession, group_id: int, user_id: int) -> bool:
    q_member = select(GroupMember.id).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id
    )
    res = await db.execute(q_member)
    return res.scalar_one_or_none() is not None

async def check_group_membership(db: AsyncSession, group_id: int, user_id: int):
    group = await get_active_group(db, group_id)

    if not await is_group_member(db, group_id, user_id):
        raise HTTPException(403, "You are not a member of this group")

    return group

async def fetch_group_member_ids(db: AsyncSession, group_id: int) -> set:
    q = select(GroupMember.user_id).where(GroupMember.group_id == group_id)
    res = await db.execute(q)
    return set(res.scalars().all())
