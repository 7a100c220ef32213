import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload
from fastapi import HTTPException
from splitledger.models.group import Group
from splitledger.models.group_member import GroupMember
from splitledger.core.dependencies import check_group_membership, get_active_group, is_group_member
from splitledger.services.user_queries import get_active_users_by_ids

logger = logging.getLogger(__name__)

MIN_GROUP_MEMBERS = 2


async def _resolve_members(db: AsyncSession, member_ids, creator_id: int):
    ids = set(member_ids) | {creator_id}

    if len(ids) < MIN_GROUP_MEMBERS:
        raise HTTPException(400, f"A group needs at least {MIN_GROUP_MEMBERS} members")

    users = await get_active_users_by_ids(db, ids)
    found = {u.id for u in users}
    missing = ids - found
    if missing:
        raise HTTPException(400, f"Unknown users: {sorted(missing)}")

    return sorted(ids)


async def create_group(db: AsyncSession, name: str, creator_id: int, member_ids=()):
    ids = await _resolve_members(db, member_ids, creator_id)

    group = Group(name=name, created_by=creator_id)
    db.add(group)
    await db.flush()

    db.add_all([GroupMember(group_id=group.id, user_id=uid) for uid in ids])

    await db.commit()
    await db.refresh(group)

    logger.info("group %s created by %s with members %s", group.id, creator_id, ids)
    return group

async def update_group(db: AsyncSession, group_id: int, user_id: int, data):
    if data.name is None and data.members is None:
        raise HTTPException(400, "Nothing to update")

    group = await check_group_membership(db, group_id, user_id)

    if data.name is not None:
        group.name = data.name

    if data.members is not None:
        # creator is always kept on the roster
        ids = await _resolve_members(db, data.members, group.created_by)
        await db.execute(delete(GroupMember).where(GroupMember.group_id == group_id))
        db.add_all([GroupMember(group_id=group_id, user_id=uid) for uid in ids])

    await db.commit()
    await db.refresh(group)

    logger.info("group %s updated by %s", group_id, user_id)
    return group

async def delete_group(db: AsyncSession, group_id: int, user_id: int):
    group = await get_active_group(db, group_id)

    if group.created_by != user_id:
        raise HTTPException(403, "Only the group creator can delete this group")

    group.is_deleted = True
    await db.commit()

    logger.info("group %s deleted by %s", group_id, user_id)
    return {"status": "deleted"}

async def add_member(db: AsyncSession, group_id: int, user_id: int, requested_by: int):
    await check_group_membership(db, group_id, requested_by)

    users = await get_active_users_by_ids(db, [user_id])
    if not users:
        raise HTTPException(404, "User does not exist")

    if await is_group_member(db, group_id, user_id):
        raise HTTPException(409, "User is already a member of this group")

    member = GroupMember(group_id=group_id, user_id=user_id)
    db.add(member)
    await db.commit()
    await db.refresh(member)

    logger.info("user %s added to group %s by %s", user_id, group_id, requested_by)
    return member

async def list_group_for_user(db: AsyncSession, user_id: int):
    q = (
        select(Group)
        .join(GroupMember)
        .where(GroupMember.user_id == user_id, Group.is_deleted == False)
        .options(selectinload(Group.members).selectinload(GroupMember.user))
        .order_by(Group.name, Group.id)
    )
    result = await db.execute(q)
    groups = result.scalars().unique().all()

    return [
        {
            "id": g.id,
            "name": g.name,
            "created_by": g.created_by,
            "members": [
                {"id": m.user.id, "first_name": m.user.first_name, "last_name": m.user.last_name}
                for m in sorted(g.members, key=lambda m: m.user_id)
            ],
        }
        for g in groups
    ]
