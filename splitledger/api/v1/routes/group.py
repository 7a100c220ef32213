from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.services.group_services import create_group, update_group, delete_group, add_member, list_group_for_user
from splitledger.schemas.group import GroupCreate, GroupUpdate, GroupMemberOut, GroupOut, GroupWithMembersOut
from splitledger.core.dependencies import get_current_user

router = APIRouter()

@router.post("/", response_model=GroupOut, status_code=201)
async def create_new_group(
    data: GroupCreate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user)
):
    return await create_group(db, data.name, user.id, data.members)

@router.get("/my-groups", response_model=list[GroupWithMembersOut])
async def my_groups(db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await list_group_for_user(db, user.id)

@router.patch("/{group_id}", response_model=GroupOut)
async def edit_group(group_id: int, data: GroupUpdate, db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await update_group(db, group_id, user.id, data)

@router.delete("/{group_id}")
async def remove_group(group_id: int, db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await delete_group(db, group_id, user.id)

@router.post("/{group_id}/add/{user_id}", response_model=GroupMemberOut)
async def add_user_to_group(group_id: int, user_id: int, db: AsyncSession = Depends(get_db), user = Depends(get_current_user)):
    return await add_member(db, group_id, user_id, user.id)
