from pydantic import BaseModel, Field
from typing import List, Optional
from splitledger.schemas.user import UserSummary

class GroupCreate(BaseModel):
    name: str = Field(min_length=1)
    members: List[int] = Field(default_factory=list)

class GroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    members: Optional[List[int]] = None

class GroupOut(BaseModel):
    id: int
    name: str
    created_by: int

    class Config:
        from_attributes = True

class GroupWithMembersOut(GroupOut):
    members: List[UserSummary]

class GroupMemberOut(BaseModel):
    user_id: int
    group_id: int

    class Config:
        from_attributes = True
