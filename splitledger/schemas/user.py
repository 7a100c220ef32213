import re
from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional

PASSWORD_RULES = [
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[0-9]"), "a digit"),
    (re.compile(r"[!@#$%^&*(),.?\":{}|<>]"), "a special character"),
]


def check_password(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters")
    for pattern, label in PASSWORD_RULES:
        if not pattern.search(value):
            raise ValueError(f"Password must contain {label}")
    return value


class UserBase(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    mobile_no: str = Field(pattern=r"^[0-9]{10}$")

class UserCreate(UserBase):
    password: str

    @field_validator("password")
    @classmethod
    def strong_password(cls, v):
        return check_password(v)

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    mobile_no: Optional[str] = Field(default=None, pattern=r"^[0-9]{10}$")
    password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def strong_password(cls, v):
        if v is None:
            return v
        return check_password(v)

class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None

class UserOut(UserBase):
    id: int
    created_at: Optional[datetime] = None
    is_active: bool

    class Config:
        from_attributes = True

class UserSummary(BaseModel):
    id: int
    first_name: str
    last_name: str

    class Config:
        from_attributes = True

class LoginOut(BaseModel):
    user: UserOut
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
