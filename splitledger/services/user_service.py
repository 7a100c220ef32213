import logging
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.models.user import User
from splitledger.schemas.user import UserCreate, UserUpdate
from splitledger.core.security import hash_password, verify_password
from splitledger.core.jwt_config import create_access_token, create_refresh_token, decode_token
from splitledger.services.user_queries import get_user_by_email, get_user_by_id, find_active_conflict
from fastapi import HTTPException
from sqlalchemy.sql import func

logger = logging.getLogger(__name__)

async def authenticate_user(
    db: AsyncSession,
    email: str,
    password: str
):
    user = await get_user_by_email(db, email)
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user

async def create_user(db: AsyncSession, data: UserCreate):
    existing = await find_active_conflict(db, data.email, data.mobile_no)
    if existing:
        raise HTTPException(409, "User already exists with this email or mobile number")

    user = User(
        first_name = data.first_name,
        last_name = data.last_name,
        email = data.email.lower(),
        mobile_no = data.mobile_no,
        password_hash = hash_password(data.password)
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("user %s signed up", user.id)
    return user

async def edit_user(db: AsyncSession, data: UserUpdate, user_id: int):
    user = await get_user_by_id(db, user_id)

    if not user or not user.is_active:
        raise HTTPException(404, "User does not exist")

    changes = data.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(400, "Nothing to update")

    if data.email or data.mobile_no:
        conflict = await find_active_conflict(db, data.email, data.mobile_no, exclude_id=user_id)
        if conflict:
            raise HTTPException(409, "User already exists with this email or mobile number")

    if data.first_name:
        user.first_name = data.first_name

    if data.last_name:
        user.last_name = data.last_name

    if data.email:
        user.email = data.email.lower()

    if data.mobile_no:
        user.mobile_no = data.mobile_no

    if data.password:
        user.password_hash = hash_password(data.password)

    await db.commit()
    await db.refresh(user)

    logger.info("user %s updated %s", user_id, sorted(changes))
    return user

async def deactivate_user(db: AsyncSession, user_id: int):
    user = await get_user_by_id(db, user_id)

    if not user or not user.is_active:
        raise HTTPException(404, "User does not exist")

    user.is_active = False
    user.refresh_token = None
    await db.commit()

    logger.info("user %s deactivated", user_id)
    return {"status": "deactivated"}

async def login_user_service(
    db: AsyncSession,
    email: str,
    password: str
):
    user = await authenticate_user(db, email, password)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    access_token = create_access_token({"sub": str(user.id)})
    refresh_token = create_refresh_token({"sub": str(user.id)})

    user.refresh_token = refresh_token
    user.last_login_at = func.now()

    await db.commit()
    await db.refresh(user)

    logger.info("user %s logged in", user.id)
    return user, access_token, refresh_token

async def refresh_access_token(db: AsyncSession, refresh_token: str | None):
    if not refresh_token:
        raise HTTPException(401, "Missing refresh token")

    payload = decode_token(refresh_token, expected_type="refresh")
    user = await get_user_by_id(db, int(payload.get("sub", 0)))

    if not user or not user.is_active or user.refresh_token != refresh_token:
        raise HTTPException(401, "Refresh token revoked")

    return create_access_token({"sub": str(user.id)})

async def logout_user_service(db: AsyncSession, user_id: int):
    user = await get_user_by_id(db, user_id)
    if user:
        user.refresh_token = None
        await db.commit()

    return {"status": "logged out"}
