from typing import List, Optional
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.db.session import get_db
from splitledger.core.dependencies import get_current_user
from splitledger.core.jwt_config import ACCESS_COOKIE, REFRESH_COOKIE
from splitledger.schemas.user import UserCreate, UserLogin, UserUpdate, UserOut, LoginOut, RefreshRequest
from splitledger.services.user_queries import search_users
from splitledger.services.user_service import (
    create_user,
    edit_user,
    deactivate_user,
    login_user_service,
    refresh_access_token,
    logout_user_service,
)

router = APIRouter()


def _set_auth_cookies(response: Response, access_token: str, refresh_token: Optional[str] = None):
    response.set_cookie(ACCESS_COOKIE, access_token, httponly=True, samesite="lax")
    if refresh_token:
        response.set_cookie(REFRESH_COOKIE, refresh_token, httponly=True, samesite="lax")


@router.post("/signup", response_model=UserOut, status_code=201)
async def signup(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await create_user(db, data)


@router.post("/login", response_model=LoginOut)
async def login(data: UserLogin, response: Response, db: AsyncSession = Depends(get_db)):
    user, access_token, refresh_token = await login_user_service(db, data.email, data.password)
    _set_auth_cookies(response, access_token, refresh_token)
    return LoginOut(user=UserOut.model_validate(user), access_token=access_token, refresh_token=refresh_token)


@router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    data: Optional[RefreshRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    token = (data.refresh_token if data else None) or request.cookies.get(REFRESH_COOKIE)
    access_token = await refresh_access_token(db, token)
    _set_auth_cookies(response, access_token)
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/logout")
async def logout(
    response: Response,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return await logout_user_service(db, user.id)


@router.get("/me", response_model=UserOut)
async def get_me(user = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=UserOut)
async def update_me(
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    return await edit_user(db, data, user.id)


@router.delete("/me")
async def delete_me(
    response: Response,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return await deactivate_user(db, user.id)


@router.get("/", response_model=List[UserOut])
async def users_list(
    first_name: Optional[str] = None,
    email: Optional[str] = None,
    mobile_no: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    user = Depends(get_current_user),
):
    return await search_users(db, first_name=first_name, email=email, mobile_no=mobile_no)
