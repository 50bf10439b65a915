import logging
from typing import Optional
from uuid import UUID, uuid4
from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.access.policy import Principal
from app.auth.deps import get_principal
from app.auth.jwt import mint_access, mint_refresh, subject_of
from app.auth.passwords import hash_pw, needs_rehash, verify_pw
from app.auth.session import REFRESH_COOKIE, clear_session_cookies, set_session_cookies
from app.core.db import get_session
from app.core.errors import NotFoundOrForbidden, Unauthenticated, ValidationFailed
from app.core.profile_cache import ProfileCache, UserProfile, profile_from_user
from app.models.models import User

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("uvicorn.error")


class SignupIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: Optional[str] = None


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class RefreshIn(BaseModel):
    refresh: Optional[str] = None


class TokenOut(BaseModel):
    access: str
    refresh: str


class ProfileOut(BaseModel):
    id: str
    name: str
    email: str
    avatar: Optional[str] = None


def _issue(response: Response, user_id: str) -> TokenOut:
    tokens = TokenOut(access=mint_access(user_id), refresh=mint_refresh(user_id))
    set_session_cookies(response, tokens.access, tokens.refresh)
    return tokens


def _profiles(request: Request) -> ProfileCache:
    return request.app.state.profiles


@router.post("/signup", response_model=TokenOut, status_code=201)
async def signup(body: SignupIn, response: Response, session: AsyncSession = Depends(get_session)):
    email = body.email.lower()
    existing = await session.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise ValidationFailed("Email already registered", code="email_exists")
    user = User(id=uuid4(), email=email, name=(body.name or "").strip() or None, password_hash=hash_pw(body.password))
    session.add(user)
    await session.commit()
    logger.info("auth: signup user=%s", user.id)
    return _issue(response, str(user.id))


@router.post("/login", response_model=TokenOut)
async def login(body: LoginIn, response: Response, session: AsyncSession = Depends(get_session)):
    res = await session.execute(select(User).where(User.email == body.email.lower()))
    user = res.scalar_one_or_none()
    if not user or not user.password_hash or not verify_pw(user.password_hash, body.password):
        raise Unauthenticated("Invalid email or password", code="invalid_credentials")
    if needs_rehash(user.password_hash):
        user.password_hash = hash_pw(body.password)
        await session.commit()
    return _issue(response, str(user.id))


@router.post("/refresh", response_model=TokenOut)
async def refresh_token(request: Request, response: Response, body: Optional[RefreshIn] = None):
    token = (body.refresh if body else None) or request.cookies.get(REFRESH_COOKIE)
    uid = subject_of(token, "refresh")
    if uid is None:
        raise Unauthenticated("Invalid refresh token", code="invalid_refresh")
    return _issue(response, uid)


@router.post("/logout")
async def logout(request: Request, response: Response, principal: Principal = Depends(get_principal)):
    _profiles(request).invalidate(principal.id)
    clear_session_cookies(response)
    return {"success": True}


@router.get("/me", response_model=ProfileOut)
async def me(
    request: Request,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    async def load() -> Optional[UserProfile]:
        try:
            uid = UUID(principal.id)
        except ValueError:
            return None
        user = await session.get(User, uid)
        if user is None:
            return None
        return profile_from_user(user.email, user.name, user.avatar_url)

    profile = await _profiles(request).get(principal.id, load)
    if profile is None:
        raise NotFoundOrForbidden("User not found")
    return ProfileOut(id=principal.id, name=profile.name, email=profile.email, avatar=profile.avatar)
