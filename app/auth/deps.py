from typing import AsyncIterator, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from app.access.policy import Principal
from app.auth.jwt import subject_of
from app.auth.session import ACCESS_COOKIE
from app.core.db import bind_principal, get_session
from app.core.errors import Unauthenticated

bearer = HTTPBearer(auto_error=False)


def _credential(request: Request, creds: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if creds:
        return creds.credentials
    rotated = getattr(request.state, "access_token", None)
    if rotated:
        return rotated
    return request.cookies.get(ACCESS_COOKIE)


def resolve_principal(request: Request, creds: Optional[HTTPAuthorizationCredentials]) -> Optional[Principal]:
    uid = subject_of(_credential(request, creds), "access")
    return Principal(id=uid) if uid else None


def get_principal(request: Request, creds: HTTPAuthorizationCredentials = Depends(bearer)) -> Principal:
    principal = resolve_principal(request, creds)
    if principal is None:
        raise Unauthenticated()
    return principal


def get_principal_optional(request: Request, creds: HTTPAuthorizationCredentials = Depends(bearer)) -> Optional[Principal]:
    return resolve_principal(request, creds)


async def get_scoped_session(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
) -> AsyncIterator[AsyncSession]:
    await bind_principal(session, principal.id)
    yield session
