import logging
import re
from fastapi import Request, Response
from app.auth.jwt import ACCESS_TTL, REFRESH_TTL, mint_access, mint_refresh, seconds_left, subject_of
from app.core.config import settings

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"

logger = logging.getLogger("uvicorn.error")

_ASSET_RE = re.compile(r".*\.(?:svg|png|jpg|jpeg|gif|webp|ico|css|js|map)$")


def _skip_refresh(path: str) -> bool:
    if _ASSET_RE.match(path):
        return True
    prefix = settings.API_PREFIX
    for excluded in ("/auth", "/monitoring"):
        if path.startswith(f"{prefix}{excluded}") or path.startswith(excluded):
            return True
    return False


def set_session_cookies(response: Response, access: str, refresh: str) -> None:
    common = {"httponly": True, "secure": settings.SESSION_COOKIE_SECURE, "samesite": "lax", "path": "/"}
    response.set_cookie(ACCESS_COOKIE, access, max_age=ACCESS_TTL, **common)
    response.set_cookie(REFRESH_COOKIE, refresh, max_age=REFRESH_TTL, **common)


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, path="/")
    response.delete_cookie(REFRESH_COOKIE, path="/")


async def refresh_session(request: Request, call_next):
    """Rotate the cookie session when the access token is gone or about to expire.

    The rotated access token is handed to the resolver through
    ``request.state.access_token`` so this request already runs with it.
    """
    if _skip_refresh(request.url.path) or request.headers.get("authorization"):
        return await call_next(request)
    access = request.cookies.get(ACCESS_COOKIE)
    if access and seconds_left(access) > settings.SESSION_REFRESH_WINDOW_S:
        return await call_next(request)
    uid = subject_of(request.cookies.get(REFRESH_COOKIE), "refresh")
    if uid is None:
        return await call_next(request)
    new_access, new_refresh = mint_access(uid), mint_refresh(uid)
    request.state.access_token = new_access
    response = await call_next(request)
    set_session_cookies(response, new_access, new_refresh)
    logger.info("session rotated user=%s path=%s", uid, request.url.path)
    return response
