import os
import time
import jwt
from typing import Any, Dict, Optional

ALG = os.getenv("JWT_ALG", "HS256")
SECRET = os.environ.get("JWT_SECRET", "change_me")
ACCESS_TTL = int(os.getenv("JWT_ACCESS_TTL_SECONDS", "3600"))
REFRESH_TTL = int(os.getenv("JWT_REFRESH_TTL_SECONDS", "2592000"))


def _mint(user_id: str, typ: str, ttl: int, now: Optional[int] = None) -> str:
    now = int(time.time()) if now is None else now
    return jwt.encode({"sub": user_id, "iat": now, "exp": now + ttl, "typ": typ}, SECRET, algorithm=ALG)


def mint_access(user_id: str, ttl: Optional[int] = None) -> str:
    return _mint(user_id, "access", ACCESS_TTL if ttl is None else ttl)


def mint_refresh(user_id: str) -> str:
    return _mint(user_id, "refresh", REFRESH_TTL)


def decode_token(tok: str) -> Dict[str, Any]:
    return jwt.decode(tok, SECRET, algorithms=[ALG])


def subject_of(tok: Optional[str], typ: str) -> Optional[str]:
    """Return the ``sub`` of a valid token of the given type, else None."""
    if not tok:
        return None
    try:
        data = decode_token(tok)
    except jwt.PyJWTError:
        return None
    if data.get("typ") != typ or not data.get("sub"):
        return None
    return str(data["sub"])


def seconds_left(tok: Optional[str]) -> int:
    if not tok:
        return 0
    try:
        data = decode_token(tok)
    except jwt.PyJWTError:
        return 0
    return int(data.get("exp", 0)) - int(time.time())
