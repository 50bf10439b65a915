import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Tuple


@dataclass
class UserProfile:
    name: str
    email: str
    avatar: Optional[str] = None


def profile_from_user(email: Optional[str], name: Optional[str], avatar_url: Optional[str]) -> UserProfile:
    email = email or ""
    display = name or (email.split("@")[0] if email else "") or "User"
    return UserProfile(name=display, email=email, avatar=avatar_url or None)


class ProfileCache:
    """TTL memo of user profiles, one per process.

    Created in the app lifespan and reached through ``app.state``; entries for
    a principal are dropped on logout.
    """

    def __init__(self, ttl_s: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_s = ttl_s
        self.clock = clock
        self._entries: Dict[str, Tuple[Optional[UserProfile], float]] = {}

    def peek(self, key: str) -> Optional[UserProfile]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        profile, expiry = entry
        if expiry <= self.clock():
            del self._entries[key]
            return None
        return profile

    def put(self, key: str, profile: Optional[UserProfile]) -> None:
        self._entries[key] = (profile, self.clock() + self.ttl_s)

    async def get(
        self,
        key: str,
        loader: Callable[[], Awaitable[Optional[UserProfile]]],
        force_refresh: bool = False,
    ) -> Optional[UserProfile]:
        if not force_refresh:
            cached = self.peek(key)
            if cached is not None:
                return cached
        profile = await loader()
        self.put(key, profile)
        return profile

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
