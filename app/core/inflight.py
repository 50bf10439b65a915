import asyncio
from typing import Any, Awaitable, Callable, Dict


class InflightRequests:
    """Share one running coroutine between concurrent callers with the same key.

    The entry is removed as soon as the work settles, success or failure, so
    nothing is retained: the next caller for that key starts fresh work. There
    is no capacity bound and no way to evict a running entry.
    """

    def __init__(self):
        self._running: Dict[str, asyncio.Future] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._running

    def __len__(self) -> int:
        return len(self._running)

    async def run(self, key: str, work: Callable[[], Awaitable[Any]]) -> Any:
        fut = self._running.get(key)
        if fut is None:
            # lookup and insert happen without yielding to the loop
            fut = asyncio.ensure_future(work())
            self._running[key] = fut
            fut.add_done_callback(lambda _f, k=key: self._settle(k, _f))
        return await asyncio.shield(fut)

    def _settle(self, key: str, fut: asyncio.Future) -> None:
        if self._running.get(key) is fut:
            del self._running[key]
        if not fut.cancelled():
            # consume the exception so an unawaited failure is not reported twice
            fut.exception()
