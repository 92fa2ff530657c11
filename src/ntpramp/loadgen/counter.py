from __future__ import annotations

import asyncio


class Counter:
    """Attempted/failed tally for one burst.

    Writers go through ``increment`` under the lock; ``snapshot`` is only
    meaningful once every writer has finished.
    """

    __slots__ = ("_attempted", "_failed", "_lock")

    def __init__(self) -> None:
        self._attempted = 0
        self._failed = 0
        self._lock = asyncio.Lock()

    async def increment(self, success: bool) -> None:
        async with self._lock:
            self._attempted += 1
            if not success:
                self._failed += 1

    def snapshot(self) -> tuple[int, int]:
        return self._attempted, self._failed
