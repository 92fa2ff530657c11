from __future__ import annotations

import asyncio
import logging

LOGGER = logging.getLogger("ntpramp.loadgen.pacer")


def remaining_budget(window_sec: float, elapsed_sec: float) -> float:
    return max(0.0, window_sec - elapsed_sec)


async def wait_remaining(
    window_sec: float,
    elapsed_sec: float,
    stop: asyncio.Event | None = None,
) -> float:
    """Hold the step to its window; returns the planned idle time.

    An overrun is not made up for later. Setting ``stop`` ends the wait early.
    """
    delay = remaining_budget(window_sec, elapsed_sec)
    if delay <= 0:
        if elapsed_sec > window_sec:
            LOGGER.warning("Burst overran its %.3fs window by %.3fs", window_sec, elapsed_sec - window_sec)
        return 0.0
    if stop is None:
        await asyncio.sleep(delay)
        return delay
    try:
        await asyncio.wait_for(stop.wait(), timeout=delay)
    except asyncio.TimeoutError:
        pass
    return delay
