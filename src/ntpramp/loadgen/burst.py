from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from ntpramp.loadgen.counter import Counter
from ntpramp.loadgen.probe import ErrorType, Probe, ProbeOutcome

LOGGER = logging.getLogger("ntpramp.loadgen.burst")


@dataclass(frozen=True, slots=True)
class BurstResult:
    rate: int
    attempted: int
    failed: int
    elapsed_sec: float
    latencies_ms: list[float] = field(default_factory=list)


async def run_burst(rate: int, server: str, probe: Probe) -> BurstResult:
    """Fire ``rate`` concurrent probes at ``server`` and wait for all of them."""
    if rate < 1:
        msg = f"Burst rate must be >= 1, got {rate}"
        raise ValueError(msg)
    counter = Counter()
    latencies_ms: list[float] = []

    async def one() -> None:
        start_mono = time.perf_counter()
        outcome = await _guarded_probe(probe, server)
        latencies_ms.append((time.perf_counter() - start_mono) * 1000.0)
        await counter.increment(outcome.success)

    started = time.perf_counter()
    async with asyncio.TaskGroup() as group:
        for _ in range(rate):
            group.create_task(one())
    elapsed = time.perf_counter() - started

    attempted, failed = counter.snapshot()
    return BurstResult(
        rate=rate,
        attempted=attempted,
        failed=failed,
        elapsed_sec=elapsed,
        latencies_ms=latencies_ms,
    )


async def _guarded_probe(probe: Probe, server: str) -> ProbeOutcome:
    try:
        outcome = await probe(server)
    except Exception as exc:
        LOGGER.debug("Probe of %s raised; counting as failure", server, exc_info=True)
        return ProbeOutcome(success=False, error_type=ErrorType.FAULT, detail=repr(exc))
    if isinstance(outcome, bool):
        return ProbeOutcome(success=outcome)
    if not isinstance(outcome, ProbeOutcome):
        LOGGER.debug("Probe of %s returned %r; counting as failure", server, outcome)
        return ProbeOutcome(
            success=False,
            error_type=ErrorType.FAULT,
            detail=f"unexpected outcome {outcome!r}",
        )
    return outcome
