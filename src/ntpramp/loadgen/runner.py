from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable

from ntpramp.config import RunConfig
from ntpramp.loadgen.burst import run_burst
from ntpramp.loadgen.pacer import wait_remaining
from ntpramp.loadgen.probe import Probe
from ntpramp.metrics import RunTotals, StepResult, build_step_result

LOGGER = logging.getLogger("ntpramp.loadgen.runner")


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RunResult:
    config: RunConfig
    series: list[StepResult]
    totals: RunTotals
    cancelled: bool
    started_at: float
    finished_at: float

    @property
    def final_fail_percent(self) -> float:
        return self.totals.fail_percent

    @property
    def duration_sec(self) -> float:
        return max(self.finished_at - self.started_at, 0.0)


# Receives each recorded step with its zero-based index and the planned step count.
ProgressCallback = Callable[[StepResult, int, int], Awaitable[None]]


class RampController:
    """Drives one ramp: a burst per rate step, then pacing to the window.

    Steps run strictly one after another in ascending rate order. ``cancel``
    is honoured between steps and while pacing; a burst in flight is allowed
    to finish.
    """

    def __init__(
        self,
        config: RunConfig,
        probe: Probe,
        stop: asyncio.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self._config = config
        self._probe = probe
        self._stop = stop or asyncio.Event()
        self._progress = progress
        self._state = RunState.IDLE
        self._series: list[StepResult] = []
        self._totals = RunTotals()

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def config(self) -> RunConfig:
        return self._config

    def cancel(self) -> None:
        self._stop.set()

    async def start(self) -> RunResult:
        if self._state is not RunState.IDLE:
            msg = f"Ramp already {self._state.value}"
            raise RuntimeError(msg)
        self._state = RunState.RUNNING
        config = self._config
        rates = config.step_rates()
        LOGGER.info("Starting ramp against %s: %s", config.server, dict(config.to_metadata()))
        started_at = time.time()
        try:
            await self._run_steps(rates)
        except BaseException:
            self._state = RunState.FAILED
            LOGGER.warning("Ramp aborted after %d step(s)", len(self._series))
            raise
        cancelled = self._stop.is_set()
        self._state = RunState.COMPLETED
        result = RunResult(
            config=config,
            series=list(self._series),
            totals=replace(self._totals),
            cancelled=cancelled,
            started_at=started_at,
            finished_at=time.time(),
        )
        LOGGER.info(
            "Ramp finished after %d step(s): attempted=%d failed=%d",
            len(result.series),
            result.totals.attempted,
            result.totals.failed,
        )
        return result

    async def _run_steps(self, rates: list[int]) -> None:
        config = self._config
        for index, rate in enumerate(rates):
            if self._stop.is_set():
                LOGGER.info("Ramp cancelled before rate %d", rate)
                return
            burst = await run_burst(rate, config.server, self._probe)
            step = build_step_result(
                rate=rate,
                attempted=burst.attempted,
                failed=burst.failed,
                elapsed_sec=burst.elapsed_sec,
                latencies_ms=burst.latencies_ms,
            )
            self._series.append(step)
            self._totals.fold(step)
            if self._progress:
                await self._progress(step, index, len(rates))
            await wait_remaining(config.window_sec, burst.elapsed_sec, self._stop)


async def run_ramp(
    config: RunConfig,
    probe: Probe,
    stop: asyncio.Event | None = None,
    progress: ProgressCallback | None = None,
) -> RunResult:
    return await RampController(config, probe, stop=stop, progress=progress).start()
