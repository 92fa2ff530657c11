from __future__ import annotations

import math
from dataclasses import dataclass


def fail_percent(failed: int, attempted: int) -> float:
    """Percentage of failed probes, or NaN when nothing was attempted."""
    if attempted <= 0:
        return math.nan
    return failed / attempted * 100.0


@dataclass(frozen=True, slots=True)
class StepResult:
    rate: int
    attempted: int
    failed: int
    fail_percent: float
    elapsed_sec: float
    p50_ms: float = math.nan
    p95_ms: float = math.nan
    p99_ms: float = math.nan

    @property
    def succeeded(self) -> int:
        return self.attempted - self.failed


@dataclass(slots=True)
class RunTotals:
    attempted: int = 0
    failed: int = 0

    def fold(self, step: StepResult) -> None:
        self.attempted += step.attempted
        self.failed += step.failed

    @property
    def fail_percent(self) -> float:
        return fail_percent(self.failed, self.attempted)
