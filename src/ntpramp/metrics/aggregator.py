from __future__ import annotations

import math
from typing import Iterable

import numpy as np

from ntpramp.metrics.models import StepResult, fail_percent


def latency_percentiles(latencies_ms: Iterable[float]) -> tuple[float, float, float]:
    values = [v for v in latencies_ms if v >= 0]
    if not values:
        return math.nan, math.nan, math.nan
    p50, p95, p99 = np.percentile(values, [50, 95, 99])
    return float(p50), float(p95), float(p99)


def build_step_result(
    rate: int,
    attempted: int,
    failed: int,
    elapsed_sec: float,
    latencies_ms: Iterable[float] = (),
) -> StepResult:
    p50, p95, p99 = latency_percentiles(latencies_ms)
    return StepResult(
        rate=rate,
        attempted=attempted,
        failed=failed,
        fail_percent=fail_percent(failed, attempted),
        elapsed_sec=elapsed_sec,
        p50_ms=p50,
        p95_ms=p95,
        p99_ms=p99,
    )
