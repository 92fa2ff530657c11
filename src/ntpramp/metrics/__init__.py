from __future__ import annotations

from ntpramp.metrics.aggregator import build_step_result, latency_percentiles
from ntpramp.metrics.models import RunTotals, StepResult, fail_percent

__all__ = ["RunTotals", "StepResult", "build_step_result", "fail_percent", "latency_percentiles"]
