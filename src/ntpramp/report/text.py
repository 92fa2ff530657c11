from __future__ import annotations

from ntpramp.config import RunConfig
from ntpramp.loadgen import RunResult
from ntpramp.metrics import StepResult


def format_step(step: StepResult) -> str:
    return (
        f"Rate: {step.rate} requests/sec - Total: {step.attempted} - "
        f"Failed: {step.failed} - Fail %: {step.fail_percent:.2f}"
    )


def format_summary(result: RunResult) -> str:
    totals = result.totals
    line = (
        f"Final Statistics - Total Requests: {totals.attempted} - "
        f"Failed Requests: {totals.failed} - Fail %: {result.final_fail_percent:.2f}"
    )
    if result.cancelled:
        line += f" (cancelled after {len(result.series)} of {result.config.step_count()} steps)"
    return line


def format_config(config: RunConfig) -> str:
    lines = [
        "Test configuration:",
        f"NTP server: {config.server}",
        f"Starting request rate: {config.start_rate} requests/sec",
        f"Maximum request rate: {config.max_rate} requests/sec",
        f"Increment rate: {config.increment} requests/sec",
        f"Duration per increment: {config.window_sec:g} seconds",
        f"Steps: {config.step_count()}",
        f"Estimated total test duration: {config.estimated_duration_sec():g}s",
    ]
    return "\n".join(lines)
