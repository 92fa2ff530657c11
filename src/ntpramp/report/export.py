from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Iterable

import pandas as pd

from ntpramp.metrics import StepResult

COLUMNS = [
    "rate",
    "attempted",
    "failed",
    "fail_percent",
    "elapsed_sec",
    "p50_ms",
    "p95_ms",
    "p99_ms",
]


def series_frame(series: Iterable[StepResult]) -> pd.DataFrame:
    return pd.DataFrame([asdict(step) for step in series], columns=COLUMNS)


def write_csv(series: Iterable[StepResult], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    series_frame(series).to_csv(path, index=False)
    return path
