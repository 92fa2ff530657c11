from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping


class ConfigError(ValueError):
    """Raised when a run configuration cannot be started."""


@dataclass(frozen=True, slots=True)
class RunConfig:
    server: str
    start_rate: int
    max_rate: int
    increment: int
    window_sec: float

    def __post_init__(self) -> None:
        if not isinstance(self.server, str) or not self.server.strip():
            msg = "server must be a non-empty address"
            raise ConfigError(msg)
        for name in ("start_rate", "max_rate", "increment"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f"{name} must be an integer, got {value!r}"
                raise ConfigError(msg)
            if value <= 0:
                msg = f"{name} must be > 0, got {value}"
                raise ConfigError(msg)
        window = self.window_sec
        if isinstance(window, bool) or not isinstance(window, (int, float)):
            msg = f"window_sec must be a number, got {window!r}"
            raise ConfigError(msg)
        if not math.isfinite(window) or window <= 0:
            msg = f"window_sec must be a finite number > 0, got {window}"
            raise ConfigError(msg)

    def step_rates(self) -> list[int]:
        # Inclusive upper bound; the last rate is the largest one not above max_rate.
        return list(range(self.start_rate, self.max_rate + 1, self.increment))

    def step_count(self) -> int:
        if self.max_rate < self.start_rate:
            return 0
        return (self.max_rate - self.start_rate) // self.increment + 1

    def estimated_duration_sec(self) -> float:
        return self.step_count() * self.window_sec

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "server": self.server,
            "start_rate": self.start_rate,
            "max_rate": self.max_rate,
            "increment": self.increment,
            "window_sec": self.window_sec,
            "steps": self.step_count(),
            "estimated_duration_sec": self.estimated_duration_sec(),
        }
