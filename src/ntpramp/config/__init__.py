from __future__ import annotations

from ntpramp.config.models import ConfigError, RunConfig

__all__ = ["ConfigError", "RunConfig"]
