"""Run configuration for the Synacor VM."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

_ENV_MAX_STEPS = "SYNACOR_MAX_STEPS"
_ENV_TRACE = "SYNACOR_TRACE"
_ENV_LOG_LEVEL = "SYNACOR_LOG_LEVEL"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RunConfig:
    """Settings for driving a VM to completion.

    ``max_steps`` of ``None`` means run until the program halts or faults.
    """

    max_steps: Optional[int] = None
    trace: bool = False
    log_level: str = "WARNING"
    dump_state: bool = True

    def __post_init__(self) -> None:
        if self.max_steps is not None and self.max_steps <= 0:
            raise ValueError(f"max_steps must be positive, got {self.max_steps}")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"Unknown log level '{self.log_level}' (expected one of: {list(_LOG_LEVELS)})"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RunConfig":
        """Build a config from ``SYNACOR_*`` environment variables."""

        env = os.environ if environ is None else environ
        max_steps: Optional[int] = None
        raw_steps = env.get(_ENV_MAX_STEPS)
        if raw_steps:
            try:
                max_steps = int(raw_steps, 0)
            except ValueError:
                raise ValueError(
                    f"{_ENV_MAX_STEPS} must be an integer, got '{raw_steps}'"
                ) from None

        return cls(
            max_steps=max_steps,
            trace=_parse_bool(env.get(_ENV_TRACE, "")),
            log_level=(env.get(_ENV_LOG_LEVEL) or "WARNING").upper(),
        )

    def with_overrides(self, **changes: object) -> "RunConfig":
        """Return a copy with every non-``None`` override applied."""

        return replace(self, **{k: v for k, v in changes.items() if v is not None})


__all__ = ["RunConfig"]
