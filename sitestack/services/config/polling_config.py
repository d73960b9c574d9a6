from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PollingConfig:
    """Timing of the two certificate polling loops.

    `max_issuance_wait_seconds` is unset by default: the issuance wait then runs
    until ACM reports a terminal status, however long DNS propagation takes.
    """

    validation_max_attempts: int = 4
    validation_backoff_seconds: float = 2.0
    issuance_step_seconds: int = 10
    max_issuance_wait_seconds: Optional[float] = None

    @staticmethod
    def from_env(
        *,
        max_wait_env: str = "SITESTACK_MAX_CERT_WAIT_SECONDS",
        max_issuance_wait_seconds: Optional[float] = None,
    ) -> "PollingConfig":
        if max_issuance_wait_seconds is None:
            raw = os.getenv(max_wait_env)
            if raw:
                try:
                    max_issuance_wait_seconds = float(raw)
                except ValueError as exc:
                    raise ValueError(f"Invalid {max_wait_env}; must be a number") from exc

        if max_issuance_wait_seconds is not None and max_issuance_wait_seconds <= 0:
            raise ValueError("The maximum certificate wait must be a positive number of seconds")

        return PollingConfig(max_issuance_wait_seconds=max_issuance_wait_seconds)
