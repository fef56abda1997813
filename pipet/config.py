"""Evaluator configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass
class EvaluatorConfig:
    """Configuration for pipeline evaluation."""

    # Emit a DEBUG record for every step and the branch it selected
    trace: bool = False

    # Conditions and guards must evaluate to an actual bool
    strict_conditions: bool = False

    @classmethod
    def from_env(cls) -> "EvaluatorConfig":
        """Build a config from ``PIPET_TRACE`` / ``PIPET_STRICT_CONDITIONS``."""
        defaults = cls()
        return cls(
            trace=_env_flag("PIPET_TRACE", defaults.trace),
            strict_conditions=_env_flag(
                "PIPET_STRICT_CONDITIONS", defaults.strict_conditions
            ),
        )

