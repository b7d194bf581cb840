"""Centralized configuration for the Ultra Plan Engine.

Consolidates environment variables and default values used by the
logging setup and the plan orchestration layer. Policy tables for the
engines themselves live in ``ultra_plan.training_plan.policy``.

Usage:
    from ultra_plan.config import get_config

    config = get_config()
    days = config.default_days_per_week
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_DAYS_PER_WEEK = 5
DEFAULT_FEEDBACK_WINDOW_DAYS = 7

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class EngineConfig:
    """Immutable configuration for the plan engine.

    All settings are resolved at creation time. Use `from_env()` to
    create from environment variables, or construct directly for testing.
    """

    log_level: str = DEFAULT_LOG_LEVEL
    log_dir: Path | None = None
    default_days_per_week: int = DEFAULT_DAYS_PER_WEEK
    feedback_window_days: int = DEFAULT_FEEDBACK_WINDOW_DAYS

    def validate(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            List of warning messages (empty if all OK).
        """
        warnings: list[str] = []
        if self.log_level.upper() not in _VALID_LOG_LEVELS:
            warnings.append(f"Unknown log level: {self.log_level}")
        if self.log_dir is not None and not self.log_dir.exists():
            warnings.append(f"Log directory does not exist: {self.log_dir}")
        if not 0 <= self.default_days_per_week <= 7:
            warnings.append(
                f"Invalid default_days_per_week: {self.default_days_per_week}"
            )
        if self.feedback_window_days <= 0:
            warnings.append(
                f"Invalid feedback_window_days: {self.feedback_window_days}"
            )
        return warnings

    @staticmethod
    def from_env() -> EngineConfig:
        """Create config from environment variables.

        Environment variables:
            ULTRA_PLAN_LOG_LEVEL: Log level name (default INFO)
            ULTRA_PLAN_LOG_DIR: Directory for rotating log files (optional)
            ULTRA_PLAN_DAYS_PER_WEEK: Training days when no constraints are given
            ULTRA_PLAN_FEEDBACK_WINDOW_DAYS: Rolling feedback window length
        """
        log_dir = os.getenv("ULTRA_PLAN_LOG_DIR")

        return EngineConfig(
            log_level=os.getenv("ULTRA_PLAN_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            log_dir=Path(log_dir).expanduser() if log_dir else None,
            default_days_per_week=_int_from_env(
                "ULTRA_PLAN_DAYS_PER_WEEK", DEFAULT_DAYS_PER_WEEK
            ),
            feedback_window_days=_int_from_env(
                "ULTRA_PLAN_FEEDBACK_WINDOW_DAYS", DEFAULT_FEEDBACK_WINDOW_DAYS
            ),
        )


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    """Get the singleton config instance.

    Returns:
        EngineConfig instance created from environment variables.
    """
    return EngineConfig.from_env()
