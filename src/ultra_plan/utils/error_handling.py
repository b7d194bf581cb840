"""
Standardized error handling for plan construction.

This module provides the exception hierarchy raised by the engine and
consistent messages with retry guidance. Safety violations, warnings and
unresolved conflicts are returned as data and never raised.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ultra_plan.training_plan.models import SafetyCheck

logger = logging.getLogger(__name__)


class PlanEngineError(Exception):
    """Base class for plan engine errors."""

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        retry_guidance: str | None = None,
    ):
        """
        Initialize PlanEngineError.

        Args:
            message: Error description
            suggestion: Suggested solution
            retry_guidance: How to retry with correct inputs
        """
        self.message = message
        self.suggestion = suggestion
        self.retry_guidance = retry_guidance

        full_message = message
        if suggestion:
            full_message += f"\n💡 Suggestion: {suggestion}"
        if retry_guidance:
            full_message += f"\n🔄 Retry: {retry_guidance}"

        super().__init__(full_message)


class InsufficientTrainingTimeError(PlanEngineError):
    """Raised when fewer weeks than the minimum remain before the race."""

    def __init__(self, total_weeks: int, minimum_weeks: int):
        self.total_weeks = total_weeks
        self.minimum_weeks = minimum_weeks
        super().__init__(
            format_insufficient_time_error(total_weeks, minimum_weeks),
            suggestion="Choose a later race date or provide more lead time",
            retry_guidance=(
                "Retrying with the same dates gives the same result; "
                f"move the race at least {minimum_weeks} weeks after the start date"
            ),
        )


class InvalidPlanInputError(PlanEngineError):
    """Raised when plan inputs are structurally unusable."""

    pass


def format_insufficient_time_error(total_weeks: int, minimum_weeks: int) -> str:
    """
    Format insufficient training time message.

    Args:
        total_weeks: Whole weeks available between start and race
        minimum_weeks: Minimum weeks required

    Returns:
        Formatted error message
    """
    return (
        f"Insufficient training time: {total_weeks} weeks available, "
        f"minimum {minimum_weeks} weeks required"
    )


def log_safety_result(
    target_logger: logging.Logger, check: SafetyCheck, context: str
) -> None:
    """
    Log a guardrail result at a level matching its outcome.

    Blocking violations log at WARNING, advisory warnings at INFO.

    Args:
        target_logger: Logger of the calling module
        check: Guardrail evaluation result
        context: Short label for the plan being checked (e.g. "week 3")
    """
    if not check.passed:
        rules = ", ".join(v.rule for v in check.violations)
        target_logger.warning(f"Safety check failed for {context}: {rules}")
    elif check.warnings:
        rules = ", ".join(w.rule for w in check.warnings)
        target_logger.info(f"Safety warnings for {context}: {rules}")
    else:
        target_logger.debug(f"Safety check passed for {context}")
