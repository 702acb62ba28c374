from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .logging_utils import _scraper_event


@dataclass(frozen=True)
class RetryBudget:
    """Fixed-spacing retry budget: ``attempts`` tries, ``delay_seconds`` apart."""

    attempts: int = 10
    delay_seconds: float = 2.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("RetryBudget.attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("RetryBudget.delay_seconds must be non-negative")


def compute_backoff_seconds(attempt_index: int, budget: RetryBudget) -> float:
    """Return the wait before the attempt following ``attempt_index`` (1-based).

    Spacing is constant; the tracking browser either comes up within the
    budget or it does not.
    """

    return float(budget.delay_seconds)


def decide_retry(
    attempt_index: int,
    budget: RetryBudget,
    error: BaseException | None = None,
    *,
    context: Optional[str] = None,
) -> bool:
    """Decide whether a failed attempt should be followed by another one."""

    will_retry = attempt_index < budget.attempts
    _scraper_event(
        "state",
        phase="retry_decision",
        kind="retryable" if will_retry else "capped",
        context=context,
        attempt=attempt_index,
        max_attempts=budget.attempts,
        delay_seconds=compute_backoff_seconds(attempt_index, budget) if will_retry else None,
        will_retry=will_retry,
        error_repr=repr(error) if error is not None else None,
    )
    return will_retry


__all__ = ["RetryBudget", "decide_retry", "compute_backoff_seconds"]
