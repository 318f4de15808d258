"""Bounded retry shared by the finalize and edit-artifact flows."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ExhaustionPolicy(str, Enum):
    """What happens when the last allowed attempt is also invalid."""
    HARD_FAIL = "hard_fail"   # give up and mark the scene as failed
    FAIL_SOFT = "fail_soft"   # keep the last candidate and flag it


@dataclass(frozen=True)
class RetryDecision:
    attempt: int
    max_attempts: int
    retry: bool
    terminal: ExhaustionPolicy | None = None

    @property
    def exhausted(self) -> bool:
        return not self.retry


@dataclass(frozen=True)
class BoundedRetry:
    """Fixed ceiling on attempts plus the policy applied once it is reached.

    ``decide(attempt)`` is called after attempt number ``attempt`` (1-based)
    has failed. The counter may live anywhere: in memory for a single call,
    or persisted on the scene between calls.
    """
    max_attempts: int
    on_exhausted: ExhaustionPolicy = ExhaustionPolicy.HARD_FAIL

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def decide(self, attempt: int) -> RetryDecision:
        if attempt < self.max_attempts:
            return RetryDecision(attempt, self.max_attempts, retry=True)
        return RetryDecision(attempt, self.max_attempts, retry=False, terminal=self.on_exhausted)

    def can_start(self, attempts_so_far: int) -> bool:
        """False once the ceiling has been reached and no new cycle was started."""
        return attempts_so_far < self.max_attempts
