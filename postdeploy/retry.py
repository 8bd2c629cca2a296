"""
Confirmation retry policy

A policy is a pure decision (attempt, error) -> Retry | Fatal. Only
timeout-class errors are ever retried.
"""

from dataclasses import dataclass
from typing import Union

from .errors import TransactionTimeout

DEFAULT_MAX_RETRIES = 5
DEFAULT_CONFIRMATION_TIMEOUT = 30.0
DEFAULT_BACKOFF = 3.0


@dataclass(frozen=True)
class Retry:
    delay: float


@dataclass(frozen=True)
class Fatal:
    reason: str


Decision = Union[Retry, Fatal]


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = DEFAULT_MAX_RETRIES
    timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
    backoff: float = DEFAULT_BACKOFF

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

    def decide(self, attempt: int, error: Exception) -> Decision:
        """
        Decide what to do after a failed confirmation attempt

        Args:
            attempt: 1-based number of the attempt that just failed
            error: The failure raised by that attempt
        """
        if not isinstance(error, TransactionTimeout):
            return Fatal(f"{type(error).__name__} is not retryable")
        if attempt >= self.max_retries:
            return Fatal(f"gave up after {attempt}/{self.max_retries} attempts")
        return Retry(self.backoff)
