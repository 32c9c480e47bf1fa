"""
src/pipeline/retry_policy.py
Bounded exponential-backoff retry for remote calls.

Only TransientRemoteError is retried. Anything else propagates on the
first failure. Sleeps wait on a cancel event so a closing session stops
the retry loop immediately.
"""
from __future__ import annotations

import threading
from typing import Callable, TypeVar

from src.utils import config
from src.utils.exceptions import OperationCancelled, TransientRemoteError
from src.utils.logger import get_logger

log = get_logger("pipeline.retry")

T = TypeVar("T")


class RetryPolicy:
    def __init__(
        self,
        max_attempts: int = config.RETRY_MAX_ATTEMPTS,
        initial_delay: float = config.RETRY_INITIAL_DELAY,
        backoff_multiplier: float = config.RETRY_BACKOFF,
        cancel_event: threading.Event | None = None,
        sleeper: Callable[[float], None] | None = None,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.backoff_multiplier = backoff_multiplier
        self.cancel_event = cancel_event or threading.Event()
        self._sleeper = sleeper

    def execute(self, operation: Callable[[], T]) -> T:
        delay = self.initial_delay
        for attempt in range(1, self.max_attempts + 1):
            self._check_cancelled()
            try:
                return operation()
            except TransientRemoteError as exc:
                if attempt == self.max_attempts:
                    log.error(f"All {self.max_attempts} attempts failed: {exc}")
                    raise
                log.warning(
                    f"Transient error (status={exc.status}), retrying in {delay:.1f}s "
                    f"(attempt {attempt}/{self.max_attempts}): {exc}"
                )
                self._sleep(delay)
                delay *= self.backoff_multiplier
        # max_attempts >= 1, so the loop always returns or raises
        raise AssertionError("unreachable")

    def worst_case_delay(self) -> float:
        """Total sleep when every attempt fails transiently."""
        total, delay = 0.0, self.initial_delay
        for _ in range(self.max_attempts - 1):
            total += delay
            delay *= self.backoff_multiplier
        return total

    def _sleep(self, seconds: float) -> None:
        if self._sleeper is not None:
            self._sleeper(seconds)
            self._check_cancelled()
            return
        if self.cancel_event.wait(seconds):
            raise OperationCancelled("Retry cancelled during backoff")

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise OperationCancelled("Retry cancelled")
