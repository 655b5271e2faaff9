"""Bounded retries with deterministic exponential backoff."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

from .providers.base import ProviderAdapter
from .types import DeadlineExceeded, GenerationResult, ProviderError, RetryExhausted

logger = logging.getLogger(__name__)

BACKOFF_FACTOR = 2
DEFAULT_BASE_BACKOFF_SECONDS = 1.0
DEFAULT_MAX_RETRIES = 3


@dataclass
class RetryState:
    attempt: int = 0
    last_error: Optional[ProviderError] = None


def backoff_delay(attempt: int, base_seconds: float) -> float:
    """Wait after failed attempt `attempt`: 2x base after the first, 4x after the second, ..."""
    return (BACKOFF_FACTOR ** attempt) * base_seconds


class RetryExecutor:
    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_backoff_seconds: float = DEFAULT_BASE_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.max_retries = max_retries
        self.base_backoff_seconds = base_backoff_seconds
        self._sleep = sleep
        self._clock = clock

    def run(
        self,
        adapter: ProviderAdapter,
        prompt: str,
        system_prompt: str,
        deadline: float | None = None,
    ) -> GenerationResult:
        """Calls `adapter.generate` until it succeeds or `max_retries` attempts fail.

        `deadline` is an absolute timestamp on this executor's clock. A backoff
        that would run past it is never started.
        """
        state = RetryState()
        while state.attempt < self.max_retries:
            state.attempt += 1
            if deadline is not None and self._clock() >= deadline:
                raise DeadlineExceeded(adapter.name, state.attempt)

            try:
                result = adapter.generate(prompt, system_prompt)
            except ProviderError as exc:
                state.last_error = exc
            else:
                if state.attempt > 1:
                    logger.info("%s succeeded on attempt %d", adapter.name, state.attempt)
                return replace(result, attempts=state.attempt)

            if state.attempt >= self.max_retries:
                break

            delay = backoff_delay(state.attempt, self.base_backoff_seconds)
            if deadline is not None and self._clock() + delay >= deadline:
                logger.warning(
                    "%s attempt %d failed and the deadline leaves no room for a %.2fs backoff",
                    adapter.name,
                    state.attempt,
                    delay,
                )
                raise DeadlineExceeded(adapter.name, state.attempt) from state.last_error

            logger.warning(
                "%s attempt %d/%d failed, retrying in %.2fs: %s",
                adapter.name,
                state.attempt,
                self.max_retries,
                delay,
                state.last_error,
            )
            self._sleep(delay)

        logger.error("%s exhausted %d attempt(s): %s", adapter.name, state.attempt, state.last_error)
        raise RetryExhausted(adapter.name, state.attempt, state.last_error) from state.last_error
