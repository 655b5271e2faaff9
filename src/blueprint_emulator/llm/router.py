"""Primary/fallback provider routing."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from .providers.base import ProviderAdapter
from .retry import RetryExecutor
from .types import AllProvidersExhausted, DeadlineExceeded, GenerationResult, RetryExhausted

logger = logging.getLogger(__name__)


class FallbackCoordinator:
    """Runs the retry policy against the primary, then once against the fallback.

    The fallback is only touched after the primary has exhausted its retries.
    A `DeadlineExceeded` from the primary propagates as-is, since the caller's
    budget is already spent.
    """

    def __init__(
        self,
        executor: RetryExecutor,
        primary: ProviderAdapter,
        fallback: Optional[ProviderAdapter] = None,
    ) -> None:
        self.executor = executor
        self.primary = primary
        self.fallback = fallback

    def generate(self, prompt: str, system_prompt: str, deadline: float | None = None) -> GenerationResult:
        try:
            return self.executor.run(self.primary, prompt, system_prompt, deadline=deadline)
        except RetryExhausted as primary_error:
            if self.fallback is None:
                raise
            logger.warning(
                "Primary provider %s failed, trying fallback %s",
                self.primary.name,
                self.fallback.name,
            )
            try:
                return self.executor.run(self.fallback, prompt, system_prompt, deadline=deadline)
            except RetryExhausted as fallback_error:
                raise AllProvidersExhausted(primary_error, fallback_error) from fallback_error
            except DeadlineExceeded as exc:
                raise DeadlineExceeded(exc.provider_id, exc.attempt, prior_error=primary_error) from primary_error

    def check_availability(self) -> Dict[str, Optional[bool]]:
        return {
            "primary": bool(self.primary.is_available()),
            "fallback": bool(self.fallback.is_available()) if self.fallback is not None else None,
        }
