"""Public entry point: cached, retried, provider-agnostic section generation."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from .cache import TTLCache
from .config import ServiceConfig
from .llm.providers.base import ProviderAdapter
from .llm.providers.registry import create_adapter
from .llm.retry import RetryExecutor
from .llm.router import FallbackCoordinator
from .llm.types import GenerationRequest, GenerationResult
from .prompts import build_prompts
from .utils import hash_text

logger = logging.getLogger(__name__)

CACHE_PREFIX = "section"

PromptBuilder = Callable[[GenerationRequest], Tuple[str, str]]


class GenerationService:
    def __init__(
        self,
        config: ServiceConfig,
        primary: ProviderAdapter,
        fallback: Optional[ProviderAdapter] = None,
        cache: Optional[TTLCache[GenerationResult]] = None,
        prompt_builder: PromptBuilder = build_prompts,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.cache: TTLCache[GenerationResult] = cache if cache is not None else TTLCache()
        self.prompt_builder = prompt_builder
        self._clock = clock
        executor = RetryExecutor(
            max_retries=config.max_retries,
            base_backoff_seconds=config.base_backoff_seconds,
            sleep=sleep,
            clock=clock,
        )
        self.coordinator = FallbackCoordinator(executor, primary, fallback)
        if config.cache_sweep_interval_seconds > 0:
            self.cache.start_sweeper(config.cache_sweep_interval_seconds)

    def close(self) -> None:
        self.cache.stop_sweeper()

    def __enter__(self) -> "GenerationService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def cache_key(self, request: GenerationRequest) -> str:
        return TTLCache.generate_key(
            CACHE_PREFIX,
            self.coordinator.primary.name,
            request.theme,
            request.target_version,
            request.section_kind.value,
            hash_text(json.dumps(list(request.reference_snippets))),
        )

    def _deadline_at(self, deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return self._clock() + deadline

    def generate_section(self, request: GenerationRequest, deadline: Optional[float] = None) -> GenerationResult:
        """Returns a cached result when fresh, otherwise generates and caches one.

        `deadline` is a duration in seconds covering every attempt and backoff.
        Failures propagate and are never cached.
        """
        key = self.cache_key(request)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        logger.debug("Cache miss for %s", key)
        system_prompt, prompt = self.prompt_builder(request)
        result = self.coordinator.generate(prompt, system_prompt, deadline=self._deadline_at(deadline))
        self.cache.set(key, result, self.config.cache_ttl_seconds)
        return result

    async def agenerate_section(
        self,
        request: GenerationRequest,
        deadline: Optional[float] = None,
    ) -> GenerationResult:
        return await asyncio.to_thread(self.generate_section, request, deadline)

    def generate_content(
        self,
        prompt: str,
        system_prompt: str,
        deadline: Optional[float] = None,
    ) -> GenerationResult:
        return self.coordinator.generate(prompt, system_prompt, deadline=self._deadline_at(deadline))

    def check_availability(self) -> Dict[str, Optional[bool]]:
        return self.coordinator.check_availability()


def create_generation_service(config: ServiceConfig, **kwargs) -> GenerationService:
    """Builds adapters for the configured providers. Raises ConfigError on missing keys."""
    primary = create_adapter(config.primary_provider_id, config)
    fallback = None
    if config.fallback_provider_id:
        fallback = create_adapter(config.fallback_provider_id, config)
    return GenerationService(config, primary, fallback, **kwargs)
