"""OpenAI Chat Completions provider."""

from __future__ import annotations

import time

from openai import OpenAI

from ..types import ConfigError, GenerationResult, ProviderError


class OpenAIProvider:
    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout_seconds: float,
        client=None,
    ) -> None:
        if not api_key and client is None:
            raise ConfigError("OPENAI_API_KEY missing")
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        # RetryExecutor owns retries.
        self._client = client or OpenAI(api_key=api_key, max_retries=0)

    def is_available(self) -> bool:
        try:
            self._client.models.list(timeout=self.timeout_seconds)
        except Exception:
            return False
        return True

    def generate(self, prompt: str, system_prompt: str) -> GenerationResult:
        start = time.perf_counter()
        try:
            completion = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                timeout=self.timeout_seconds,
            )
        except Exception as exc:
            raise ProviderError(self.name, f"OpenAI API error: {exc}") from exc

        latency_ms = int((time.perf_counter() - start) * 1000)
        choices = getattr(completion, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        text = (getattr(message, "content", None) or "").strip()
        if not text:
            raise ProviderError(self.name, "OpenAI returned empty response")

        usage = getattr(completion, "usage", None)
        total_tokens = getattr(usage, "total_tokens", None)

        return GenerationResult(
            content=text,
            provider_id=self.name,
            tokens_used=int(total_tokens) if total_tokens is not None else None,
            model=self.model,
            latency_ms=latency_ms,
        )
