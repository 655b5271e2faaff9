"""Anthropic Messages API provider."""

from __future__ import annotations

import time
from typing import Any, Dict

import requests

from ..types import ConfigError, GenerationResult, ProviderError

API_BASE = "https://api.anthropic.com/v1"
API_VERSION = "2023-06-01"


class AnthropicProvider:
    name = "anthropic"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout_seconds: float,
    ) -> None:
        if not api_key:
            raise ConfigError("ANTHROPIC_API_KEY missing")
        self._api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": API_VERSION,
            "content-type": "application/json",
        }

    def is_available(self) -> bool:
        try:
            res = requests.get(f"{API_BASE}/models", headers=self._headers(), timeout=self.timeout_seconds)
        except Exception:
            return False
        return res.ok

    def generate(self, prompt: str, system_prompt: str) -> GenerationResult:
        payload = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": prompt}],
        }

        start = time.perf_counter()
        try:
            res = requests.post(
                f"{API_BASE}/messages",
                headers=self._headers(),
                json=payload,
                timeout=self.timeout_seconds,
            )
            res.raise_for_status()
            data: Dict[str, Any] = res.json()
        except Exception as exc:
            raise ProviderError(self.name, f"Anthropic API error: {exc}") from exc

        latency_ms = int((time.perf_counter() - start) * 1000)
        content = data.get("content") or []
        if not isinstance(content, list) or not content:
            raise ProviderError(self.name, "Anthropic returned empty response")

        first = content[0]
        if not isinstance(first, dict) or first.get("type") != "text":
            raise ProviderError(self.name, "Anthropic returned non-text response")

        text = "".join(
            item.get("text", "")
            for item in content
            if isinstance(item, dict) and item.get("type") == "text"
        ).strip()
        if not text:
            raise ProviderError(self.name, "Anthropic returned empty response")

        usage = data.get("usage") or {}
        tokens_used = None
        if usage:
            tokens_used = int(usage.get("input_tokens", 0) or 0) + int(usage.get("output_tokens", 0) or 0)

        return GenerationResult(
            content=text,
            provider_id=self.name,
            tokens_used=tokens_used,
            model=self.model,
            latency_ms=latency_ms,
        )
