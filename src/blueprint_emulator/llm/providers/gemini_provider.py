"""Google Gemini REST provider."""

from __future__ import annotations

import time

import requests

from ..types import ConfigError, GenerationResult, ProviderError

API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GeminiProvider:
    name = "gemini"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout_seconds: float,
    ) -> None:
        if not api_key:
            raise ConfigError("GEMINI_API_KEY/GOOGLE_API_KEY missing")
        self._api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds

    def is_available(self) -> bool:
        try:
            res = requests.get(
                f"{API_BASE}/models",
                params={"key": self._api_key},
                timeout=self.timeout_seconds,
            )
        except Exception:
            return False
        return res.ok

    def generate(self, prompt: str, system_prompt: str) -> GenerationResult:
        payload = {
            "system_instruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }

        start = time.perf_counter()
        try:
            res = requests.post(
                f"{API_BASE}/models/{self.model}:generateContent",
                params={"key": self._api_key},
                json=payload,
                timeout=self.timeout_seconds,
            )
            res.raise_for_status()
            data = res.json()
        except Exception as exc:
            raise ProviderError(self.name, f"Gemini API error: {exc}") from exc

        latency_ms = int((time.perf_counter() - start) * 1000)
        candidates = data.get("candidates", [])
        text = ""
        if candidates:
            parts = candidates[0].get("content", {}).get("parts", [])
            text = "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()
        if not text:
            raise ProviderError(self.name, "Gemini returned empty response")

        total = data.get("usageMetadata", {}).get("totalTokenCount")

        return GenerationResult(
            content=text,
            provider_id=self.name,
            tokens_used=int(total) if total is not None else None,
            model=self.model,
            latency_ms=latency_ms,
        )
