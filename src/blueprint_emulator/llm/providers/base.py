"""LLM provider interface."""

from __future__ import annotations

from typing import Protocol

from ..types import GenerationResult


class ProviderAdapter(Protocol):
    name: str

    def generate(self, prompt: str, system_prompt: str) -> GenerationResult:
        ...

    def is_available(self) -> bool:
        ...
