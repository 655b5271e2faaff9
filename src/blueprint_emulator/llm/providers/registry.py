"""Maps provider ids to adapter classes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Type

from ..types import ConfigError
from .anthropic_provider import AnthropicProvider
from .base import ProviderAdapter
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider

if TYPE_CHECKING:
    from ...config import ServiceConfig

PROVIDER_CLASSES: Dict[str, Type] = {
    OpenAIProvider.name: OpenAIProvider,
    AnthropicProvider.name: AnthropicProvider,
    GeminiProvider.name: GeminiProvider,
}


def create_adapter(provider_id: str, config: "ServiceConfig") -> ProviderAdapter:
    provider_cls = PROVIDER_CLASSES.get(provider_id)
    if provider_cls is None:
        raise ConfigError(f"Unknown AI provider: {provider_id}")
    return provider_cls(
        api_key=config.api_keys.get(provider_id),
        model=config.models.get(provider_id, ""),
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout_seconds=config.timeout_seconds,
    )
