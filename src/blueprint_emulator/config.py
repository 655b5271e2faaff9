"""Configuration loading, defaults, and the immutable service config."""

from __future__ import annotations

import os
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import yaml

from .llm.types import ConfigError

PROVIDER_ORDER = ("openai", "anthropic", "gemini")

API_KEY_ENV: Dict[str, tuple[str, ...]] = {
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY", "CLAUDE_API_KEY"),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}

DEFAULT_SETTINGS: Dict[str, Any] = {
    "target_version": "5.6",
    "llm": {
        "primary_provider": None,
        "fallback_provider": None,
        "temperature": 0.7,
        "max_tokens": 3000,
        "max_retries": 3,
        "base_backoff_seconds": 1.0,
        "timeout_seconds": 30,
    },
    "models": {
        "openai": "gpt-4",
        "anthropic": "claude-3-5-sonnet-20241022",
        "gemini": "gemini-1.5-pro",
    },
    "cache": {
        "ttl_seconds": 3600,
        "sweep_interval_seconds": 60,
    },
}


@dataclass(frozen=True)
class ServiceConfig:
    primary_provider_id: str
    fallback_provider_id: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 3000
    max_retries: int = 3
    base_backoff_seconds: float = 1.0
    cache_ttl_seconds: float = 3600.0
    cache_sweep_interval_seconds: float = 60.0
    timeout_seconds: float = 30.0
    target_version: str = "5.6"
    models: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    api_keys: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}), repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "models", MappingProxyType(dict(self.models)))
        object.__setattr__(self, "api_keys", MappingProxyType(dict(self.api_keys)))


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(settings_path: str = "config/settings.yaml") -> Dict[str, Any]:
    """Loads settings.yaml and merges it onto defaults."""
    merged = deepcopy(DEFAULT_SETTINGS)
    config_path = Path(settings_path)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            user_cfg = yaml.safe_load(f) or {}
        if not isinstance(user_cfg, dict):
            raise ConfigError(f"{settings_path} must contain a mapping")
        merged = _deep_merge(merged, user_cfg)
    return merged


def resolve_api_keys(environ: Mapping[str, str]) -> Dict[str, str]:
    keys: Dict[str, str] = {}
    for provider_id, names in API_KEY_ENV.items():
        for name in names:
            value = (environ.get(name) or "").strip()
            if value:
                keys[provider_id] = value
                break
    return keys


def select_providers(api_keys: Mapping[str, str]) -> tuple[str, Optional[str]]:
    """Picks primary/fallback from whichever keys are present, openai first."""
    available = [p for p in PROVIDER_ORDER if p in api_keys]
    if not available:
        raise ConfigError(
            "At least one AI API key (OPENAI_API_KEY, ANTHROPIC_API_KEY or GEMINI_API_KEY) must be configured"
        )
    fallback = available[1] if len(available) > 1 else None
    return available[0], fallback


def _number(raw: Any, name: str, kind: type) -> Any:
    try:
        return kind(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def _ms_to_seconds(raw: str, name: str) -> float:
    return _number(raw, name, int) / 1000.0


def build_service_config(
    settings: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ServiceConfig:
    """Builds the process-wide ServiceConfig from merged settings plus environment."""
    settings = _deep_merge(DEFAULT_SETTINGS, settings or {})
    env = os.environ if environ is None else environ
    llm_cfg = settings.get("llm", {})
    cache_cfg = settings.get("cache", {})

    api_keys = resolve_api_keys(env)

    primary = env.get("LLM_PRIMARY_PROVIDER") or llm_cfg.get("primary_provider")
    fallback = env.get("LLM_FALLBACK_PROVIDER") or llm_cfg.get("fallback_provider")
    if not primary:
        primary, auto_fallback = select_providers(api_keys)
        fallback = fallback or auto_fallback

    for provider_id in (primary, fallback):
        if provider_id and provider_id not in API_KEY_ENV:
            raise ConfigError(f"Unknown AI provider: {provider_id}")
    if fallback == primary:
        raise ConfigError("Fallback provider must differ from the primary provider")

    temperature = _number(env.get("LLM_TEMPERATURE", llm_cfg.get("temperature")), "temperature", float)
    max_tokens = _number(env.get("LLM_MAX_TOKENS", llm_cfg.get("max_tokens")), "max_tokens", int)
    max_retries = _number(env.get("LLM_MAX_RETRIES", llm_cfg.get("max_retries")), "max_retries", int)
    base_backoff = _number(
        env.get("LLM_BASE_BACKOFF_SECONDS", llm_cfg.get("base_backoff_seconds")),
        "base_backoff_seconds",
        float,
    )

    if env.get("MAX_GENERATION_TIME_MS"):
        timeout_seconds = _ms_to_seconds(env["MAX_GENERATION_TIME_MS"], "MAX_GENERATION_TIME_MS")
    else:
        timeout_seconds = _number(llm_cfg.get("timeout_seconds"), "timeout_seconds", float)

    if env.get("CACHE_TTL_MS"):
        cache_ttl = _ms_to_seconds(env["CACHE_TTL_MS"], "CACHE_TTL_MS")
    else:
        cache_ttl = _number(cache_cfg.get("ttl_seconds"), "cache.ttl_seconds", float)
    sweep_interval = _number(cache_cfg.get("sweep_interval_seconds"), "cache.sweep_interval_seconds", float)

    if not 0.0 <= temperature <= 2.0:
        raise ConfigError("temperature must be between 0 and 2")
    if max_tokens < 1:
        raise ConfigError("max_tokens must be positive")
    if max_retries < 1:
        raise ConfigError("max_retries must be at least 1")
    if base_backoff < 0:
        raise ConfigError("base_backoff_seconds must not be negative")
    if not 1.0 <= timeout_seconds <= 600.0:
        raise ConfigError("timeout must be between 1 and 600 seconds")
    if cache_ttl <= 0:
        raise ConfigError("cache TTL must be positive")

    return ServiceConfig(
        primary_provider_id=primary,
        fallback_provider_id=fallback or None,
        temperature=temperature,
        max_tokens=max_tokens,
        max_retries=max_retries,
        base_backoff_seconds=base_backoff,
        cache_ttl_seconds=cache_ttl,
        cache_sweep_interval_seconds=sweep_interval,
        timeout_seconds=timeout_seconds,
        target_version=str(env.get("TARGET_UE_VERSION") or settings.get("target_version", "5.6")),
        models=dict(settings.get("models", {})),
        api_keys=api_keys,
    )
