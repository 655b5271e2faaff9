"""Shared LLM data structures and the generation error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class SectionKind(str, Enum):
    LEARNING_OBJECTIVES = "learning_objectives"
    PREREQUISITES = "prerequisites"
    FEATURES_USED = "features_used"
    IMPLEMENTATION_STEPS = "implementation_steps"
    BLUEPRINT_IMPLEMENTATION = "blueprint_implementation"
    SETTINGS = "settings"
    DIAGRAMS = "diagrams"
    TROUBLESHOOTING = "troubleshooting"
    ADVANCED_CHALLENGES = "advanced_challenges"
    REFERENCES = "references"


@dataclass(frozen=True)
class GenerationRequest:
    theme: str
    target_version: str
    section_kind: SectionKind
    reference_snippets: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Snippet lists are frozen to tuples.
        object.__setattr__(self, "section_kind", SectionKind(self.section_kind))
        object.__setattr__(self, "reference_snippets", tuple(self.reference_snippets))

    @classmethod
    def build(
        cls,
        theme: str,
        target_version: str,
        section_kind: SectionKind | str,
        reference_snippets: Iterable[str] | None = None,
    ) -> "GenerationRequest":
        return cls(
            theme=theme.strip(),
            target_version=target_version.strip(),
            section_kind=SectionKind(section_kind),
            reference_snippets=tuple(reference_snippets or ()),
        )


@dataclass(frozen=True)
class GenerationResult:
    content: str
    provider_id: str
    tokens_used: Optional[int] = None
    model: str = ""
    latency_ms: int = 0
    attempts: int = 1


class GenerationError(RuntimeError):
    """Base class for every error raised by the generation layer."""


class ConfigError(GenerationError):
    """Configuration is missing or invalid. Raised at construction, never retried."""


class ProviderError(GenerationError):
    """Provider failed to return a valid generation."""

    def __init__(self, provider_id: str, message: str) -> None:
        super().__init__(f"{provider_id}: {message}")
        self.provider_id = provider_id
        self.message = message


class RetryExhausted(GenerationError):
    """Every attempt against a single provider failed."""

    def __init__(self, provider_id: str, attempts: int, last_error: ProviderError) -> None:
        super().__init__(
            f"{provider_id} failed after {attempts} attempt(s): {last_error.message}"
        )
        self.provider_id = provider_id
        self.attempts = attempts
        self.last_error = last_error


class AllProvidersExhausted(GenerationError):
    """Primary and fallback providers both exhausted their retries."""

    def __init__(self, primary_error: RetryExhausted, fallback_error: RetryExhausted) -> None:
        super().__init__(
            f"All providers exhausted. Primary: {primary_error} | Fallback: {fallback_error}"
        )
        self.primary_error = primary_error
        self.fallback_error = fallback_error

    @property
    def errors(self) -> tuple[RetryExhausted, RetryExhausted]:
        return (self.primary_error, self.fallback_error)


class DeadlineExceeded(GenerationError):
    """The caller's deadline elapsed before a result could be produced."""

    def __init__(self, provider_id: str, attempt: int, prior_error: Optional[GenerationError] = None) -> None:
        message = f"Deadline exceeded while calling {provider_id} (attempt {attempt})"
        if prior_error is not None:
            message += f" after earlier failure: {prior_error}"
        super().__init__(message)
        self.provider_id = provider_id
        self.attempt = attempt
        self.prior_error = prior_error
