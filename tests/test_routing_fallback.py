import pytest

from blueprint_emulator.llm.retry import RetryExecutor
from blueprint_emulator.llm.router import FallbackCoordinator
from blueprint_emulator.llm.types import (
    AllProvidersExhausted,
    DeadlineExceeded,
    GenerationResult,
    ProviderError,
    RetryExhausted,
)


class FailingProvider:
    def __init__(self, name, message="simulated failure", available=False):
        self.name = name
        self.message = message
        self.available = available
        self.calls = 0

    def generate(self, prompt, system_prompt):
        self.calls += 1
        raise ProviderError(self.name, self.message)

    def is_available(self):
        return self.available


class SuccessProvider:
    def __init__(self, name="ok", fail_first=0):
        self.name = name
        self.fail_first = fail_first
        self.calls = 0

    def generate(self, prompt, system_prompt):
        self.calls += 1
        if self.calls <= self.fail_first:
            raise ProviderError(self.name, "warming up")
        return GenerationResult(content=f"success from {self.name}", provider_id=self.name, tokens_used=15)

    def is_available(self):
        return True


def _executor(max_retries, sleeps=None):
    sleeps = sleeps if sleeps is not None else []
    return RetryExecutor(max_retries=max_retries, base_backoff_seconds=1.0, sleep=sleeps.append)


def test_primary_success_never_touches_fallback():
    primary = SuccessProvider("openai", fail_first=1)
    fallback = SuccessProvider("anthropic")
    coordinator = FallbackCoordinator(_executor(3), primary, fallback)

    result = coordinator.generate("p", "s")

    assert result.provider_id == "openai"
    assert result.attempts == 2
    assert fallback.calls == 0


def test_fallback_success_reports_fallback_id():
    sleeps = []
    primary = FailingProvider("openai")
    fallback = SuccessProvider("anthropic")
    coordinator = FallbackCoordinator(_executor(3, sleeps), primary, fallback)

    result = coordinator.generate("p", "s")

    assert result.content == "success from anthropic"
    assert result.provider_id == "anthropic"
    assert primary.calls == 3
    assert fallback.calls == 1
    assert sleeps == [2.0, 4.0]


def test_both_exhausted_embeds_both_messages():
    primary = FailingProvider("openai", message="rate limited")
    fallback = FailingProvider("anthropic", message="overloaded")
    coordinator = FallbackCoordinator(_executor(2), primary, fallback)

    with pytest.raises(AllProvidersExhausted) as exc_info:
        coordinator.generate("p", "s")

    err = exc_info.value
    message = str(err)
    assert "rate limited" in message and "overloaded" in message
    assert message.index("rate limited") < message.index("overloaded")
    assert err.primary_error.provider_id == "openai"
    assert err.fallback_error.provider_id == "anthropic"
    assert primary.calls == 2
    assert fallback.calls == 2


def test_without_fallback_primary_exhaustion_propagates_unchanged():
    primary = FailingProvider("openai")
    coordinator = FallbackCoordinator(_executor(2), primary)

    with pytest.raises(RetryExhausted) as exc_info:
        coordinator.generate("p", "s")

    assert not isinstance(exc_info.value, AllProvidersExhausted)
    assert exc_info.value.provider_id == "openai"


def test_deadline_in_primary_skips_fallback():
    now = [0.0]
    primary = FailingProvider("openai")
    fallback = SuccessProvider("anthropic")
    executor = RetryExecutor(max_retries=3, base_backoff_seconds=1.0, sleep=lambda s: None, clock=lambda: now[0])
    coordinator = FallbackCoordinator(executor, primary, fallback)

    with pytest.raises(DeadlineExceeded):
        coordinator.generate("p", "s", deadline=1.0)
    assert fallback.calls == 0


def test_check_availability():
    coordinator = FallbackCoordinator(_executor(1), SuccessProvider("openai"), FailingProvider("anthropic"))
    assert coordinator.check_availability() == {"primary": True, "fallback": False}

    solo = FallbackCoordinator(_executor(1), FailingProvider("openai", available=True))
    assert solo.check_availability() == {"primary": True, "fallback": None}


def test_deadline_during_fallback_keeps_primary_failure():
    now = [0.0]

    class SlowFailingProvider(FailingProvider):
        def generate(self, prompt, system_prompt):
            now[0] += 5.0
            return super().generate(prompt, system_prompt)

    primary = SlowFailingProvider("openai", message="quota exceeded")
    fallback = SuccessProvider("anthropic")
    executor = RetryExecutor(max_retries=1, sleep=lambda s: None, clock=lambda: now[0])
    coordinator = FallbackCoordinator(executor, primary, fallback)

    with pytest.raises(DeadlineExceeded) as exc_info:
        coordinator.generate("p", "s", deadline=3.0)

    err = exc_info.value
    assert "quota exceeded" in str(err)
    assert isinstance(err.__cause__, RetryExhausted)
    assert err.prior_error.provider_id == "openai"
    assert err.provider_id == "anthropic"
    assert fallback.calls == 0
