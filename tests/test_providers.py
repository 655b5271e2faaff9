from types import SimpleNamespace

import pytest
import requests

from blueprint_emulator.llm.providers import anthropic_provider, gemini_provider
from blueprint_emulator.llm.providers.anthropic_provider import AnthropicProvider
from blueprint_emulator.llm.providers.gemini_provider import GeminiProvider
from blueprint_emulator.llm.providers.openai_provider import OpenAIProvider
from blueprint_emulator.llm.types import ConfigError, ProviderError


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.ok = status_code < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


def _anthropic():
    return AnthropicProvider(api_key="a-key", model="claude-test", temperature=0.5, max_tokens=100, timeout_seconds=5)


def _gemini():
    return GeminiProvider(api_key="g-key", model="gemini-test", temperature=0.5, max_tokens=100, timeout_seconds=5)


def test_anthropic_sends_system_prompt_and_sums_tokens(monkeypatch):
    captured = {}

    def fake_post(url, headers, json, timeout):
        captured.update(url=url, headers=headers, json=json, timeout=timeout)
        return FakeResponse(
            {
                "content": [{"type": "text", "text": " Objectives "}],
                "usage": {"input_tokens": 12, "output_tokens": 30},
            }
        )

    monkeypatch.setattr(anthropic_provider.requests, "post", fake_post)
    result = _anthropic().generate("user prompt", "system prompt")

    assert result.content == "Objectives"
    assert result.provider_id == "anthropic"
    assert result.tokens_used == 42
    assert captured["url"].endswith("/messages")
    assert captured["headers"]["x-api-key"] == "a-key"
    assert captured["json"]["system"] == "system prompt"
    assert captured["json"]["messages"] == [{"role": "user", "content": "user prompt"}]
    assert captured["json"]["max_tokens"] == 100


@pytest.mark.parametrize(
    "payload",
    [
        {"content": []},
        {"content": [{"type": "tool_use", "id": "x"}]},
        {"content": [{"type": "text", "text": "   "}]},
    ],
)
def test_anthropic_rejects_empty_or_non_text(monkeypatch, payload):
    monkeypatch.setattr(anthropic_provider.requests, "post", lambda *a, **k: FakeResponse(payload))
    with pytest.raises(ProviderError) as exc_info:
        _anthropic().generate("p", "s")
    assert exc_info.value.provider_id == "anthropic"


def test_anthropic_wraps_http_errors(monkeypatch):
    monkeypatch.setattr(anthropic_provider.requests, "post", lambda *a, **k: FakeResponse({}, status_code=529))
    with pytest.raises(ProviderError) as exc_info:
        _anthropic().generate("p", "s")
    assert isinstance(exc_info.value.__cause__, requests.HTTPError)


def test_anthropic_availability_never_raises(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(anthropic_provider.requests, "get", boom)
    assert _anthropic().is_available() is False

    monkeypatch.setattr(anthropic_provider.requests, "get", lambda *a, **k: FakeResponse({}))
    assert _anthropic().is_available() is True


def test_gemini_parses_candidates(monkeypatch):
    payload = {
        "candidates": [{"content": {"parts": [{"text": "Step 1"}, {"text": " and 2"}]}}],
        "usageMetadata": {"totalTokenCount": 21},
    }
    monkeypatch.setattr(gemini_provider.requests, "post", lambda *a, **k: FakeResponse(payload))

    result = _gemini().generate("p", "s")

    assert result.content == "Step 1 and 2"
    assert result.tokens_used == 21
    assert result.provider_id == "gemini"


def test_gemini_empty_candidates_is_provider_error(monkeypatch):
    monkeypatch.setattr(gemini_provider.requests, "post", lambda *a, **k: FakeResponse({"candidates": []}))
    with pytest.raises(ProviderError):
        _gemini().generate("p", "s")


@pytest.mark.parametrize("provider_cls", [AnthropicProvider, GeminiProvider, OpenAIProvider])
def test_missing_key_fails_at_construction(provider_cls):
    with pytest.raises(ConfigError):
        provider_cls(api_key=None, model="m", temperature=0.1, max_tokens=10, timeout_seconds=5)


class FakeCompletions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.response


def _openai_client(completions, models_error=None):
    def list_models(**kwargs):
        if models_error:
            raise models_error
        return []

    return SimpleNamespace(
        chat=SimpleNamespace(completions=completions),
        models=SimpleNamespace(list=list_models),
    )


def _openai(client):
    return OpenAIProvider(api_key=None, model="gpt-test", temperature=0.3, max_tokens=50, timeout_seconds=5, client=client)


def test_openai_chat_completion():
    response = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="Prerequisites list"))],
        usage=SimpleNamespace(total_tokens=99),
    )
    completions = FakeCompletions(response=response)

    result = _openai(_openai_client(completions)).generate("user", "system")

    assert result.content == "Prerequisites list"
    assert result.tokens_used == 99
    assert result.provider_id == "openai"
    assert completions.kwargs["messages"][0] == {"role": "system", "content": "system"}
    assert completions.kwargs["max_tokens"] == 50


def test_openai_empty_choice_is_provider_error():
    response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=None))], usage=None)
    with pytest.raises(ProviderError):
        _openai(_openai_client(FakeCompletions(response=response))).generate("u", "s")


def test_openai_sdk_errors_are_wrapped():
    completions = FakeCompletions(error=TimeoutError("read timed out"))
    with pytest.raises(ProviderError) as exc_info:
        _openai(_openai_client(completions)).generate("u", "s")
    assert "read timed out" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, TimeoutError)


def test_openai_availability():
    assert _openai(_openai_client(FakeCompletions())).is_available() is True
    assert _openai(_openai_client(FakeCompletions(), models_error=RuntimeError("401"))).is_available() is False
