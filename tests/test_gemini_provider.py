"""Tests for the Gemini provider."""

from types import SimpleNamespace

import pytest
from google.genai import errors

from chat_catalog.exceptions import AuthenticationError, ModelCallError, RateLimitError
from chat_catalog.providers.gemini import GeminiProvider


class MockGeminiClient:
    def __init__(self, text=None, error=None):
        self.calls = []
        self._text = text
        self._error = error
        self.models = SimpleNamespace(generate_content=self._generate_content)

    def _generate_content(self, model, contents, config):
        self.calls.append((model, contents, config))
        if self._error is not None:
            raise self._error
        return SimpleNamespace(text=self._text)


def test_provider_requires_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(AuthenticationError):
        GeminiProvider()


def test_generate_returns_raw_text():
    client = MockGeminiClient(text='{"confidence": 0.2, "note": "n"}')
    provider = GeminiProvider(model="gemini-test", client=client)

    result = provider.generate("prompt text")

    assert result == '{"confidence": 0.2, "note": "n"}'
    model, contents, config = client.calls[0]
    assert model == "gemini-test"
    assert contents == ["prompt text"]
    assert config.temperature == 0.0


def test_generate_empty_response_returns_empty_string():
    provider = GeminiProvider(client=MockGeminiClient(text=None))

    assert provider.generate("prompt") == ""


def test_generate_maps_quota_error():
    error = errors.ClientError(
        429,
        {"error": {"code": 429, "message": "Resource exhausted, check quota.", "status": "RESOURCE_EXHAUSTED"}},
    )
    provider = GeminiProvider(client=MockGeminiClient(error=error))

    with pytest.raises(RateLimitError):
        provider.generate("prompt")


def test_generate_maps_auth_error():
    error = errors.ClientError(
        400,
        {"error": {"code": 400, "message": "API key not valid.", "status": "INVALID_ARGUMENT"}},
    )
    provider = GeminiProvider(client=MockGeminiClient(error=error))

    with pytest.raises(AuthenticationError):
        provider.generate("prompt")


def test_generate_wraps_other_failures():
    provider = GeminiProvider(client=MockGeminiClient(error=TimeoutError("timed out")))

    with pytest.raises(ModelCallError) as excinfo:
        provider.generate("prompt")

    assert not isinstance(excinfo.value, (RateLimitError, AuthenticationError))


def test_metadata_names_model():
    provider = GeminiProvider(model="gemini-test", client=MockGeminiClient(text="{}"))

    assert provider.get_extraction_metadata() == {"provider": "gemini", "model": "gemini-test"}
