"""
Tests de GeminiProvider y LLMProviderFactory (HTTP simulado con httpx.MockTransport)
"""
import json

import httpx
import pytest

from evaladmin.llm import GeminiProvider, LLMMessage, LLMProviderFactory, LLMRole, MockLLMProvider
from tests.conftest import run


def gemini_reply(text, finish_reason="STOP"):
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": part} for part in text]}, "finishReason": finish_reason}
        ],
        "usageMetadata": {"promptTokenCount": 12, "candidatesTokenCount": 5, "totalTokenCount": 17},
    }


def make_provider(handler, **config):
    return GeminiProvider({
        "api_key": "test-key",
        "transport": httpx.MockTransport(handler),
        "retry_backoff": 0,
        **config,
    })


def test_sends_generate_content_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_reply(["Hola", " mundo"]))

    provider = make_provider(handler, model="gemini-2.0-flash")
    response = run(provider.generate(
        [
            LLMMessage(role=LLMRole.SYSTEM, content="Sé breve"),
            LLMMessage(role=LLMRole.USER, content="Saluda"),
        ],
        temperature=0.2,
        max_tokens=64,
    ))

    assert seen["url"] == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
    )
    assert seen["key"] == "test-key"
    assert seen["body"]["contents"] == [{"role": "user", "parts": [{"text": "Saluda"}]}]
    assert seen["body"]["systemInstruction"] == {"parts": [{"text": "Sé breve"}]}
    assert seen["body"]["generationConfig"] == {"temperature": 0.2, "maxOutputTokens": 64}

    assert response.content == "Hola mundo"
    assert response.model == "gemini-2.0-flash"
    assert response.usage["total_tokens"] == 17
    assert response.metadata["finish_reason"] == "STOP"


def test_client_error_is_raised_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": {"message": "bad request"}})

    provider = make_provider(handler, max_retries=3)

    with pytest.raises(httpx.HTTPStatusError):
        run(provider.generate([LLMMessage(role=LLMRole.USER, content="x")]))
    assert len(calls) == 1


def test_retries_transient_errors():
    responses = [
        httpx.Response(503),
        httpx.Response(429),
        httpx.Response(200, json=gemini_reply(["ok"])),
    ]

    def handler(request):
        return responses.pop(0)

    provider = make_provider(handler, max_retries=2)
    response = run(provider.generate([LLMMessage(role=LLMRole.USER, content="x")]))

    assert response.content == "ok"
    assert response.metadata["retries"] == 2


def test_gives_up_after_max_retries():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("unreachable", request=request)

    provider = make_provider(handler, max_retries=1)

    with pytest.raises(httpx.ConnectError):
        run(provider.generate([LLMMessage(role=LLMRole.USER, content="x")]))
    assert len(calls) == 2


def test_no_candidates_is_value_error():
    provider = make_provider(lambda request: httpx.Response(200, json={"candidates": []}))

    with pytest.raises(ValueError):
        run(provider.generate([LLMMessage(role=LLMRole.USER, content="x")]))


def test_requires_api_key():
    with pytest.raises(ValueError):
        GeminiProvider({"api_key": ""})


class TestFactory:
    def test_create_from_env_gemini(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
        monkeypatch.setenv("LLM_MAX_RETRIES", "4")

        provider = LLMProviderFactory.create_from_env("gemini")

        assert isinstance(provider, GeminiProvider)
        assert provider.api_key == "env-key"
        assert provider.model == "gemini-test"
        assert provider.max_retries == 4

    def test_create_from_env_without_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(ValueError):
            LLMProviderFactory.create_from_env("gemini")

    def test_mock_from_env(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "mock")
        assert isinstance(LLMProviderFactory.create_from_env(), MockLLMProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            LLMProviderFactory.create("nope")
