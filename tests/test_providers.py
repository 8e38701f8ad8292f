import pytest

from roadmap_coach_ai.ai.providers.http_provider import HttpResponsesProvider
from roadmap_coach_ai.ai.providers.openai_provider import OpenAIResponsesProvider
from roadmap_coach_ai.ai.providers.registry import build_provider
from roadmap_coach_ai.ai.types import ProviderError


class DummyResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


def _clear_env(monkeypatch, keys):
    for key in keys:
        monkeypatch.delenv(key, raising=False)


def test_http_provider_posts_payload_to_responses_endpoint(monkeypatch):
    _clear_env(monkeypatch, ["AI_BASE_URL", "AI_API_KEY"])
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_BASE_URL", "http://gateway.local/v1/")
    calls = []

    def fake_post(url, headers, json, timeout):
        calls.append((url, headers, json, timeout))
        return DummyResponse(payload={"status": "completed", "output": []})

    monkeypatch.setattr("roadmap_coach_ai.ai.providers.http_provider.requests.post", fake_post)

    provider = HttpResponsesProvider(timeout_seconds=7)
    data = provider({"model": "m", "input": []})

    assert data == {"status": "completed", "output": []}
    url, headers, body, timeout = calls[0]
    assert url == "http://gateway.local/v1/responses"
    assert headers["Authorization"] == "Bearer sk-test"
    assert body == {"model": "m", "input": []}
    assert timeout == 7


def test_http_provider_prefers_ai_env_aliases(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "ai-key")
    monkeypatch.setenv("OPENAI_API_KEY", "openai-key")
    monkeypatch.setenv("AI_BASE_URL", "http://ai.local")

    provider = HttpResponsesProvider(base_url="http://config.local")
    assert provider._api_key == "ai-key"
    assert provider.base_url == "http://ai.local"


def test_http_provider_wraps_http_errors(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "k")

    def fake_post(url, headers, json, timeout):
        return DummyResponse(status_code=503)

    monkeypatch.setattr("roadmap_coach_ai.ai.providers.http_provider.requests.post", fake_post)

    with pytest.raises(ProviderError, match="503"):
        HttpResponsesProvider()({"model": "m"})


def test_http_provider_missing_key_raises(monkeypatch):
    _clear_env(monkeypatch, ["AI_API_KEY", "OPENAI_API_KEY"])
    with pytest.raises(ProviderError, match="missing"):
        HttpResponsesProvider()({"model": "m"})


def test_openai_provider_without_key_raises_at_call_time(monkeypatch):
    _clear_env(monkeypatch, ["OPENAI_API_KEY"])
    provider = OpenAIResponsesProvider()
    with pytest.raises(ProviderError, match="OPENAI_API_KEY missing"):
        provider({"model": "m"})


def test_openai_provider_dumps_sdk_response(monkeypatch):
    _clear_env(monkeypatch, ["OPENAI_API_KEY"])
    captured = {}

    class FakeResponse:
        def model_dump(self):
            return {"status": "completed", "output": []}

    class FakeResponses:
        def create(self, **kwargs):
            captured.update(kwargs)
            return FakeResponse()

    class FakeClient:
        responses = FakeResponses()

    provider = OpenAIResponsesProvider(timeout_seconds=12)
    provider._client = FakeClient()

    assert provider({"model": "m", "temperature": 0.3}) == {"status": "completed", "output": []}
    assert captured == {"model": "m", "temperature": 0.3, "timeout": 12}


def test_build_provider_selects_by_name(monkeypatch):
    _clear_env(monkeypatch, ["OPENAI_API_KEY", "AI_BASE_URL", "OPENAI_BASE_URL"])
    assert isinstance(build_provider({"ai": {"provider": "openai"}}), OpenAIResponsesProvider)

    http = build_provider({"ai": {"provider": "HTTP", "base_url": "http://x.local", "timeout_seconds": 5}})
    assert isinstance(http, HttpResponsesProvider)
    assert http.base_url == "http://x.local"
    assert http.timeout_seconds == 5


def test_build_provider_rejects_unknown_name():
    with pytest.raises(ValueError, match="Unknown AI provider"):
        build_provider({"ai": {"provider": "carrier-pigeon"}})


def test_build_provider_uses_default_timeout_when_unset(monkeypatch):
    _clear_env(monkeypatch, ["OPENAI_API_KEY"])
    provider = build_provider({"ai": {"provider": "openai"}})
    assert provider.timeout_seconds == 60

    provider = build_provider({"ai": {"provider": "openai", "timeout_seconds": "15"}})
    assert provider.timeout_seconds == 15


def test_openai_provider_explicit_key_builds_client(monkeypatch):
    _clear_env(monkeypatch, ["OPENAI_API_KEY"])
    built = {}

    def fake_sdk_client(api_key):
        built["key"] = api_key
        return object()

    monkeypatch.setattr("roadmap_coach_ai.ai.providers.openai_provider._sdk_client", fake_sdk_client)

    provider = OpenAIResponsesProvider(api_key="sk-explicit")
    assert built == {"key": "sk-explicit"}
    assert provider._client is not None
