"""
HTTP Surface Tests
==================
Routes are exercised through FastAPI's TestClient with the provider selector
on app.state replaced by a mock; no real provider is ever built.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from main import app
from vidro_ai.core.errors import MissingAPIKeyError, RateLimitExceeded, TransportError
from vidro_ai.models.insights import VideoAnalysisResult

CONTEXT = {"title": "Cart total wrong", "consoleLogs": [{"type": "error", "args": ["NaN"]}]}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _provider(chat_reply=None, chat_error=None):
    provider = MagicMock()
    provider.name = "mock"
    provider.chat = AsyncMock(return_value=chat_reply, side_effect=chat_error)
    provider.analyze_video = AsyncMock(
        return_value=VideoAnalysisResult(title="Crash on save", description="d", transcript="[0:01] click")
    )
    return provider


@pytest.fixture
def install(monkeypatch):
    """Install a provider (or a selector error) on the app and return a TestClient."""
    def _install(provider=None, error=None):
        selector = MagicMock()
        selector.kind.value = "mock"
        if error is not None:
            selector.get.side_effect = error
        else:
            selector.get.return_value = provider
        monkeypatch.setattr(app.state, "provider_selector", selector)
        return TestClient(app)
    return _install


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
def test_health(install):
    client = install(_provider())
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ---------------------------------------------------------------------------
# Analyze
# ---------------------------------------------------------------------------
class TestAnalyzeRoute:

    def test_returns_analysis(self, install):
        provider = _provider()
        client = install(provider)

        resp = client.post("/api/ai/analyze", json={"mediaUrl": "https://cdn.test/rec.webm"})

        assert resp.status_code == 200
        assert resp.json()["title"] == "Crash on save"
        provider.analyze_video.assert_awaited_once_with("https://cdn.test/rec.webm", "video/webm")

    def test_missing_url_is_422(self, install):
        client = install(_provider())
        assert client.post("/api/ai/analyze", json={}).status_code == 422

    def test_transport_error_is_502(self, install):
        provider = _provider()
        provider.analyze_video = AsyncMock(side_effect=TransportError("gemini request failed", provider="gemini"))
        client = install(provider)

        resp = client.post("/api/ai/analyze", json={"mediaUrl": "https://cdn.test/rec.webm"})
        assert resp.status_code == 502

    def test_missing_key_is_503(self, install):
        client = install(error=MissingAPIKeyError("groq"))

        resp = client.post("/api/ai/analyze", json={"mediaUrl": "https://cdn.test/rec.webm"})

        assert resp.status_code == 503
        assert "GROQ_API_KEY" in resp.json()["detail"]


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------
class TestInsightRoutes:

    def test_severity(self, install):
        client = install(_provider('{"severity": "high", "priority": "p1", "reasoning": "r"}'))

        resp = client.post("/api/ai/insights", json={"type": "severity", "context": CONTEXT})

        assert resp.status_code == 200
        assert resp.json() == {
            "type": "severity",
            "result": {"severity": "high", "priority": "p1", "reasoning": "r"},
        }

    def test_unknown_type_is_422(self, install):
        client = install(_provider())
        resp = client.post("/api/ai/insights", json={"type": "horoscope", "context": CONTEXT})
        assert resp.status_code == 422

    def test_translation_requires_language(self, install):
        client = install(_provider())
        resp = client.post("/api/ai/insights", json={"type": "translation", "context": CONTEXT})
        assert resp.status_code == 400

    def test_unparseable_reply_is_502(self, install):
        client = install(_provider("I think it's pretty bad."))
        resp = client.post("/api/ai/insights", json={"type": "severity", "context": CONTEXT})
        assert resp.status_code == 502

    def test_rate_limit_is_429(self, install):
        client = install(_provider(chat_error=RateLimitExceeded("groq")))
        resp = client.post("/api/ai/insights", json={"type": "auto-tag", "context": CONTEXT})
        assert resp.status_code == 429

    def test_duplicates_without_candidates(self, install):
        provider = _provider()
        client = install(provider)

        resp = client.post("/api/ai/duplicates", json={"context": CONTEXT, "candidates": []})

        assert resp.status_code == 200
        assert resp.json() == {"duplicates": []}
        provider.chat.assert_not_awaited()

    def test_duplicates_use_camel_case(self, install):
        client = install(_provider(
            '{"duplicates": [{"reportId": "r9", "title": "Cart", "similarity": 75, "reasoning": "same"}]}'
        ))

        resp = client.post("/api/ai/duplicates", json={
            "context": CONTEXT,
            "candidates": [{"id": "r9", "title": "Cart"}],
        })

        assert resp.status_code == 200
        assert resp.json()["duplicates"][0]["reportId"] == "r9"

    def test_suggest_reply(self, install):
        client = install(_provider('{"replies": ["a", "b", "c"]}'))

        resp = client.post("/api/ai/suggest-reply", json={
            "context": CONTEXT,
            "commentBody": "Any update?",
        })

        assert resp.status_code == 200
        assert resp.json() == {"replies": ["a", "b", "c"]}

    def test_search(self, install):
        client = install(_provider(
            '{"keywords": ["login"], "filters": {"hasErrors": true}, "interpretation": "Login bugs with errors"}'
        ))

        resp = client.post("/api/ai/search", json={"query": "login bugs with errors"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["keywords"] == ["login"]
        assert body["filters"]["hasErrors"] is True

    def test_ocr_through_insights(self, install):
        provider = _provider('{"text": "Total: NaN", "regions": [{"text": "Total: NaN", "location": "cart"}]}')
        client = install(provider)

        resp = client.post("/api/ai/insights", json={"type": "ocr", "context": CONTEXT, "timestamp": 4.5})

        assert resp.status_code == 200
        assert resp.json()["result"] == {"text": "Total: NaN", "regions": [{"text": "Total: NaN", "location": "cart"}]}
        assert "4.5s into the video" in provider.chat.call_args.args[1]


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------
class TestChatRoute:

    def test_reply(self, install):
        provider = _provider("Check the discount parser.")
        client = install(provider)

        resp = client.post("/api/ai/chat", json={
            "context": CONTEXT,
            "messages": [{"role": "user", "content": "Where do I start?"}],
            "extra": {"rootCause": "Discount undefined"},
        })

        assert resp.status_code == 200
        assert resp.json() == {"reply": "Check the discount parser."}
        assert "**Root Cause:** Discount undefined" in provider.chat.call_args.args[1]

    def test_empty_messages_is_422(self, install):
        client = install(_provider())
        resp = client.post("/api/ai/chat", json={"context": CONTEXT, "messages": []})
        assert resp.status_code == 422

    def test_assistant_last_is_400(self, install):
        provider = _provider()
        client = install(provider)

        resp = client.post("/api/ai/chat", json={
            "context": CONTEXT,
            "messages": [{"role": "assistant", "content": "Hello"}],
        })

        assert resp.status_code == 400
        provider.chat.assert_not_awaited()

    def test_empty_reply_is_502(self, install):
        client = install(_provider("   "))
        resp = client.post("/api/ai/chat", json={
            "context": CONTEXT,
            "messages": [{"role": "user", "content": "Why?"}],
        })
        assert resp.status_code == 502
