"""
LLM Client Tests
================
All HTTP is mocked by patching httpx.AsyncClient.request.

Covers:
    - OpenAI-compatible payload and text extraction
    - Gemini payload, auth header and joined parts
    - Non-2xx → TransportError with status and Retry-After
    - httpx timeouts and the asyncio deadline → TransportError
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, patch

import httpx

from vidro_ai.core.errors import TransportError
from vidro_ai.llm.client import LLMClient, parse_retry_after
from vidro_ai.llm.router import ProviderConfig

CHAT_CONFIG = ProviderConfig(name="groq", api_key="gsk_test", base_url="https://api.test/v1", model="llama")
GEMINI_TEST_CONFIG = ProviderConfig(
    name="gemini", api_key="AIza_test", base_url="https://gemini.test/v1beta", model="gemini-2.0-flash"
)


def _response(status_code, url, json_data=None, headers=None, content=None):
    kwargs = {"json": json_data} if content is None else {"content": content}
    return httpx.Response(
        status_code, headers=headers, request=httpx.Request("POST", url), **kwargs
    )


def _run_with_client(coro_factory):
    async def runner():
        client = LLMClient()
        try:
            return await coro_factory(client)
        finally:
            await client.close()
    return asyncio.run(runner())


class TestChatCompletion:

    def test_returns_stripped_message_content(self):
        url = "https://api.test/v1/chat/completions"
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, url, {"choices": [{"message": {"content": "  {\"a\": 1}\n"}}]})
            text = _run_with_client(lambda c: c.chat_completion(CHAT_CONFIG, [{"role": "user", "content": "hi"}]))

        assert text == '{"a": 1}'
        method, called_url = mock_req.call_args.args
        kwargs = mock_req.call_args.kwargs
        assert (method, called_url) == ("POST", url)
        assert kwargs["headers"]["Authorization"] == "Bearer gsk_test"
        assert kwargs["json"]["model"] == "llama"
        assert kwargs["json"]["max_tokens"] == 2000
        assert kwargs["json"]["temperature"] == 0.3

    def test_overrides_token_budget(self):
        url = "https://api.test/v1/chat/completions"
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, url, {"choices": [{"message": {"content": "ok"}}]})
            _run_with_client(lambda c: c.chat_completion(CHAT_CONFIG, [], max_tokens=4000, temperature=0.0))

        payload = mock_req.call_args.kwargs["json"]
        assert payload["max_tokens"] == 4000
        assert payload["temperature"] == 0.0

    def test_empty_choices_yield_empty_string(self):
        url = "https://api.test/v1/chat/completions"
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, url, {"choices": []})
            assert _run_with_client(lambda c: c.chat_completion(CHAT_CONFIG, [])) == ""


class TestGenerateContent:

    def test_joins_parts_and_sends_key_header(self):
        url = "https://gemini.test/v1beta/models/gemini-2.0-flash:generateContent"
        body = {"candidates": [{"content": {"parts": [{"text": '{"title": '}, {"text": '"Crash"}'}]}}]}
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, url, body)
            text = _run_with_client(
                lambda c: c.generate_content(GEMINI_TEST_CONFIG, [{"text": "hi"}], system_instruction="be terse")
            )

        assert text == '{"title": "Crash"}'
        assert mock_req.call_args.args == ("POST", url)
        kwargs = mock_req.call_args.kwargs
        assert kwargs["headers"] == {"x-goog-api-key": "AIza_test"}
        assert kwargs["json"]["system_instruction"] == {"parts": [{"text": "be terse"}]}
        assert kwargs["json"]["contents"] == [{"role": "user", "parts": [{"text": "hi"}]}]
        assert kwargs["json"]["generationConfig"]["maxOutputTokens"] == 2000

    def test_no_system_instruction_when_empty(self):
        url = "https://gemini.test/v1beta/models/gemini-2.0-flash:generateContent"
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, url, {"candidates": []})
            text = _run_with_client(lambda c: c.generate_content(GEMINI_TEST_CONFIG, [{"text": "hi"}]))

        assert text == ""
        assert "system_instruction" not in mock_req.call_args.kwargs["json"]


class TestErrorMapping:

    def test_status_error_carries_code_and_retry_after(self):
        url = "https://api.test/v1/chat/completions"
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(
                429, url, {"error": "Too Many Requests"}, headers={"Retry-After": "7"}
            )
            with pytest.raises(TransportError) as exc_info:
                _run_with_client(lambda c: c.chat_completion(CHAT_CONFIG, []))

        err = exc_info.value
        assert err.status_code == 429
        assert err.retry_after == 7.0
        assert err.provider == "groq"
        assert "429" in str(err)

    def test_httpx_timeout(self):
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.side_effect = httpx.ReadTimeout("read timed out")
            with pytest.raises(TransportError, match="timed out"):
                _run_with_client(lambda c: c.chat_completion(CHAT_CONFIG, []))

    def test_deadline_overrun(self):
        async def hang(*args, **kwargs):
            await asyncio.sleep(5)

        fast = ProviderConfig(
            name="groq", api_key="k", base_url="https://api.test/v1", model="m", timeout_seconds=0.05
        )
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.side_effect = hang
            with pytest.raises(TransportError, match="timed out after"):
                _run_with_client(lambda c: c.chat_completion(fast, []))

    def test_non_json_body(self):
        url = "https://api.test/v1/chat/completions"
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, url, content=b"<html>gateway</html>")
            with pytest.raises(TransportError, match="non-JSON"):
                _run_with_client(lambda c: c.chat_completion(CHAT_CONFIG, []))

    def test_connect_error(self):
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.side_effect = httpx.ConnectError("refused")
            with pytest.raises(TransportError, match="request failed"):
                _run_with_client(lambda c: c.chat_completion(CHAT_CONFIG, []))


class TestFetchBytes:

    def test_returns_body(self):
        url = "https://cdn.test/rec.webm"
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, url, content=b"\x1aE\xdf\xa3")
            data = _run_with_client(lambda c: c.fetch_bytes(url, GEMINI_TEST_CONFIG))

        assert data == b"\x1aE\xdf\xa3"
        assert mock_req.call_args.args == ("GET", url)


class TestParseRetryAfter:

    @pytest.mark.parametrize("value, expected", [
        ("7", 7.0),
        (" 2.5 ", 2.5),
        ("Wed, 21 Oct 2015 07:28:00 GMT", None),
        ("", None),
        (None, None),
        ("-1", None),
    ])
    def test_values(self, value, expected):
        assert parse_retry_after(value) == expected
