"""
LLM Client
==========
Unified asynchronous HTTP client for the hosted LLM providers.

Wire Formats:
    - OpenAI-compatible (Groq, OpenAI): POST {base_url}/chat/completions
      {model, messages, max_tokens, temperature}; text = choices[0].message.content
    - Gemini: POST {base_url}/models/{model}:generateContent (x-goog-api-key header)
      {system_instruction, contents[].parts, generationConfig}; text = joined parts

Deadlines:
    - Every request runs under asyncio.wait_for(provider.timeout_seconds) on
      top of the httpx timeout, so a hung upstream cannot stall a report.

Error Mapping:
    - Deadline overrun / httpx timeout  → TransportError (no status)
    - Non-2xx                           → TransportError(status_code, retry_after)
    - Other httpx failures              → TransportError
    Classification for retries happens in the Retry Policy, not here.
"""
import asyncio
import logging
from typing import Any, Optional

import httpx

from vidro_ai.core.config import INFERENCE_TIMEOUT_SECONDS
from vidro_ai.core.errors import TransportError
from vidro_ai.llm.router import ProviderConfig

logger = logging.getLogger(__name__)

_ERROR_BODY_CHARS = 500


# ---------------------------------------------------------------------------
# Error helpers
# ---------------------------------------------------------------------------
def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given in seconds. HTTP-date values are ignored."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _status_error(exc: httpx.HTTPStatusError, provider_name: str) -> TransportError:
    response = exc.response
    try:
        body = response.text[:_ERROR_BODY_CHARS]
    except httpx.ResponseNotRead:
        body = ""
    return TransportError(
        f"{provider_name} API error {response.status_code}: {body}".strip(),
        provider=provider_name,
        status_code=response.status_code,
        retry_after=parse_retry_after(response.headers.get("Retry-After")),
    )


# ---------------------------------------------------------------------------
# LLM Client
# ---------------------------------------------------------------------------
class LLMClient:
    """
    Async HTTP client for calling LLM providers.

    Usage:
        client = LLMClient()
        text = await client.chat_completion(default_config("groq"), messages)
        await client.close()
    """

    def __init__(self, timeout_seconds: float = INFERENCE_TIMEOUT_SECONDS) -> None:
        self.timeout_seconds = timeout_seconds
        self._http: Optional[httpx.AsyncClient] = None

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialise the HTTP client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                follow_redirects=True,
            )
        return self._http

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    async def _send(
        self,
        method: str,
        url: str,
        provider: ProviderConfig,
        **kwargs: Any,
    ) -> httpx.Response:
        http = await self._get_http()
        try:
            resp = await asyncio.wait_for(
                http.request(method, url, **kwargs),
                timeout=provider.timeout_seconds,
            )
            resp.raise_for_status()
            return resp
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"{provider.name} request timed out after {provider.timeout_seconds:.0f}s",
                provider=provider.name,
            ) from e
        except httpx.TimeoutException as e:
            raise TransportError(
                f"{provider.name} request timed out: {e}", provider=provider.name
            ) from e
        except httpx.HTTPStatusError as e:
            raise _status_error(e, provider.name) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"{provider.name} request failed: {e}", provider=provider.name
            ) from e

    async def _post_json(
        self,
        url: str,
        payload: dict,
        provider: ProviderConfig,
        headers: Optional[dict] = None,
    ) -> dict:
        resp = await self._send("POST", url, provider, json=payload, headers=headers)
        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError(
                f"{provider.name} returned a non-JSON body", provider=provider.name
            ) from e
        return data if isinstance(data, dict) else {}

    async def chat_completion(
        self,
        provider: ProviderConfig,
        messages: list[dict],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Call an OpenAI-compatible chat completions endpoint.

        Parameters
        ----------
        provider : ProviderConfig
            Groq or OpenAI configuration.
        messages : list of dict
            Chat messages; ``content`` may be a string or a list of
            text / image_url parts.
        max_tokens : int or None
            Output cap (defaults to provider.max_tokens).
        temperature : float or None
            Sampling temperature (defaults to provider.temperature).

        Returns
        -------
        str
            The first choice's message text, stripped ("" if absent).
        """
        url = f"{provider.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {provider.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": provider.model,
            "messages": messages,
            "max_tokens": max_tokens or provider.max_tokens,
            "temperature": provider.temperature if temperature is None else temperature,
        }
        data = await self._post_json(url, payload, provider, headers=headers)

        try:
            choices = data.get("choices", [])
            if choices:
                content = choices[0].get("message", {}).get("content") or ""
                return content.strip() if isinstance(content, str) else ""
        except (IndexError, KeyError, TypeError, AttributeError):
            pass
        logger.warning("%s returned no choices", provider.name)
        return ""

    async def generate_content(
        self,
        provider: ProviderConfig,
        parts: list[dict],
        system_instruction: str = "",
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Call the Gemini generateContent REST API and return the joined text parts."""
        url = f"{provider.base_url}/models/{provider.model}:generateContent"
        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "temperature": provider.temperature if temperature is None else temperature,
                "maxOutputTokens": max_tokens or provider.max_tokens,
            },
        }
        if system_instruction:
            payload["system_instruction"] = {"parts": [{"text": system_instruction}]}

        data = await self._post_json(
            url, payload, provider, headers={"x-goog-api-key": provider.api_key}
        )

        try:
            candidates = data.get("candidates", [])
            if candidates:
                content_parts = candidates[0].get("content", {}).get("parts", [])
                return "".join(p.get("text", "") for p in content_parts).strip()
        except (IndexError, KeyError, TypeError, AttributeError):
            pass
        logger.warning("%s returned no candidates", provider.name)
        return ""

    async def fetch_bytes(self, url: str, provider: ProviderConfig) -> bytes:
        """Download a media file under the provider's deadline."""
        resp = await self._send("GET", url, provider)
        return resp.content
