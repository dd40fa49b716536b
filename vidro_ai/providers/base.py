"""
Provider Interface
==================
Capability surface every AI backend implements.

    analyze_video(media_url, mime_type) -> VideoAnalysisResult
    chat(system_prompt, user_prompt, max_tokens, temperature) -> str

Implementations differ only in how media reaches the model (inline bytes,
direct URL, sampled frame sequence) and which endpoint they call. Shared
behaviour lives here:

    - The API key is checked at construction (ConfigurationError if absent)
    - Inference calls run through the Retry Policy
    - Video replies decode under ParseFailurePolicy.DEGRADE: unparseable
      output becomes {title: "Untitled Recording", description: "",
      transcript: <raw text>} instead of an error
"""
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, TypeVar

from vidro_ai.core.constants import UNTITLED_RECORDING
from vidro_ai.llm.client import LLMClient
from vidro_ai.llm.parser import ParseFailurePolicy, parse_structured
from vidro_ai.llm.retry import RetryPolicy, with_retry
from vidro_ai.llm.router import INSIGHT_BASE_DELAY_SECONDS, ProviderConfig
from vidro_ai.models.insights import VideoAnalysisResult

logger = logging.getLogger(__name__)

R = TypeVar("R")

VIDEO_PARSE_POLICY = ParseFailurePolicy.DEGRADE


def raw_text_video_result(text: str) -> VideoAnalysisResult:
    """Best-effort result when the model's reply is not JSON."""
    return VideoAnalysisResult(title=UNTITLED_RECORDING, description="", transcript=text)


def decode_video_result(text: str) -> VideoAnalysisResult:
    return parse_structured(
        text,
        VideoAnalysisResult,
        policy=VIDEO_PARSE_POLICY,
        fallback=raw_text_video_result,
    )


class VideoAnalyzer(ABC):
    """
    Base class for AI backends.

    Parameters
    ----------
    config : ProviderConfig
        Endpoint, model and credentials; the key is validated immediately.
    client : LLMClient or None
        Shared HTTP client (auto-created if not provided).
    """

    def __init__(self, config: ProviderConfig, client: Optional[LLMClient] = None) -> None:
        self.config = config.require_api_key()
        self.client = client or LLMClient(timeout_seconds=config.timeout_seconds)
        self.video_retry_policy: RetryPolicy = config.retry_policy
        self.chat_retry_policy = RetryPolicy(
            max_retries=config.max_retries, base_delay=INSIGHT_BASE_DELAY_SECONDS
        )
        logger.info("%s provider initialised with model: %s", config.name, config.model)

    @property
    def name(self) -> str:
        return self.config.name

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    @abstractmethod
    async def analyze_video(self, media_url: str, mime_type: str) -> VideoAnalysisResult:
        """Produce title, description and transcript for a recording."""

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> str:
        """Text-only inference call, retried on rate limits."""
        return await self._retry(
            lambda: self._complete(system_prompt, user_prompt, max_tokens, temperature),
            self.chat_retry_policy,
        )

    async def close(self) -> None:
        await self.client.close()

    # -------------------------------------------------------------------
    # Backend hooks
    # -------------------------------------------------------------------
    @abstractmethod
    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """One raw text inference call against this backend."""

    async def _retry(self, fn: Callable[[], Awaitable[R]], policy: RetryPolicy) -> R:
        return await with_retry(fn, policy, label=self.name)
