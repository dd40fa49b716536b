"""
OpenAI Provider
===============
OpenAI chat completions with the media passed by URL reference.

No download and no frame sampling: the public URL goes straight into an
``image_url`` part and the vendor fetches it. Best suited to screenshots.
"""
import logging
from typing import Optional

from vidro_ai.llm.client import LLMClient
from vidro_ai.llm.prompts import VIDEO_SYSTEM_PROMPT
from vidro_ai.llm.router import ProviderConfig, default_config
from vidro_ai.models.insights import VideoAnalysisResult
from vidro_ai.providers.base import VideoAnalyzer, decode_video_result

logger = logging.getLogger(__name__)


class OpenAIProvider(VideoAnalyzer):
    """Direct URL-reference analysis."""

    def __init__(self, config: Optional[ProviderConfig] = None, client: Optional[LLMClient] = None) -> None:
        super().__init__(config or default_config("openai"), client)

    async def analyze_video(self, media_url: str, mime_type: str) -> VideoAnalysisResult:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": media_url, "detail": "auto"}},
                    {"type": "text", "text": VIDEO_SYSTEM_PROMPT},
                ],
            }
        ]
        text = await self._retry(
            lambda: self.client.chat_completion(self.config, messages, max_tokens=2000),
            self.video_retry_policy,
        )
        return decode_video_result(text)

    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        return await self.client.chat_completion(
            self.config, messages, max_tokens=max_tokens, temperature=temperature
        )
