"""
Gemini Provider
===============
Google Gemini via the generateContent REST API.

Gemini ingests video natively, so the recording is downloaded once and
inlined as base64 ``inlineData`` with its MIME type; audio is transcribed by
the model itself. A failed download is a TransportError (there is nothing to
analyse without the bytes).
"""
import base64
import logging
from typing import Optional

from vidro_ai.core.constants import DEFAULT_MIME_TYPE
from vidro_ai.llm.client import LLMClient
from vidro_ai.llm.prompts import VIDEO_SYSTEM_PROMPT
from vidro_ai.llm.router import ProviderConfig, default_config
from vidro_ai.models.insights import VideoAnalysisResult
from vidro_ai.providers.base import VideoAnalyzer, decode_video_result

logger = logging.getLogger(__name__)


class GeminiProvider(VideoAnalyzer):
    """Inline-bytes video analysis."""

    def __init__(self, config: Optional[ProviderConfig] = None, client: Optional[LLMClient] = None) -> None:
        super().__init__(config or default_config("gemini"), client)

    async def analyze_video(self, media_url: str, mime_type: str) -> VideoAnalysisResult:
        video_bytes = await self.client.fetch_bytes(media_url, self.config)
        logger.info("Downloaded %d bytes for Gemini analysis", len(video_bytes))

        parts = [
            {
                "inlineData": {
                    "mimeType": mime_type or DEFAULT_MIME_TYPE,
                    "data": base64.b64encode(video_bytes).decode("ascii"),
                }
            },
            {"text": VIDEO_SYSTEM_PROMPT},
        ]

        text = await self._retry(
            lambda: self.client.generate_content(self.config, parts),
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
        return await self.client.generate_content(
            self.config,
            [{"text": user_prompt}],
            system_instruction=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
        )
