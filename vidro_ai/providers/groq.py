"""
Groq Provider
=============
OpenAI-compatible Groq endpoint. Free tier, no credit card required.

Groq's vision models accept images only (max 5 per request), so a video is
analysed as a sequence of sampled frames:

    media URL ──┬── FrameSampler.sample()      (HEAD-probed frame URLs)
                └── Transcriber.transcribe()   (Whisper, "" on failure)
                         │ asyncio.gather
                         ▼
    frames + prompt (with transcript) → chat completion → VideoAnalysisResult

Frame sampling and transcription are independent, so they run concurrently
and are joined only when the prompt is built.
"""
import asyncio
import logging
from typing import Optional

from vidro_ai.llm.client import LLMClient
from vidro_ai.llm.prompts import build_frame_sequence_prompt
from vidro_ai.llm.router import ProviderConfig, default_config
from vidro_ai.media.frames import FrameSampler, is_video_url
from vidro_ai.media.transcriber import Transcriber
from vidro_ai.models.insights import VideoAnalysisResult
from vidro_ai.providers.base import VideoAnalyzer, decode_video_result

logger = logging.getLogger(__name__)


async def _no_transcript() -> str:
    return ""


class GroqProvider(VideoAnalyzer):
    """Frame-sequence video analysis plus Whisper transcription."""

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        client: Optional[LLMClient] = None,
        frame_sampler: Optional[FrameSampler] = None,
        transcriber: Optional[Transcriber] = None,
    ) -> None:
        super().__init__(config or default_config("groq"), client)
        self.frame_sampler = frame_sampler or FrameSampler()
        self.transcriber = transcriber or Transcriber(api_key=self.config.api_key)

    async def analyze_video(self, media_url: str, mime_type: str) -> VideoAnalysisResult:
        is_video = is_video_url(media_url)

        image_urls, audio_transcript = await asyncio.gather(
            self.frame_sampler.sample(media_url),
            self.transcriber.transcribe(media_url) if is_video else _no_transcript(),
        )

        prompt = build_frame_sequence_prompt(audio_transcript or None)
        content = [{"type": "image_url", "image_url": {"url": url}} for url in image_urls]
        content.append({"type": "text", "text": prompt})
        messages = [{"role": "user", "content": content}]

        text = await self._retry(
            lambda: self.client.chat_completion(self.config, messages, max_tokens=2000, temperature=0.3),
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
