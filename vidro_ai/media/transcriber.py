"""
Transcriber
===========
Speech-to-text for recordings via Groq's hosted Whisper endpoint.

The media URL is submitted as a form field so the vendor fetches the video
itself; nothing is downloaded locally.

Contract:
    transcribe() NEVER raises. Network errors, non-2xx replies, deadline
    overruns and malformed bodies all yield "" and a warning in the log.
    A missing transcript lowers analysis quality; it must not block report
    creation.
"""
import asyncio
import logging

import httpx

from vidro_ai.core.config import TRANSCRIPTION_TIMEOUT_SECONDS
from vidro_ai.core.constants import TRANSCRIPTION_LANGUAGE, WHISPER_MODEL

logger = logging.getLogger(__name__)

GROQ_TRANSCRIPTION_URL = "https://api.groq.com/openai/v1/audio/transcriptions"


class Transcriber:
    """Whisper transcription client."""

    def __init__(
        self,
        api_key: str,
        endpoint: str = GROQ_TRANSCRIPTION_URL,
        model: str = WHISPER_MODEL,
        language: str = TRANSCRIPTION_LANGUAGE,
        timeout_seconds: float = TRANSCRIPTION_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.endpoint = endpoint
        self.model = model
        self.language = language
        self.timeout_seconds = timeout_seconds

    async def transcribe(self, video_url: str) -> str:
        """Return the spoken-word transcript of ``video_url``, or "" on any failure."""
        logger.info("Transcribing audio with Whisper...")
        # (None, value) tuples make httpx send plain multipart form fields
        form = {
            "model": (None, self.model),
            "url": (None, video_url),
            "response_format": (None, "verbose_json"),
            "language": (None, self.language),
        }
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_seconds)) as http:
                resp = await asyncio.wait_for(
                    http.post(
                        self.endpoint,
                        headers={"Authorization": f"Bearer {self.api_key}"},
                        files=form,
                    ),
                    timeout=self.timeout_seconds,
                )
            if not 200 <= resp.status_code < 300:
                logger.warning(
                    "Whisper transcription failed: %d %s", resp.status_code, resp.text[:300]
                )
                return ""
            data = resp.json()
        except Exception as e:
            logger.warning("Whisper transcription error: %s", e)
            return ""

        text = data.get("text") if isinstance(data, dict) else None
        transcript = text.strip() if isinstance(text, str) else ""
        logger.info("Whisper transcription completed: %d chars", len(transcript))
        return transcript
