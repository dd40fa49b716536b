"""
Video Analysis Service
======================
Entry point for turning an uploaded recording into title, description and
transcript. Provider-agnostic: the backend is injected.

Unparseable model output never fails this call (the provider degrades to a
raw-text result); transport and rate-limit errors do.
"""
import logging
import time

from vidro_ai.core.constants import DEFAULT_MIME_TYPE
from vidro_ai.models.insights import VideoAnalysisResult
from vidro_ai.providers.base import VideoAnalyzer

logger = logging.getLogger(__name__)


class VideoAnalysisService:
    """Thin orchestration around VideoAnalyzer.analyze_video."""

    def __init__(self, provider: VideoAnalyzer) -> None:
        self.provider = provider

    async def analyze(self, media_url: str, mime_type: str = DEFAULT_MIME_TYPE) -> VideoAnalysisResult:
        logger.info("Analysing media with %s: %s", self.provider.name, media_url)
        started = time.monotonic()

        result = await self.provider.analyze_video(media_url, mime_type or DEFAULT_MIME_TYPE)

        logger.info(
            "Analysis complete in %.1fs: %r (%d transcript chars)",
            time.monotonic() - started,
            result.title,
            len(result.transcript),
        )
        return result
