"""
Frame Sampler
=============
Turns a video URL into a short sequence of still-image URLs for vision models
that cannot ingest video directly.

Strategy:
    - A FrameUrlStrategy knows one media host's URL-rewrite syntax for
      "JPEG frame at N seconds" (default: Cloudinary transformations)
    - Candidates are derived for FRAME_OFFSETS (0, 5, 10, 20, 30 s)
    - All candidates are HEAD-probed concurrently; fan-out never exceeds the
      number of offsets
    - Offsets past the end of the clip fail their probe and are dropped
      without affecting the others

Guarantees:
    - Result order follows the offsets, not probe completion order
    - At most MAX_FRAMES URLs
    - Never empty: offset-0 frame if every probe fails, the raw URL if the
      media host is not transformable
"""
import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import httpx

from vidro_ai.core.config import PROBE_TIMEOUT_SECONDS
from vidro_ai.core.constants import FRAME_OFFSETS, MAX_FRAMES

logger = logging.getLogger(__name__)

VIDEO_EXTENSION_RE = re.compile(r"\.(webm|mp4|mov|avi|mkv)(\?|$)", re.IGNORECASE)


def is_video_url(url: str) -> bool:
    return bool(VIDEO_EXTENSION_RE.search(url))


# ---------------------------------------------------------------------------
# URL strategies
# ---------------------------------------------------------------------------
class FrameUrlStrategy(ABC):
    """Media-host specific rule for deriving a still frame from a video URL."""

    @abstractmethod
    def is_transformable(self, video_url: str) -> bool:
        """Return True if this host can render frames for the URL."""

    @abstractmethod
    def frame_url(self, video_url: str, offset_seconds: int) -> str:
        """Return the URL of the JPEG frame at ``offset_seconds``."""


class CloudinaryFrameStrategy(FrameUrlStrategy):
    """
    Cloudinary on-the-fly transformations.

    .../video/upload/v123/path.webm → .../video/upload/so_5,f_jpg,w_1280/v123/path.jpg
    """

    _UPLOAD_RE = re.compile(r"/upload/")
    _EXTENSION_RE = re.compile(r"\.\w+$")

    def __init__(self, width: int = 1280) -> None:
        self.width = width

    def is_transformable(self, video_url: str) -> bool:
        return "cloudinary.com" in video_url and "/upload/" in video_url and is_video_url(video_url)

    def frame_url(self, video_url: str, offset_seconds: int) -> str:
        url = self._UPLOAD_RE.sub(
            f"/upload/so_{offset_seconds},f_jpg,w_{self.width}/", video_url, count=1
        )
        return self._EXTENSION_RE.sub(".jpg", url)


# ---------------------------------------------------------------------------
# Sampler
# ---------------------------------------------------------------------------
class FrameSampler:
    """
    Derives and validates still-frame URLs for a video.

    Parameters
    ----------
    strategy : FrameUrlStrategy or None
        URL-rewrite rule (default: CloudinaryFrameStrategy).
    offsets : sequence of int
        Candidate offsets in seconds, ascending.
    max_frames : int
        Upper bound on returned URLs.
    probe_timeout : float
        Deadline for each HEAD probe.
    """

    def __init__(
        self,
        strategy: Optional[FrameUrlStrategy] = None,
        offsets: Sequence[int] = FRAME_OFFSETS,
        max_frames: int = MAX_FRAMES,
        probe_timeout: float = PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self.strategy = strategy or CloudinaryFrameStrategy()
        self.offsets = tuple(offsets)
        self.max_frames = max_frames
        self.probe_timeout = probe_timeout

    def candidate_urls(self, video_url: str) -> list[str]:
        return [self.strategy.frame_url(video_url, s) for s in self.offsets]

    async def sample(self, video_url: str) -> list[str]:
        """Return 1..max_frames image URLs for the video, in offset order."""
        if not self.strategy.is_transformable(video_url):
            return [video_url]

        candidates = self.candidate_urls(video_url)
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.probe_timeout), follow_redirects=True
        ) as http:
            checks = await asyncio.gather(*(self._probe(http, url) for url in candidates))

        frames = [url for url, ok in zip(candidates, checks) if ok][: self.max_frames]
        if not frames:
            logger.warning("No frame probes succeeded for %s, using offset-0 frame", video_url)
            return [self.strategy.frame_url(video_url, self.offsets[0] if self.offsets else 0)]

        logger.info("Using %d/%d frames for analysis", len(frames), len(candidates))
        return frames

    async def _probe(self, http: httpx.AsyncClient, url: str) -> bool:
        try:
            resp = await asyncio.wait_for(http.head(url), timeout=self.probe_timeout)
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            logger.debug("Frame probe failed for %s: %s", url, e)
            return False
        return 200 <= resp.status_code < 300
