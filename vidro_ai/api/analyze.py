"""
POST /api/ai/analyze
====================
Analyse an uploaded recording or screenshot and return its title,
description and transcript.

The media must already be at a publicly reachable URL; the active provider
decides whether it is downloaded, sampled into frames or passed by reference.
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from vidro_ai.api.deps import get_provider, http_error
from vidro_ai.core.constants import DEFAULT_MIME_TYPE
from vidro_ai.core.errors import PipelineError
from vidro_ai.models.insights import VideoAnalysisResult
from vidro_ai.providers.base import VideoAnalyzer
from vidro_ai.services.video_analysis import VideoAnalysisService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["Analysis"])


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    media_url: str = Field(alias="mediaUrl", min_length=1)
    mime_type: str = Field(default=DEFAULT_MIME_TYPE, alias="mimeType")


@router.post("/analyze", response_model=VideoAnalysisResult)
async def analyze_media(body: AnalyzeRequest, provider: VideoAnalyzer = Depends(get_provider)):
    logger.info("[API] Analyse request for %s (%s)", body.media_url, body.mime_type)
    try:
        return await VideoAnalysisService(provider).analyze(body.media_url, body.mime_type)
    except PipelineError as e:
        raise http_error(e) from e
