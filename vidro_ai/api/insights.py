"""
Insight endpoints
=================
POST /api/ai/insights       — one insight of a given type for a report
POST /api/ai/duplicates     — rank candidate reports as possible duplicates
POST /api/ai/suggest-reply  — three reply suggestions for a comment
POST /api/ai/search         — natural-language query → structured filters
POST /api/ai/chat           — answer a question about a report

Report data arrives in the request body (the caller owns persistence and
access control). Responses use the camelCase field names the web client
expects.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from vidro_ai.api.deps import get_provider, http_error
from vidro_ai.core.errors import PipelineError
from vidro_ai.models.insights import DuplicateDetectionResult, SearchQueryResult, SmartReplyResult
from vidro_ai.models.report_context import (
    ChatMessage,
    DuplicateCandidateInput,
    PriorInsights,
    ReportContext,
    TeamMember,
)
from vidro_ai.providers.base import VideoAnalyzer
from vidro_ai.services.insight_engine import CONTEXT_INSIGHTS, InsightEngine, InsightKind

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["Insights"])


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class InsightRequest(_Request):
    type: InsightKind
    context: ReportContext
    comments: List[str] = Field(default_factory=list)
    target_language: Optional[str] = Field(default=None, alias="targetLanguage")
    team_members: List[TeamMember] = Field(default_factory=list, alias="teamMembers")
    video_duration: Optional[float] = Field(default=None, alias="videoDuration", gt=0)
    timestamp: Optional[float] = Field(default=None, ge=0)


class DuplicatesRequest(_Request):
    context: ReportContext
    candidates: List[DuplicateCandidateInput] = Field(default_factory=list)


class SuggestReplyRequest(_Request):
    context: ReportContext
    comment_body: str = Field(alias="commentBody", min_length=1)
    comment_thread: List[str] = Field(default_factory=list, alias="commentThread")


class SearchRequest(_Request):
    query: str = Field(min_length=1)


class ChatRequest(_Request):
    context: ReportContext
    messages: List[ChatMessage] = Field(min_length=1)
    extra: Optional[PriorInsights] = None


def _missing(field_name: str, kind: InsightKind) -> HTTPException:
    return HTTPException(status_code=400, detail=f"{field_name} is required for {kind.value}")


async def _dispatch(engine: InsightEngine, body: InsightRequest):
    kind = body.type
    if kind in CONTEXT_INSIGHTS:
        return await engine.generate(kind, body.context)
    if kind is InsightKind.SENTIMENT:
        return await engine.detect_sentiment(body.context, body.comments)
    if kind is InsightKind.TRANSLATION:
        if not body.target_language:
            raise _missing("targetLanguage", kind)
        return await engine.translate_report(body.context, body.target_language)
    if kind is InsightKind.ASSIGNMENT:
        if not body.team_members:
            raise _missing("teamMembers", kind)
        return await engine.suggest_assignment(body.context, body.team_members)
    if kind is InsightKind.BUG_MOMENT:
        if body.video_duration is None:
            raise _missing("videoDuration", kind)
        return await engine.identify_bug_moment(body.context, body.video_duration)
    if kind is InsightKind.CHAPTERS:
        if body.video_duration is None:
            raise _missing("videoDuration", kind)
        return await engine.generate_chapters(body.context, body.video_duration)
    if kind is InsightKind.SCREEN_OCR:
        return await engine.extract_text_from_frame(body.context, body.timestamp)
    raise HTTPException(status_code=400, detail=f"Unsupported insight type: {kind.value}")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.post("/insights")
async def generate_insight(body: InsightRequest, provider: VideoAnalyzer = Depends(get_provider)):
    logger.info("[API] Insight request: %s", body.type.value)
    try:
        result = await _dispatch(InsightEngine(provider), body)
    except PipelineError as e:
        raise http_error(e) from e
    return {"type": body.type.value, "result": result.model_dump(by_alias=True)}


@router.post("/duplicates", response_model=DuplicateDetectionResult, response_model_by_alias=True)
async def detect_duplicates(body: DuplicatesRequest, provider: VideoAnalyzer = Depends(get_provider)):
    logger.info("[API] Duplicate check against %d candidates", len(body.candidates))
    try:
        return await InsightEngine(provider).detect_duplicates(body.context, body.candidates)
    except PipelineError as e:
        raise http_error(e) from e


@router.post("/suggest-reply", response_model=SmartReplyResult)
async def suggest_reply(body: SuggestReplyRequest, provider: VideoAnalyzer = Depends(get_provider)):
    try:
        return await InsightEngine(provider).suggest_replies(
            body.context, body.comment_body, body.comment_thread or None
        )
    except PipelineError as e:
        raise http_error(e) from e


@router.post("/search", response_model=SearchQueryResult, response_model_by_alias=True)
async def parse_search(body: SearchRequest, provider: VideoAnalyzer = Depends(get_provider)):
    logger.info("[API] Search query: %r", body.query)
    try:
        return await InsightEngine(provider).parse_search_query(body.query)
    except PipelineError as e:
        raise http_error(e) from e


@router.post("/chat")
async def chat(body: ChatRequest, provider: VideoAnalyzer = Depends(get_provider)):
    logger.info("[API] Report chat with %d messages", len(body.messages))
    try:
        reply = await InsightEngine(provider).chat_about_report(body.context, body.messages, body.extra)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PipelineError as e:
        raise http_error(e) from e
    return {"reply": reply}
