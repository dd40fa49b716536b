"""
Insight Result Models
=====================
Pydantic models for everything the pipeline hands back to its callers.

Every model is frozen and accepts both the camelCase names the LLM is told to
emit (reportId, testCases, ...) and the snake_case attribute names.

Decoding Rules:
    - Enumerated fields (severity, priority, urgency, ...) are lower-cased
      before validation, since models capitalise them freely.
    - Free-text fields accept a JSON object or array from the model and render
      it as text instead of failing; a missing field still fails.
    - VideoAnalysisResult never carries empty title / null fields.
"""
import json
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vidro_ai.core.constants import (
    DUPLICATE_SIMILARITY_FLOOR,
    SMART_REPLY_COUNT,
    UNTITLED_RECORDING,
)


def _as_text(value: Any) -> Any:
    """Render a model-supplied value as plain text where possible."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return "\n".join(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return str(value)


def _lowercase(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Video analysis
# ---------------------------------------------------------------------------
class VideoAnalysisResult(_Result):
    """Title, description and transcript of a recording."""

    title: str = UNTITLED_RECORDING
    description: str = ""
    transcript: str = ""

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, v: Any) -> Any:
        v = _as_text(v)
        return v if v else UNTITLED_RECORDING

    @field_validator("description", "transcript", mode="before")
    @classmethod
    def _default_text(cls, v: Any) -> Any:
        v = _as_text(v)
        return v if v else ""


# ---------------------------------------------------------------------------
# Core insights
# ---------------------------------------------------------------------------
class SeverityResult(_Result):
    severity: Literal["critical", "high", "medium", "low"]
    priority: Literal["p0", "p1", "p2", "p3"]
    reasoning: str = ""

    @field_validator("severity", "priority", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _lowercase(v)


class ReproStepsResult(_Result):
    steps: str

    @field_validator("steps", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return _as_text(v)


class RootCauseResult(_Result):
    analysis: str

    @field_validator("analysis", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return _as_text(v)


class TagsResult(_Result):
    tags: List[str]


class LogSummaryResult(_Result):
    summary: str

    @field_validator("summary", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return _as_text(v)


class StakeholderSummaryResult(_Result):
    summary: str

    @field_validator("summary", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return _as_text(v)


class SuggestedFixResult(_Result):
    suggestion: str

    @field_validator("suggestion", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return _as_text(v)


class DuplicateCandidate(_Result):
    report_id: str = Field(alias="reportId")
    title: str
    similarity: float = Field(ge=0, le=100)
    reasoning: str = ""


class DuplicateDetectionResult(_Result):
    """Likely duplicates; an empty list means none were found."""

    duplicates: List[DuplicateCandidate] = Field(default_factory=list)

    @field_validator("duplicates")
    @classmethod
    def _drop_weak_matches(cls, v: List[DuplicateCandidate]) -> List[DuplicateCandidate]:
        return [c for c in v if c.similarity >= DUPLICATE_SIMILARITY_FLOOR]


class SmartReplyResult(_Result):
    replies: List[str]

    @field_validator("replies")
    @classmethod
    def _exactly_three(cls, v: List[str]) -> List[str]:
        replies = [r.strip() for r in v if r and r.strip()]
        if len(replies) < SMART_REPLY_COUNT:
            raise ValueError(
                f"expected {SMART_REPLY_COUNT} replies, got {len(replies)}"
            )
        return replies[:SMART_REPLY_COUNT]


class SearchFilters(_Result):
    severity: Optional[str] = None
    type: Optional[str] = None
    has_errors: Optional[bool] = Field(default=None, alias="hasErrors")
    tags: Optional[List[str]] = None

    @field_validator("severity", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _lowercase(v) or None

    @field_validator("type", mode="before")
    @classmethod
    def _upper(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper() or None
        return v


class SearchQueryResult(_Result):
    keywords: List[str] = Field(default_factory=list)
    filters: SearchFilters = Field(default_factory=SearchFilters)
    interpretation: str


# ---------------------------------------------------------------------------
# Audits
# ---------------------------------------------------------------------------
class AccessibilityIssue(_Result):
    rule: str
    severity: Literal["critical", "serious", "moderate", "minor"]
    description: str
    recommendation: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _lowercase(v)


class AccessibilityAuditResult(_Result):
    issues: List[AccessibilityIssue] = Field(default_factory=list)
    summary: str
    score: int = Field(ge=0, le=100)


class PerformanceBottleneck(_Result):
    type: str
    description: str
    impact: Literal["high", "medium", "low"]
    suggestion: str = ""

    @field_validator("impact", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _lowercase(v)


class PerformanceAnalysisResult(_Result):
    bottlenecks: List[PerformanceBottleneck] = Field(default_factory=list)
    summary: str


class SecurityVulnerability(_Result):
    type: str
    severity: Literal["critical", "high", "medium", "low"]
    description: str
    recommendation: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _lowercase(v)


class SecurityScanResult(_Result):
    vulnerabilities: List[SecurityVulnerability] = Field(default_factory=list)
    summary: str


class TestCaseResult(_Result):
    test_cases: str = Field(alias="testCases")

    @field_validator("test_cases", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return _as_text(v)


# ---------------------------------------------------------------------------
# Communication
# ---------------------------------------------------------------------------
class SentimentResult(_Result):
    sentiment: Literal["frustrated", "neutral", "constructive"]
    urgency: Literal["critical", "high", "medium", "low"]
    reasoning: str = ""

    @field_validator("sentiment", "urgency", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _lowercase(v)


class TranslationResult(_Result):
    language: str
    title: str
    description: str = ""


class DigestIssue(_Result):
    title: str
    severity: str = ""
    count: int = 1


class WeeklyDigestResult(_Result):
    summary: str
    top_issues: List[DigestIssue] = Field(default_factory=list, alias="topIssues")
    trends: str = ""
    recommendations: str = ""

    @field_validator("summary", "trends", "recommendations", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return _as_text(v)


class SmartAssignmentResult(_Result):
    suggested_assignee: str = Field(alias="suggestedAssignee")
    reasoning: str = ""
    required_skills: List[str] = Field(default_factory=list, alias="requiredSkills")


# ---------------------------------------------------------------------------
# Recording timeline
# ---------------------------------------------------------------------------
class VideoHighlightResult(_Result):
    start_time: float = Field(ge=0, alias="startTime")
    end_time: float = Field(ge=0, alias="endTime")
    description: str = ""
    confidence: Literal["high", "medium", "low"] = "medium"

    @field_validator("confidence", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _lowercase(v)


class ReportDifference(_Result):
    area: str
    description: str
    severity: Literal["major", "minor", "cosmetic"]

    @field_validator("severity", mode="before")
    @classmethod
    def _normalise(cls, v: Any) -> Any:
        return _lowercase(v)


class ReportComparisonResult(_Result):
    differences: List[ReportDifference] = Field(default_factory=list)
    summary: str
    overall_similarity: float = Field(ge=0, le=100, alias="overallSimilarity")


class VideoChapter(_Result):
    title: str
    start: float = Field(ge=0)
    end: float = Field(ge=0)


class VideoChaptersResult(_Result):
    chapters: List[VideoChapter]


# ---------------------------------------------------------------------------
# Screen OCR
# ---------------------------------------------------------------------------
class OCRRegion(_Result):
    text: str
    location: str = ""


class OCRResult(_Result):
    """Text likely visible on screen at one moment of a recording."""

    text: str
    regions: List[OCRRegion] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def _as_plain_text(cls, v: Any) -> Any:
        return _as_text(v)
