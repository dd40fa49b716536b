"""
Insight Engine
==============
Turns a bug report into structured, machine-checked insights.

Pipeline (every insight):
    1. Fixed system prompt carrying the reply schema and rubric
    2. User prompt = Context Builder output (+ per-insight extras)
    3. provider.chat(...) through the Retry Policy
    4. Response Parser decodes into the result model (ParseFailurePolicy.RAISE)

Failure Semantics:
    - ParseError / schema mismatch → InsightGenerationError(kind, cause)
    - TransportError, RateLimitExceeded → propagate unchanged
    A confidently wrong severity or tag list is worse than an error, so no
    insight ever degrades to a default value.

Insights that need only the report context are described by a table
(CONTEXT_INSIGHTS) and can be run individually via generate() or back to back
via run_sequence(). Insights with extra inputs (duplicate candidates, a
comment thread, a search query, ...) have dedicated methods.

Report chat is the one free-text call: chat_about_report() answers the last
user turn of a conversation about a report and returns the reply as text.
An empty reply is the only decode failure there.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from vidro_ai.core.errors import InsightGenerationError, ParseError, PipelineError
from vidro_ai.llm import prompts
from vidro_ai.llm.parser import ParseFailurePolicy, parse_structured
from vidro_ai.models.insights import (
    AccessibilityAuditResult,
    DuplicateDetectionResult,
    LogSummaryResult,
    OCRResult,
    PerformanceAnalysisResult,
    ReportComparisonResult,
    ReproStepsResult,
    RootCauseResult,
    SearchQueryResult,
    SecurityScanResult,
    SentimentResult,
    SeverityResult,
    SmartAssignmentResult,
    SmartReplyResult,
    StakeholderSummaryResult,
    SuggestedFixResult,
    TagsResult,
    TestCaseResult,
    TranslationResult,
    VideoChaptersResult,
    VideoHighlightResult,
    WeeklyDigestResult,
)
from vidro_ai.models.report_context import (
    ChatMessage,
    DigestReport,
    DuplicateCandidateInput,
    PriorInsights,
    ReportContext,
    TeamMember,
)
from vidro_ai.providers.base import VideoAnalyzer
from vidro_ai.services.context_builder import build_context

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

INSIGHT_PARSE_POLICY = ParseFailurePolicy.RAISE

CHAT_MAX_TOKENS = 1500
CHAT_TEMPERATURE = 0.5

EMPTY_DIGEST = WeeklyDigestResult(
    summary="No bug reports were filed this week.",
    top_issues=[],
    trends="No data available.",
    recommendations="No recommendations.",
)


class InsightKind(str, Enum):
    SEVERITY = "severity"
    REPRO_STEPS = "repro-steps"
    ROOT_CAUSE = "root-cause"
    AUTO_TAG = "auto-tag"
    LOG_SUMMARY = "log-summary"
    STAKEHOLDER_SUMMARY = "stakeholder-summary"
    SUGGESTED_FIX = "suggested-fix"
    DUPLICATES = "duplicates"
    SMART_REPLY = "smart-reply"
    SEARCH = "search"
    ACCESSIBILITY_AUDIT = "accessibility-audit"
    PERFORMANCE_ANALYSIS = "performance-analysis"
    SECURITY_SCAN = "security-scan"
    TEST_CASES = "test-cases"
    SENTIMENT = "sentiment"
    TRANSLATION = "translation"
    WEEKLY_DIGEST = "weekly-digest"
    ASSIGNMENT = "assignment"
    BUG_MOMENT = "bug-moment"
    COMPARE = "compare"
    CHAPTERS = "chapters"
    SCREEN_OCR = "ocr"


@dataclass(frozen=True)
class InsightTemplate:
    """System prompt, result model and token budget of one insight."""
    prompt: str
    result_type: Type[BaseModel]
    max_tokens: int = 2000


# Insights whose user prompt is the report context alone
CONTEXT_INSIGHTS: Dict[InsightKind, InsightTemplate] = {
    InsightKind.SEVERITY: InsightTemplate(prompts.SEVERITY_PROMPT, SeverityResult),
    InsightKind.REPRO_STEPS: InsightTemplate(prompts.REPRO_STEPS_PROMPT, ReproStepsResult, 3000),
    InsightKind.ROOT_CAUSE: InsightTemplate(prompts.ROOT_CAUSE_PROMPT, RootCauseResult, 3000),
    InsightKind.AUTO_TAG: InsightTemplate(prompts.AUTO_TAG_PROMPT, TagsResult),
    InsightKind.LOG_SUMMARY: InsightTemplate(prompts.LOG_SUMMARY_PROMPT, LogSummaryResult, 3000),
    InsightKind.STAKEHOLDER_SUMMARY: InsightTemplate(prompts.STAKEHOLDER_SUMMARY_PROMPT, StakeholderSummaryResult),
    InsightKind.SUGGESTED_FIX: InsightTemplate(prompts.SUGGESTED_FIX_PROMPT, SuggestedFixResult, 3000),
    InsightKind.ACCESSIBILITY_AUDIT: InsightTemplate(prompts.ACCESSIBILITY_PROMPT, AccessibilityAuditResult),
    InsightKind.PERFORMANCE_ANALYSIS: InsightTemplate(prompts.PERFORMANCE_PROMPT, PerformanceAnalysisResult),
    InsightKind.SECURITY_SCAN: InsightTemplate(prompts.SECURITY_PROMPT, SecurityScanResult),
    InsightKind.TEST_CASES: InsightTemplate(prompts.TEST_CASES_PROMPT, TestCaseResult, 4000),
}


@dataclass
class InsightRun:
    """Outcome of run_sequence(): results and failures keyed by kind."""
    results: Dict[InsightKind, BaseModel] = field(default_factory=dict)
    errors: Dict[InsightKind, PipelineError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Prompt rendering helpers
# ---------------------------------------------------------------------------
def _numbered(items: Iterable[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def render_candidates(candidates: Sequence[DuplicateCandidateInput]) -> str:
    return _numbered(
        f'[{c.id}] "{c.title}" — {c.description or "No description"}' for c in candidates
    )


def render_digest_reports(reports: Sequence[DigestReport]) -> str:
    return _numbered(
        f'"{r.title}" — Severity: {r.severity or "unclassified"}, '
        f'Tags: {", ".join(r.tags) or "none"}, Filed: {r.created_at}'
        for r in reports
    )


def render_team(team_members: Sequence[TeamMember]) -> str:
    return _numbered(f'{m.name} — Expertise: {", ".join(m.expertise)}' for m in team_members)


_PRIOR_INSIGHT_LABELS = (
    ("severity", "Severity"),
    ("priority", "Priority"),
    ("repro_steps", "Reproduction Steps"),
    ("root_cause", "Root Cause"),
    ("suggested_fix", "Suggested Fix"),
)


def render_prior_insights(extra: Optional[PriorInsights]) -> str:
    if extra is None:
        return ""
    lines = [
        f"**{label}:** {getattr(extra, attr)}"
        for attr, label in _PRIOR_INSIGHT_LABELS
        if getattr(extra, attr)
    ]
    return "\n".join(lines)


_ROLE_LABELS = {"user": "User", "assistant": "Assistant"}


def render_conversation(messages: Sequence[ChatMessage]) -> str:
    return "\n\n".join(f"{_ROLE_LABELS[m.role]}: {m.content}" for m in messages)


class InsightEngine:
    """
    Structured insight generation over a single provider.

    Parameters
    ----------
    provider : VideoAnalyzer
        Backend used for every chat call (injected by the composition root).
    """

    def __init__(self, provider: VideoAnalyzer) -> None:
        self.provider = provider

    # -------------------------------------------------------------------
    # Core
    # -------------------------------------------------------------------
    async def _generate(
        self,
        kind: InsightKind,
        system_prompt: str,
        user_prompt: str,
        result_type: Type[R],
        max_tokens: int = 2000,
    ) -> R:
        logger.info("Generating %s insight via %s", kind.value, self.provider.name)
        text = await self.provider.chat(system_prompt, user_prompt, max_tokens=max_tokens)
        try:
            return parse_structured(text, result_type, policy=INSIGHT_PARSE_POLICY)
        except ParseError as e:
            logger.error("Failed to decode %s insight: %s", kind.value, e)
            raise InsightGenerationError(kind.value, e) from e

    async def generate(self, kind: InsightKind, ctx: ReportContext) -> BaseModel:
        """Run one context-only insight by kind."""
        kind = InsightKind(kind)
        template = CONTEXT_INSIGHTS.get(kind)
        if template is None:
            raise ValueError(f"Insight {kind.value!r} needs more input than a report context")
        return await self._generate(kind, template.prompt, build_context(ctx), template.result_type, template.max_tokens)

    async def run_sequence(self, ctx: ReportContext, kinds: Iterable[InsightKind]) -> InsightRun:
        """
        Run several context-only insights one after another.

        Calls are never issued concurrently so a burst does not trip the
        provider's rate limit. A failing kind is recorded and the sequence
        continues with the next one.
        """
        run = InsightRun()
        for kind in kinds:
            kind = InsightKind(kind)
            try:
                run.results[kind] = await self.generate(kind, ctx)
            except PipelineError as e:
                logger.warning("Insight %s failed: %s", kind.value, e)
                run.errors[kind] = e
        return run

    # -------------------------------------------------------------------
    # Context-only insights
    # -------------------------------------------------------------------
    async def classify_severity(self, ctx: ReportContext) -> SeverityResult:
        return await self.generate(InsightKind.SEVERITY, ctx)

    async def generate_repro_steps(self, ctx: ReportContext) -> ReproStepsResult:
        return await self.generate(InsightKind.REPRO_STEPS, ctx)

    async def analyze_root_cause(self, ctx: ReportContext) -> RootCauseResult:
        return await self.generate(InsightKind.ROOT_CAUSE, ctx)

    async def auto_tag(self, ctx: ReportContext) -> TagsResult:
        return await self.generate(InsightKind.AUTO_TAG, ctx)

    async def summarize_logs(self, ctx: ReportContext) -> LogSummaryResult:
        return await self.generate(InsightKind.LOG_SUMMARY, ctx)

    async def generate_stakeholder_summary(self, ctx: ReportContext) -> StakeholderSummaryResult:
        return await self.generate(InsightKind.STAKEHOLDER_SUMMARY, ctx)

    async def suggest_fix(self, ctx: ReportContext) -> SuggestedFixResult:
        return await self.generate(InsightKind.SUGGESTED_FIX, ctx)

    async def audit_accessibility(self, ctx: ReportContext) -> AccessibilityAuditResult:
        return await self.generate(InsightKind.ACCESSIBILITY_AUDIT, ctx)

    async def detect_performance_bottlenecks(self, ctx: ReportContext) -> PerformanceAnalysisResult:
        return await self.generate(InsightKind.PERFORMANCE_ANALYSIS, ctx)

    async def scan_security(self, ctx: ReportContext) -> SecurityScanResult:
        return await self.generate(InsightKind.SECURITY_SCAN, ctx)

    async def generate_test_cases(self, ctx: ReportContext) -> TestCaseResult:
        return await self.generate(InsightKind.TEST_CASES, ctx)

    # -------------------------------------------------------------------
    # Insights with extra inputs
    # -------------------------------------------------------------------
    async def detect_duplicates(
        self,
        ctx: ReportContext,
        candidates: Sequence[DuplicateCandidateInput],
    ) -> DuplicateDetectionResult:
        """Rank existing reports by similarity to ``ctx``; no candidates means no call."""
        if not candidates:
            return DuplicateDetectionResult(duplicates=[])

        user_prompt = (
            f"**NEW BUG REPORT:**\n{build_context(ctx)}\n\n"
            f"**EXISTING REPORTS:**\n{render_candidates(candidates)}"
        )
        return await self._generate(
            InsightKind.DUPLICATES, prompts.DUPLICATES_PROMPT, user_prompt, DuplicateDetectionResult
        )

    async def suggest_replies(
        self,
        ctx: ReportContext,
        comment_body: str,
        comment_thread: Optional[Sequence[str]] = None,
    ) -> SmartReplyResult:
        thread = ""
        if comment_thread:
            thread = f"\n\n**Comment Thread:**\n{_numbered(comment_thread)}"
        user_prompt = f'{build_context(ctx)}\n\n**Comment to reply to:** "{comment_body}"{thread}'
        return await self._generate(
            InsightKind.SMART_REPLY, prompts.SMART_REPLY_PROMPT, user_prompt, SmartReplyResult
        )

    async def parse_search_query(self, query: str) -> SearchQueryResult:
        return await self._generate(
            InsightKind.SEARCH, prompts.SEARCH_QUERY_PROMPT, query, SearchQueryResult
        )

    async def detect_sentiment(self, ctx: ReportContext, comments: Sequence[str]) -> SentimentResult:
        comment_section = f"\n\n**Comments:**\n{_numbered(comments)}" if comments else ""
        return await self._generate(
            InsightKind.SENTIMENT,
            prompts.SENTIMENT_PROMPT,
            f"{build_context(ctx)}{comment_section}",
            SentimentResult,
        )

    async def translate_report(self, ctx: ReportContext, target_language: str) -> TranslationResult:
        return await self._generate(
            InsightKind.TRANSLATION,
            prompts.translation_prompt(target_language),
            build_context(ctx),
            TranslationResult,
        )

    async def generate_weekly_digest(self, reports: Sequence[DigestReport]) -> WeeklyDigestResult:
        if not reports:
            return EMPTY_DIGEST

        user_prompt = (
            f"**Bug reports this week ({len(reports)} total):**\n{render_digest_reports(reports)}"
        )
        return await self._generate(
            InsightKind.WEEKLY_DIGEST, prompts.WEEKLY_DIGEST_PROMPT, user_prompt, WeeklyDigestResult
        )

    async def suggest_assignment(
        self,
        ctx: ReportContext,
        team_members: Sequence[TeamMember],
    ) -> SmartAssignmentResult:
        user_prompt = f"{build_context(ctx)}\n\n**Team Members:**\n{render_team(team_members)}"
        return await self._generate(
            InsightKind.ASSIGNMENT, prompts.ASSIGNMENT_PROMPT, user_prompt, SmartAssignmentResult
        )

    async def identify_bug_moment(self, ctx: ReportContext, video_duration: float) -> VideoHighlightResult:
        return await self._generate(
            InsightKind.BUG_MOMENT,
            prompts.bug_moment_prompt(video_duration),
            build_context(ctx),
            VideoHighlightResult,
        )

    async def compare_reports(self, report_a: ReportContext, report_b: ReportContext) -> ReportComparisonResult:
        user_prompt = f"**REPORT 1:**\n{build_context(report_a)}\n\n**REPORT 2:**\n{build_context(report_b)}"
        return await self._generate(
            InsightKind.COMPARE, prompts.COMPARE_REPORTS_PROMPT, user_prompt, ReportComparisonResult
        )

    async def generate_chapters(self, ctx: ReportContext, video_duration: float) -> VideoChaptersResult:
        return await self._generate(
            InsightKind.CHAPTERS,
            prompts.chapters_prompt(video_duration),
            build_context(ctx),
            VideoChaptersResult,
            max_tokens=1500,
        )

    # -------------------------------------------------------------------
    # Screen OCR
    # -------------------------------------------------------------------
    async def extract_text_from_frame(
        self,
        ctx: ReportContext,
        timestamp: Optional[float] = None,
    ) -> OCRResult:
        """Infer the text visible on screen at ``timestamp`` seconds into the recording."""
        user_prompt = build_context(ctx)
        if timestamp is not None:
            user_prompt += f"\n\n**Timestamp:** {timestamp:.1f}s into the video"
        return await self._generate(
            InsightKind.SCREEN_OCR, prompts.SCREEN_OCR_PROMPT, user_prompt, OCRResult
        )

    # -------------------------------------------------------------------
    # Report chat
    # -------------------------------------------------------------------
    async def chat_about_report(
        self,
        ctx: ReportContext,
        messages: Sequence[ChatMessage],
        extra: Optional[PriorInsights] = None,
    ) -> str:
        """
        Answer the latest question in a conversation about a report.

        Parameters
        ----------
        ctx : ReportContext
            The report under discussion.
        messages : sequence of ChatMessage
            Conversation so far, oldest first; the last turn must be the user's.
        extra : PriorInsights or None
            Insights already stored on the report, offered as background.

        Returns
        -------
        str
            The assistant's reply, stripped.

        Raises
        ------
        ValueError
            No messages, or the last turn is not from the user.
        InsightGenerationError
            The provider returned an empty reply.
        """
        if not messages:
            raise ValueError("chat needs at least one message")
        if messages[-1].role != "user":
            raise ValueError("the last chat message must come from the user")

        sections = [build_context(ctx)]
        prior = render_prior_insights(extra)
        if prior:
            sections.append(f"**Existing AI Insights:**\n{prior}")
        sections.append(f"**Conversation:**\n{render_conversation(messages)}")
        user_prompt = "\n\n".join(sections)

        logger.info("Answering report chat (%d messages) via %s", len(messages), self.provider.name)
        text = await self.provider.chat(
            prompts.REPORT_CHAT_PROMPT,
            user_prompt,
            max_tokens=CHAT_MAX_TOKENS,
            temperature=CHAT_TEMPERATURE,
        )
        reply = (text or "").strip()
        if not reply:
            raise InsightGenerationError("chat", ParseError("AI returned an empty reply"))
        return reply
