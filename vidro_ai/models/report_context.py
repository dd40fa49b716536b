"""
Report Context Model
====================
Pydantic models for the report data handed to the pipeline by its callers.

Fields:
    title           — report title, if the reporter gave one
    description     — free-text description
    transcript      — transcript produced by an earlier video analysis
    console_logs    — captured browser console entries (wire name: consoleLogs)
    network_logs    — captured network requests (wire name: networkLogs)

The arrays may be arbitrarily long; the context builder only renders the
first MAX_LOG_ENTRIES of each.
"""
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConsoleLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["log", "warn", "error", "info", "debug"] = "log"
    args: List[Any] = Field(default_factory=list)
    timestamp: Optional[float] = None


class NetworkLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    method: str
    url: str
    status: int
    status_text: Optional[str] = Field(default=None, alias="statusText")
    duration: Optional[float] = None
    timestamp: Optional[float] = None


class ReportContext(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    transcript: Optional[str] = None
    console_logs: List[ConsoleLogEntry] = Field(default_factory=list, alias="consoleLogs")
    network_logs: List[NetworkLogEntry] = Field(default_factory=list, alias="networkLogs")


# ---------------------------------------------------------------------------
# Extra inputs for insights that look beyond a single report
# ---------------------------------------------------------------------------
class DuplicateCandidateInput(BaseModel):
    """An existing report offered to duplicate detection."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: Optional[str] = None


class TeamMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    expertise: List[str] = Field(default_factory=list)


class DigestReport(BaseModel):
    """One row of the weekly digest input."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    severity: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: str = Field(alias="createdAt")


# ---------------------------------------------------------------------------
# Report chat
# ---------------------------------------------------------------------------
class ChatMessage(BaseModel):
    """One turn of a conversation about a report."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str = Field(min_length=1)


class PriorInsights(BaseModel):
    """Insights already stored on a report, offered to the chat as background."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    severity: Optional[str] = None
    priority: Optional[str] = None
    repro_steps: Optional[str] = Field(default=None, alias="reproSteps")
    root_cause: Optional[str] = Field(default=None, alias="rootCause")
    suggested_fix: Optional[str] = Field(default=None, alias="suggestedFix")
