"""
Context Builder
===============
Renders a ReportContext into the bounded markdown body of an insight prompt.

Section order is fixed: title, description, transcript, console logs,
network logs. Absent or empty fields are left out entirely. Each log section
shows at most MAX_LOG_ENTRIES lines (oldest first) and states the full count
in its label, so the model knows when it is looking at a slice.
"""
import json
from typing import Any

from vidro_ai.core.constants import ARROW, MAX_LOG_ENTRIES
from vidro_ai.models.report_context import ConsoleLogEntry, NetworkLogEntry, ReportContext


def _render_arg(arg: Any) -> str:
    if isinstance(arg, str):
        return arg
    return json.dumps(arg, separators=(",", ":"), ensure_ascii=False, default=str)


def render_console_entry(entry: ConsoleLogEntry) -> str:
    return f"[{entry.type}] " + " ".join(_render_arg(a) for a in entry.args)


def render_network_entry(entry: NetworkLogEntry) -> str:
    return f"{entry.method} {entry.url} {ARROW} {entry.status}"


def build_context(ctx: ReportContext) -> str:
    """
    Build the prompt body for a report.

    Parameters
    ----------
    ctx : ReportContext
        Report fields and captured logs.

    Returns
    -------
    str
        Markdown sections joined by blank lines ("" if nothing is present).
    """
    parts: list[str] = []

    if ctx.title:
        parts.append(f"**Title:** {ctx.title}")
    if ctx.description:
        parts.append(f"**Description:** {ctx.description}")
    if ctx.transcript:
        parts.append(f"**Transcript:**\n{ctx.transcript}")

    if ctx.console_logs:
        lines = "\n".join(render_console_entry(e) for e in ctx.console_logs[:MAX_LOG_ENTRIES])
        parts.append(f"**Console Logs ({len(ctx.console_logs)} total):**\n{lines}")

    if ctx.network_logs:
        lines = "\n".join(render_network_entry(e) for e in ctx.network_logs[:MAX_LOG_ENTRIES])
        parts.append(f"**Network Logs ({len(ctx.network_logs)} total):**\n{lines}")

    return "\n\n".join(parts)
