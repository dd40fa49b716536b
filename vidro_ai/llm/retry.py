"""
Retry Policy
============
Bounded exponential backoff around a single inference call.

Rate-Limit Classification:
    - TransportError carrying an HTTP status: rate-limited iff the status is
      429 (Gemini RESOURCE_EXHAUSTED also arrives as 429). The body is not
      inspected, since vendor bodies echo request ids and token counts.
    - Anything without a status: error text containing "429", "rate_limit",
      "rate limit", "RESOURCE_EXHAUSTED" or "quota" (vendors disagree on wording)

Backoff:
    delay = base_delay * 2**attempt * (1 + U(0, jitter)), capped at max_delay.
    A delay_hint hook may return the exact delay the vendor asked for; the
    default hint reads a parsed Retry-After value off the error, then the
    "retry in 12.5s" phrase Gemini embeds in its quota messages.

Anything that is not rate-limited is re-raised on the spot: malformed
requests and auth failures must fail fast. After max_retries rate-limited
retries the call raises RateLimitExceeded.
"""
import asyncio
import logging
import random
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from vidro_ai.core.config import AI_MAX_RETRIES, RETRY_JITTER, RETRY_MAX_DELAY_SECONDS
from vidro_ai.core.errors import RateLimitExceeded, TransportError

logger = logging.getLogger(__name__)

R = TypeVar("R")

MAX_RETRIES = AI_MAX_RETRIES

_RATE_LIMIT_MARKERS = ("429", "rate_limit", "rate limit", "resource_exhausted", "quota")
_RETRY_IN_RE = re.compile(r"retry\s+in\s+([\d.]+)\s*s", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
def is_rate_limited(exc: BaseException) -> bool:
    """Return True if the failure is a throttling response worth retrying."""
    if isinstance(exc, TransportError) and exc.status_code is not None:
        return exc.status_code == 429
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


def default_delay_hint(exc: BaseException) -> Optional[float]:
    """Extract a vendor-supplied retry delay (seconds) from an error."""
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None and retry_after >= 0:
        return float(retry_after)
    match = _RETRY_IN_RE.search(str(exc))
    if match:
        try:
            return float(match.group(1))
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class RetryPolicy:
    """Backoff settings for one provider."""
    max_retries: int = MAX_RETRIES
    base_delay: float = 5.0
    max_delay: float = RETRY_MAX_DELAY_SECONDS
    jitter: float = RETRY_JITTER
    delay_hint: Optional[Callable[[BaseException], Optional[float]]] = default_delay_hint

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    def backoff(self, attempt: int, exc: Optional[BaseException] = None) -> float:
        """Seconds to wait before retry number ``attempt + 1``."""
        if exc is not None and self.delay_hint is not None:
            hinted = self.delay_hint(exc)
            if hinted is not None:
                return min(hinted, self.max_delay)
        delay = self.base_delay * (2 ** attempt)
        if self.jitter > 0:
            delay *= 1 + random.uniform(0, self.jitter)
        return min(delay, self.max_delay)


async def with_retry(
    fn: Callable[[], Awaitable[R]],
    policy: Optional[RetryPolicy] = None,
    label: str = "",
) -> R:
    """
    Await ``fn()`` and retry it on rate-limit failures only.

    Parameters
    ----------
    fn : callable
        Zero-argument coroutine factory; called once per attempt.
    policy : RetryPolicy or None
        Backoff settings (defaults to RetryPolicy()).
    label : str
        Provider name used in logs and in the RateLimitExceeded message.

    Returns
    -------
    R
        Whatever ``fn()`` returned on the first successful attempt.

    Raises
    ------
    RateLimitExceeded
        If every attempt was rate-limited.
    Exception
        Any non-rate-limit failure, unchanged.
    """
    policy = policy or RetryPolicy()
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:
            if not is_rate_limited(exc):
                raise
            if attempt >= policy.max_retries:
                logger.error(
                    "[%s] Rate limited after %d attempts, giving up",
                    label or "ai", attempt + 1,
                )
                raise RateLimitExceeded(label) from exc
            delay = policy.backoff(attempt, exc)
            logger.warning(
                "[%s] Rate limited. Retrying in %.1fs (attempt %d/%d)...",
                label or "ai", delay, attempt + 1, policy.max_retries,
            )
            await asyncio.sleep(delay)
            attempt += 1
