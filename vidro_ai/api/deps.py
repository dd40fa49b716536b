"""
Shared route plumbing: provider lookup and pipeline-error → HTTP mapping.

    RateLimitExceeded   → 429
    ConfigurationError  → 503
    other PipelineError → 502
"""
import logging

from fastapi import HTTPException, Request

from vidro_ai.core.errors import ConfigurationError, PipelineError, RateLimitExceeded
from vidro_ai.providers.base import VideoAnalyzer

logger = logging.getLogger(__name__)


def get_provider(request: Request) -> VideoAnalyzer:
    """FastAPI dependency returning the active provider from app.state."""
    try:
        return request.app.state.provider_selector.get()
    except ConfigurationError as e:
        logger.error("[API] Provider unavailable: %s", e)
        raise HTTPException(status_code=503, detail=str(e)) from e


def http_error(exc: PipelineError) -> HTTPException:
    if isinstance(exc, RateLimitExceeded):
        status_code = 429
    elif isinstance(exc, ConfigurationError):
        status_code = 503
    else:
        status_code = 502
    logger.error("[API] %s → %d: %s", type(exc).__name__, status_code, exc)
    return HTTPException(status_code=status_code, detail=str(exc))
