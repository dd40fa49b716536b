"""
Errors
======
Exception hierarchy for the AI pipeline.

Taxonomy:
    TransportError          — network failure, deadline overrun or non-2xx reply
    RateLimitExceeded       — retries exhausted on a rate-limited call
    ParseError              — no JSON could be recovered from a model reply
    ConfigurationError      — missing API key or unknown provider
    InsightGenerationError  — an insight reply could not be decoded

Transport and rate-limit errors travel unchanged from the HTTP client to the
caller. Only parse failures are wrapped (insights) or absorbed (video).
"""
from typing import Optional

# Environment variable names per provider
API_KEY_ENV_VARS: dict[str, str] = {
    "gemini": "GEMINI_API_KEY",
    "groq": "GROQ_API_KEY",
    "openai": "OPENAI_API_KEY",
}

PREVIEW_CHARS = 200


class PipelineError(Exception):
    """Base exception for every error raised by the pipeline."""

    pass


class TransportError(PipelineError):
    """Raised when an outbound call fails at the network or HTTP level."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after


class RateLimitExceeded(PipelineError):
    """Raised when a call stays rate-limited after every retry."""

    def __init__(self, provider: str = ""):
        label = provider.capitalize() if provider else "AI"
        super().__init__(
            f"{label} API rate limit exceeded. Please wait a moment and try again."
        )
        self.provider = provider


class ParseError(PipelineError):
    """Raised when no JSON document can be recovered from a model reply."""

    def __init__(self, message: str, text: str = ""):
        self.preview = text[:PREVIEW_CHARS]
        detail = f"{message} (response preview: {self.preview!r})" if text else message
        super().__init__(detail)


class ConfigurationError(PipelineError):
    """Raised when a provider cannot be constructed from the environment."""

    pass


class MissingAPIKeyError(ConfigurationError):
    """Raised when a required API key is not found."""

    def __init__(self, provider: str):
        env_var = API_KEY_ENV_VARS.get(provider, f"{provider.upper()}_API_KEY")
        super().__init__(f"{env_var} is not set in environment variables")
        self.provider = provider


class InsightGenerationError(PipelineError):
    """Raised when an insight reply cannot be decoded into its result type."""

    def __init__(self, kind: str, cause: Exception):
        super().__init__(f"AI returned an invalid {kind} result: {cause}")
        self.kind = kind
        self.cause = cause
