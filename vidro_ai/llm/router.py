"""
Provider Configuration
======================
Endpoint, model and credential settings for each hosted LLM backend.

Backends:
    - groq    : OpenAI-compatible chat + Whisper; vision via frame sequences
    - gemini  : Google generateContent REST API; accepts inline video bytes
    - openai  : OpenAI chat completions; accepts direct image URLs

Each config carries its own retry base delay so the Retry Policy can be
tuned per vendor without touching call sites.

The module-level configs are key-less templates. default_config() fills in
the key from the environment at the moment a provider is built.
"""
import logging
from dataclasses import dataclass, replace

from vidro_ai.core.config import INFERENCE_TIMEOUT_SECONDS, get_api_key
from vidro_ai.core.errors import MissingAPIKeyError
from vidro_ai.llm.retry import MAX_RETRIES, RetryPolicy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Provider Configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ProviderConfig:
    """Configuration for a single LLM provider."""
    name: str
    api_key: str
    base_url: str
    model: str
    max_retries: int = MAX_RETRIES
    base_delay_seconds: float = 5.0
    timeout_seconds: float = INFERENCE_TIMEOUT_SECONDS
    max_tokens: int = 2000
    temperature: float = 0.3

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_retries=self.max_retries, base_delay=self.base_delay_seconds)

    def require_api_key(self) -> "ProviderConfig":
        """Fail fast when the key is absent; returns self for chaining."""
        if not self.api_key or not self.api_key.strip():
            raise MissingAPIKeyError(self.name)
        return self


# Default provider configs
GEMINI_CONFIG = ProviderConfig(
    name="gemini",
    api_key="",
    base_url="https://generativelanguage.googleapis.com/v1beta",
    model="gemini-2.0-flash",
)

GROQ_CONFIG = ProviderConfig(
    name="groq",
    api_key="",
    base_url="https://api.groq.com/openai/v1",
    model="meta-llama/llama-4-scout-17b-16e-instruct",
)

OPENAI_CONFIG = ProviderConfig(
    name="openai",
    api_key="",
    base_url="https://api.openai.com/v1",
    model="gpt-4o",
)

DEFAULT_CONFIGS: dict[str, ProviderConfig] = {
    "gemini": GEMINI_CONFIG,
    "groq": GROQ_CONFIG,
    "openai": OPENAI_CONFIG,
}


def default_config(name: str) -> ProviderConfig:
    """Template for ``name`` with the API key currently set in the environment."""
    return replace(DEFAULT_CONFIGS[name], api_key=get_api_key(name) or "")


# Text-only insight calls back off faster than video analysis
INSIGHT_BASE_DELAY_SECONDS = 3.0
