"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    GEMINI_API_KEY                 — Google Gemini key (inline-video provider)
    GROQ_API_KEY                   — Groq key (frame-sequence provider + Whisper)
    OPENAI_API_KEY                 — OpenAI key (direct image-URL provider)
    AI_PROVIDER                    — active backend: groq | gemini | openai (default: groq)
    AI_MAX_RETRIES                 — retries on rate-limited calls, >= 0 (default: 2)
    INFERENCE_TIMEOUT_SECONDS      — deadline for one inference call (default: 60)
    PROBE_TIMEOUT_SECONDS          — deadline for one frame HEAD probe (default: 10)
    TRANSCRIPTION_TIMEOUT_SECONDS  — deadline for one Whisper call (default: 120)
    LOG_LEVEL                      — root log level (default: INFO)
    CORS_ORIGINS                   — comma-separated origins for the HTTP surface

Timeout Philosophy:
    Hosted LLM calls are the largest latency and failure risk in the pipeline.
    Every outbound call carries an explicit deadline; an overrun surfaces as a
    TransportError and is never retried.

API keys are not cached here. get_api_key() reads the process environment
each time a provider is constructed, so a ProviderSelector.reset() picks up
a key that was set after startup.
"""
import os
from typing import Optional

from dotenv import load_dotenv

from vidro_ai.core.errors import API_KEY_ENV_VARS, ConfigurationError

load_dotenv()


def get_api_key(provider: str) -> Optional[str]:
    """Current value of the provider's API key variable, or None."""
    env_var = API_KEY_ENV_VARS.get(provider, f"{provider.upper()}_API_KEY")
    return os.getenv(env_var)


def env_int(name: str, default: int, minimum: Optional[int] = None) -> int:
    """Integer setting from the environment; values below ``minimum`` are rejected."""
    raw = os.getenv(name)
    try:
        value = int(raw) if raw is not None and raw.strip() else default
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


AI_PROVIDER = os.getenv("AI_PROVIDER", "groq").strip().lower()

# Retry policy
AI_MAX_RETRIES = env_int("AI_MAX_RETRIES", 2, minimum=0)
RETRY_JITTER = float(os.getenv("RETRY_JITTER", 0.25))
RETRY_MAX_DELAY_SECONDS = float(os.getenv("RETRY_MAX_DELAY_SECONDS", 60))

# Deadlines (seconds)
INFERENCE_TIMEOUT_SECONDS = float(os.getenv("INFERENCE_TIMEOUT_SECONDS", 60))
PROBE_TIMEOUT_SECONDS = float(os.getenv("PROBE_TIMEOUT_SECONDS", 10))
TRANSCRIPTION_TIMEOUT_SECONDS = float(os.getenv("TRANSCRIPTION_TIMEOUT_SECONDS", 120))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# HTTP surface
CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
