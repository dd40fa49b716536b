"""
Provider Selection
==================
Maps the configured ``AI_PROVIDER`` value onto a concrete VideoAnalyzer.

Used only by the composition root (main.py). Services never look up a
provider themselves; they receive one through their constructor.
"""
import logging
from enum import Enum
from typing import Optional, Union

from vidro_ai.core.config import AI_PROVIDER
from vidro_ai.core.errors import ConfigurationError
from vidro_ai.llm.client import LLMClient
from vidro_ai.providers.base import VideoAnalyzer
from vidro_ai.providers.gemini import GeminiProvider
from vidro_ai.providers.groq import GroqProvider
from vidro_ai.providers.openai import OpenAIProvider

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    GROQ = "groq"
    GEMINI = "gemini"
    OPENAI = "openai"

    @classmethod
    def parse(cls, value: Union[str, "ProviderKind"]) -> "ProviderKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ConfigurationError(
                f"Unknown AI provider {value!r} (expected one of: {valid})"
            ) from None


_PROVIDER_CLASSES = {
    ProviderKind.GROQ: GroqProvider,
    ProviderKind.GEMINI: GeminiProvider,
    ProviderKind.OPENAI: OpenAIProvider,
}


def create_provider(
    kind: Union[str, ProviderKind],
    client: Optional[LLMClient] = None,
) -> VideoAnalyzer:
    """
    Construct the provider for ``kind``.

    Raises
    ------
    ConfigurationError
        Unknown kind, or the provider's API key is not set.
    """
    provider_kind = ProviderKind.parse(kind)
    logger.info("Using %s provider", provider_kind.value)
    return _PROVIDER_CLASSES[provider_kind](client=client)


class ProviderSelector:
    """Lazily builds and caches the active provider."""

    def __init__(self, kind: Union[str, ProviderKind] = AI_PROVIDER) -> None:
        self.kind = ProviderKind.parse(kind)
        self._provider: Optional[VideoAnalyzer] = None

    def get(self) -> VideoAnalyzer:
        if self._provider is None:
            self._provider = create_provider(self.kind)
        return self._provider

    async def reset(self, kind: Union[str, ProviderKind, None] = None) -> None:
        """Drop the cached instance; the next get() rebuilds it."""
        if kind is not None:
            self.kind = ProviderKind.parse(kind)
        await self.close()

    async def close(self) -> None:
        if self._provider is not None:
            provider, self._provider = self._provider, None
            await provider.close()
