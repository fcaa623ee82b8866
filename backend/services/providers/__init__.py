"""Provider factory — picks the adapter named by the settings' provider tag."""
import logging

from models.schemas import AiProvider, AiSettings
from services.errors import ConfigurationError

from .base import BaseProvider

logger = logging.getLogger("billsight.providers")

__all__ = ["get_provider", "BaseProvider"]


def get_provider(settings: AiSettings) -> BaseProvider:
    """
    Return a ready provider for *settings*.

    Raises ConfigurationError before any network traffic when the selected
    provider is missing its key, URL or model.
    """
    verbose = settings.verbose_logging

    if settings.provider == AiProvider.GEMINI:
        api_key = settings.gemini.api_key.strip()
        if not api_key:
            raise ConfigurationError("API key is not set. Add it in Settings.", provider="gemini")
        from .gemini import GeminiProvider

        return GeminiProvider(api_key, verbose=verbose)

    if settings.provider == AiProvider.OLLAMA:
        server_url = settings.ollama.server_url.strip()
        model = settings.ollama.model.strip()
        if not server_url or not model:
            raise ConfigurationError(
                "Server URL or model is not configured. Select a multimodal model in Settings.",
                provider="ollama",
            )
        from .ollama import OllamaProvider

        return OllamaProvider(server_url, model, verbose=verbose)

    if settings.provider == AiProvider.OPENAI:
        api_key = settings.openai.api_key.strip()
        if not api_key:
            raise ConfigurationError("API key is not set. Add it in Settings.", provider="openai")
        from .openai import OpenAIProvider

        return OpenAIProvider(api_key, verbose=verbose)

    raise ConfigurationError(f"Invalid AI provider selected: {settings.provider!r}")
