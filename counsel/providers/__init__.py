from __future__ import annotations

from counsel.errors import StartupError
from counsel.providers.base import CompletionProvider, CompletionRequest
from counsel.providers.gemini import GeminiProvider
from counsel.providers.openai_compat import OpenAIChatProvider


def build_provider(settings) -> CompletionProvider:
    choice = (settings.completion_provider or "").strip().lower()
    if choice == "openai":
        return OpenAIChatProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout=settings.provider_timeout,
        )
    if choice == "gemini":
        return GeminiProvider(
            api_key=settings.google_api_key,
            model=settings.gemini_model,
            temperature=settings.temperature,
            top_p=settings.top_p,
            timeout=settings.provider_timeout,
        )
    raise StartupError(f"Unknown COMPLETION_PROVIDER: {settings.completion_provider!r}")


__all__ = [
    "CompletionProvider",
    "CompletionRequest",
    "GeminiProvider",
    "OpenAIChatProvider",
    "build_provider",
]
