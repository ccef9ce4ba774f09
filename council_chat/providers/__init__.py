"""Provider routing layer.

Each ModelDescriptor names its provider explicitly:
  - "openai"    -> OpenAI Chat Completions
  - "xai"       -> xAI (OpenAI-compatible endpoint)
  - "anthropic" -> Anthropic Messages API
  - "google"    -> Gemini API

Providers are created on first use and cached for the life of the process.
"""

from typing import Dict, Callable
from .base import LLMProvider, ProviderError
from .openai_compat_provider import OpenAICompatProvider, OpenAIProvider, XAIProvider
from .anthropic_provider import AnthropicProvider
from .google_provider import GoogleProvider

PROVIDER_FACTORIES: Dict[str, Callable[[], LLMProvider]] = {
    "openai": OpenAIProvider,
    "xai": XAIProvider,
    "anthropic": AnthropicProvider,
    "google": GoogleProvider,
}

# Singleton instances (created on first use)
_provider_cache: Dict[str, LLMProvider] = {}


def resolve_provider(provider_name: str) -> LLMProvider:
    """Get the cached provider for a provider name, creating it if needed."""
    if provider_name not in _provider_cache:
        factory = PROVIDER_FACTORIES.get(provider_name)
        if factory is None:
            raise ProviderError(provider_name, "Unknown provider")
        _provider_cache[provider_name] = factory()
    return _provider_cache[provider_name]


def clear_provider_cache():
    _provider_cache.clear()


__all__ = [
    "LLMProvider",
    "ProviderError",
    "OpenAICompatProvider",
    "OpenAIProvider",
    "XAIProvider",
    "AnthropicProvider",
    "GoogleProvider",
    "resolve_provider",
    "clear_provider_cache",
]
