"""Abstract base class for LLM providers."""

import base64
import json
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, AsyncGenerator

import httpx

from ..config_loader import get_timeout_config


class ProviderError(Exception):
    """Raised inside a provider when a call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


TEXT_MEDIA_TYPES = ("text/", "application/json")


def is_text_part(part: Dict[str, Any]) -> bool:
    media_type = part.get("media_type", "")
    return any(media_type.startswith(prefix) for prefix in TEXT_MEDIA_TYPES)


def decode_text_part(part: Dict[str, Any]) -> str:
    """Render a text-like file part as an inline text block."""
    raw = base64.b64decode(part.get("data", "")).decode("utf-8", errors="replace")
    name = part.get("filename") or "attachment"
    return f"[Attached file: {name}]\n{raw}"


def error_message(error: Any) -> str:
    """Message text from a stream error payload, which may be an object or a bare string."""
    if isinstance(error, dict):
        return str(error.get("message", error))
    return str(error)


class LLMProvider(ABC):
    """Base class for all LLM provider implementations.

    Each provider handles one vendor API, selected by ModelDescriptor.provider:
      - openai    -> OpenAI Chat Completions
      - xai       -> xAI (OpenAI-compatible)
      - anthropic -> Anthropic Messages
      - google    -> Gemini generateContent

    Messages use a neutral shape: {"role": "user"|"assistant", "content": str | parts}
    where parts are {"type": "text", "text"} or
    {"type": "file", "media_type", "data" (base64), "url" (data URI), "filename"}.
    """

    name = "provider"

    def __init__(self, api_key: str = "", base_url: str = "",
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        timeouts = get_timeout_config()
        timeout_config = httpx.Timeout(
            connect=timeouts["connection_timeout"],
            read=timeouts["default_timeout"],
            write=60.0,
            pool=60.0,
        )
        return httpx.AsyncClient(timeout=timeout_config, transport=self._transport)

    @staticmethod
    async def iter_sse_data(response: httpx.Response) -> AsyncGenerator[Dict[str, Any], None]:
        """Yield decoded JSON payloads from `data:` lines of an SSE response."""
        async for line in response.aiter_lines():
            if not line or not line.startswith("data:"):
                continue
            data_str = line[5:].strip()
            if data_str == "[DONE]":
                return
            try:
                data = json.loads(data_str)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                yield data

    @abstractmethod
    async def query_streaming(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> AsyncGenerator[Dict[str, Any], None]:
        """Query a model with streaming, yielding chunk dicts.

        Yields dicts with type: "token" | "complete" | "error". Exactly one
        terminal chunk ("complete" or "error") ends the stream; failures are
        never raised to the caller.
        """
        ...
