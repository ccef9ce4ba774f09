"""Anthropic provider: streams from the Messages API."""

import logging
import os
from typing import List, Dict, Any, Optional, AsyncGenerator

import httpx

from ..config import get_api_key
from ..config_loader import get_timeout_config
from .base import LLMProvider, ProviderError, decode_text_part, error_message, is_text_part

logger = logging.getLogger(__name__)

ANTHROPIC_BASE_URL = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
ANTHROPIC_VERSION = "2023-06-01"


def _convert_part(part: Dict[str, Any]) -> Dict[str, Any]:
    if part.get("type") == "text":
        return {"type": "text", "text": part["text"]}
    media_type = part.get("media_type", "")
    source = {"type": "base64", "media_type": media_type, "data": part["data"]}
    if media_type.startswith("image/"):
        return {"type": "image", "source": source}
    if is_text_part(part):
        return {"type": "text", "text": decode_text_part(part)}
    return {"type": "document", "source": source}


class AnthropicProvider(LLMProvider):
    name = "anthropic"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(
            api_key=get_api_key("anthropic"),
            base_url=ANTHROPIC_BASE_URL,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    async def query_streaming(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> AsyncGenerator[Dict[str, Any], None]:
        converted = []
        for msg in messages:
            content = msg["content"]
            if isinstance(content, list):
                content = [_convert_part(p) for p in content]
            converted.append({"role": msg["role"], "content": content})

        payload = {
            "model": model,
            "messages": converted,
            "max_tokens": max_tokens or get_timeout_config()["max_tokens"],
            "stream": True,
        }
        if system_prompt:
            payload["system"] = system_prompt

        content_buffer = ""
        captured_usage = {}

        try:
            if not self.api_key:
                raise ProviderError(self.name, "Missing API key")
            async with self._client() as client:
                async with client.stream(
                    "POST", f"{self.base_url}/v1/messages",
                    headers=self._headers(), json=payload,
                ) as response:
                    if response.status_code >= 400:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        raise ProviderError(self.name, f"HTTP {response.status_code}: {body[:300]}")
                    async for data in self.iter_sse_data(response):
                        event_type = data.get("type")
                        if event_type == "error":
                            raise ProviderError(self.name, error_message(data.get("error") or "stream error"))
                        if event_type == "message_start":
                            captured_usage.update(data.get("message", {}).get("usage", {}))
                        elif event_type == "message_delta":
                            captured_usage.update(data.get("usage", {}))
                        elif event_type == "content_block_delta":
                            delta = data.get("delta", {})
                            if delta.get("type") == "text_delta" and delta.get("text"):
                                content_buffer += delta["text"]
                                yield {"type": "token", "delta": delta["text"], "content": content_buffer}
                        elif event_type == "message_stop":
                            break

            yield {"type": "complete", "content": content_buffer, "usage": captured_usage}
        except (ProviderError, httpx.HTTPError) as e:
            logger.warning("Anthropic streaming error for %s: %s", model, e)
            yield {"type": "error", "error": str(e), "content": content_buffer, "usage": captured_usage}
