"""OpenAI-compatible providers: OpenAI itself and xAI."""

import logging
import os
from typing import List, Dict, Any, Optional, AsyncGenerator

import httpx

from ..config import get_api_key
from ..config_loader import get_timeout_config
from .base import LLMProvider, ProviderError, decode_text_part, error_message, is_text_part

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
XAI_BASE_URL = os.getenv("XAI_BASE_URL", "https://api.x.ai/v1")


def _convert_part(part: Dict[str, Any]) -> Dict[str, Any]:
    if part.get("type") == "text":
        return {"type": "text", "text": part["text"]}
    if part.get("media_type", "").startswith("image/"):
        return {"type": "image_url", "image_url": {"url": part["url"]}}
    if is_text_part(part):
        return {"type": "text", "text": decode_text_part(part)}
    return {
        "type": "file",
        "file": {"filename": part.get("filename") or "attachment", "file_data": part["url"]},
    }


def convert_messages(messages: List[Dict[str, Any]], system_prompt: Optional[str]) -> List[Dict[str, Any]]:
    converted = []
    if system_prompt:
        converted.append({"role": "system", "content": system_prompt})
    for msg in messages:
        content = msg["content"]
        if isinstance(content, list):
            content = [_convert_part(p) for p in content]
        converted.append({"role": msg["role"], "content": content})
    return converted


class OpenAICompatProvider(LLMProvider):
    """Any endpoint speaking the OpenAI Chat Completions streaming protocol."""

    def __init__(self, base_url: str, api_key: str, name: str = "openai",
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(api_key=api_key, base_url=base_url, transport=transport)
        self.name = name

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    async def query_streaming(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> AsyncGenerator[Dict[str, Any], None]:
        payload = {
            "model": model,
            "messages": convert_messages(messages, system_prompt),
            "stream": True,
            "max_completion_tokens": max_tokens or get_timeout_config()["max_tokens"],
        }

        content_buffer = ""
        captured_usage = {}

        try:
            if not self.api_key:
                raise ProviderError(self.name, "Missing API key")
            async with self._client() as client:
                async with client.stream(
                    "POST", f"{self.base_url}/chat/completions",
                    headers=self._headers(), json=payload,
                ) as response:
                    if response.status_code >= 400:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        raise ProviderError(self.name, f"HTTP {response.status_code}: {body[:300]}")
                    async for data in self.iter_sse_data(response):
                        if data.get("error"):
                            raise ProviderError(self.name, error_message(data["error"]))
                        if data.get("usage"):
                            captured_usage = data["usage"]
                        choices = data.get("choices") or [{}]
                        content_delta = (choices[0].get("delta") or {}).get("content") or ""
                        if content_delta:
                            content_buffer += content_delta
                            yield {"type": "token", "delta": content_delta, "content": content_buffer}

            yield {"type": "complete", "content": content_buffer, "usage": captured_usage}
        except (ProviderError, httpx.HTTPError) as e:
            logger.warning("%s streaming error for %s: %s", self.name, model, e)
            yield {"type": "error", "error": str(e), "content": content_buffer, "usage": captured_usage}


class OpenAIProvider(OpenAICompatProvider):
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(OPENAI_BASE_URL, get_api_key("openai"), name="openai", transport=transport)


class XAIProvider(OpenAICompatProvider):
    """xAI uses an OpenAI-compatible API but with its own endpoint and key."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(XAI_BASE_URL, get_api_key("xai"), name="xai", transport=transport)
