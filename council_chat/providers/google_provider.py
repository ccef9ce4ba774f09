"""Google provider: streams from the Gemini generateContent API."""

import logging
import os
from typing import List, Dict, Any, Optional, AsyncGenerator

import httpx

from ..config import get_api_key
from ..config_loader import get_timeout_config
from .base import LLMProvider, ProviderError, error_message

logger = logging.getLogger(__name__)

GOOGLE_BASE_URL = os.getenv("GOOGLE_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")


def _convert_content(content: Any) -> List[Dict[str, Any]]:
    if isinstance(content, str):
        return [{"text": content}]
    parts = []
    for part in content:
        if part.get("type") == "text":
            parts.append({"text": part["text"]})
        else:
            parts.append({"inline_data": {"mime_type": part.get("media_type", ""), "data": part["data"]}})
    return parts


class GoogleProvider(LLMProvider):
    name = "google"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(
            api_key=get_api_key("google"),
            base_url=GOOGLE_BASE_URL,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

    async def query_streaming(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> AsyncGenerator[Dict[str, Any], None]:
        payload = {
            "contents": [
                {
                    "role": "model" if msg["role"] == "assistant" else "user",
                    "parts": _convert_content(msg["content"]),
                }
                for msg in messages
            ],
            "generationConfig": {"maxOutputTokens": max_tokens or get_timeout_config()["max_tokens"]},
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        content_buffer = ""
        captured_usage = {}

        try:
            if not self.api_key:
                raise ProviderError(self.name, "Missing API key")
            async with self._client() as client:
                async with client.stream(
                    "POST", f"{self.base_url}/models/{model}:streamGenerateContent",
                    params={"alt": "sse"}, headers=self._headers(), json=payload,
                ) as response:
                    if response.status_code >= 400:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        raise ProviderError(self.name, f"HTTP {response.status_code}: {body[:300]}")
                    async for data in self.iter_sse_data(response):
                        if data.get("error"):
                            raise ProviderError(self.name, error_message(data["error"]))
                        if data.get("usageMetadata"):
                            meta = data["usageMetadata"]
                            captured_usage = {
                                "prompt_tokens": meta.get("promptTokenCount", 0),
                                "completion_tokens": meta.get("candidatesTokenCount", 0),
                                "total_tokens": meta.get("totalTokenCount", 0),
                            }
                        for candidate in data.get("candidates", []):
                            for part in candidate.get("content", {}).get("parts", []):
                                text = part.get("text", "")
                                if text and not part.get("thought"):
                                    content_buffer += text
                                    yield {"type": "token", "delta": text, "content": content_buffer}

            yield {"type": "complete", "content": content_buffer, "usage": captured_usage}
        except (ProviderError, httpx.HTTPError) as e:
            logger.warning("Google streaming error for %s: %s", model, e)
            yield {"type": "error", "error": str(e), "content": content_buffer, "usage": captured_usage}
