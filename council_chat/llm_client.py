"""Text generation gateway.

Single entry point the council and chat endpoints use to stream text from
any configured model. Routes each ModelDescriptor to its provider backend.
"""

import logging
from typing import List, Dict, Any, Optional, AsyncGenerator, Union

from .config_loader import ModelDescriptor
from .providers import resolve_provider, ProviderError

logger = logging.getLogger(__name__)

UserContent = Union[str, List[Dict[str, Any]]]


async def stream_generate(
    descriptor: ModelDescriptor,
    system_prompt: Optional[str],
    content: UserContent,
    history: Optional[List[Dict[str, Any]]] = None,
    max_tokens: Optional[int] = None,
) -> AsyncGenerator[Dict[str, Any], None]:
    """Stream a completion for `content` from the model behind `descriptor`.

    Yields {"type": "token", "delta", "content"} chunks and ends with exactly
    one {"type": "complete", "content"} or {"type": "error", "error", "content"}.
    """
    messages = [
        {"role": msg["role"], "content": msg["content"]}
        for msg in (history or [])
        if msg.get("role") in ("user", "assistant")
    ]
    messages.append({"role": "user", "content": content})

    async for chunk in stream_messages(descriptor, system_prompt, messages, max_tokens=max_tokens):
        yield chunk


async def stream_messages(
    descriptor: ModelDescriptor,
    system_prompt: Optional[str],
    messages: List[Dict[str, Any]],
    max_tokens: Optional[int] = None,
) -> AsyncGenerator[Dict[str, Any], None]:
    """Stream a completion for a full message list."""
    try:
        provider = resolve_provider(descriptor.provider)
    except ProviderError as e:
        logger.warning("Cannot route %s: %s", descriptor.id, e)
        yield {"type": "error", "error": str(e), "content": ""}
        return

    content = ""
    try:
        async for chunk in provider.query_streaming(
            descriptor.provider_model_id, messages,
            system_prompt=system_prompt, max_tokens=max_tokens,
        ):
            content = chunk.get("content", content)
            yield chunk
            if chunk["type"] in ("complete", "error"):
                return
    except Exception as e:
        logger.exception("Provider %s failed while streaming %s", descriptor.provider, descriptor.id)
        yield {"type": "error", "error": str(e), "content": content}
        return

    yield {"type": "error", "error": f"Stream from {descriptor.id} ended without completion", "content": content}
