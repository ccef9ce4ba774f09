"""Shared helpers for the council pipeline: per-model streaming and failure text."""

import logging
from typing import Dict, Any, Callable, AsyncIterator, Optional

from ..config_loader import ModelDescriptor
from ..llm_client import UserContent

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, Dict[str, Any]], None]
Generate = Callable[[ModelDescriptor, Optional[str], UserContent], AsyncIterator[Dict[str, Any]]]


def failure_placeholder(kind: str, display_name: str) -> str:
    """Text substituted for a model that failed: kind is response, evaluation or synthesis."""
    return f"[Error: Failed to get {kind} from {display_name}]"


async def stream_model_text(
    stage: int,
    model: ModelDescriptor,
    system_prompt: str,
    content: UserContent,
    on_event: EventCallback,
    generate: Generate,
    kind: str,
) -> str:
    """Stream one model's output as model_chunk events and return the full text.

    Any failure (error chunk, exception, stream ending without a terminal
    chunk) is absorbed and replaced by the placeholder text.
    """
    content_buffer = ""
    try:
        async for chunk in generate(model, system_prompt, content):
            if chunk["type"] == "token":
                content_buffer += chunk["delta"]
                on_event("model_chunk", {"stage": stage, "model_id": model.id, "delta": chunk["delta"]})
            elif chunk["type"] == "complete":
                return chunk.get("content") or content_buffer
            elif chunk["type"] == "error":
                logger.warning("Stage %d: %s failed: %s", stage, model.id, chunk.get("error"))
                return failure_placeholder(kind, model.display_name)
    except Exception:
        logger.exception("Stage %d: unexpected error streaming from %s", stage, model.id)
        return failure_placeholder(kind, model.display_name)

    logger.warning("Stage %d: stream from %s ended without completing", stage, model.id)
    return failure_placeholder(kind, model.display_name)
