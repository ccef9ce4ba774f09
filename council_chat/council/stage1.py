"""Stage 1: Collect individual responses from council members."""

import asyncio
import random
from typing import List, Callable

from ..config_loader import ModelDescriptor
from ..llm_client import UserContent, stream_generate
from .models import Stage1Response
from .registry import label_pool
from .utils import EventCallback, Generate, stream_model_text

STAGE1_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Provide a thoughtful, accurate, and well-structured response."
)


async def stage1_collect_responses_streaming(
    user_content: UserContent,
    council: List[ModelDescriptor],
    on_event: EventCallback,
    generate: Generate = stream_generate,
    shuffle: Callable[[list], None] = random.shuffle,
) -> List[Stage1Response]:
    """Stage 1: every council member answers concurrently; labels are shuffled per run."""

    async def stream_member(model: ModelDescriptor) -> str:
        on_event("model_status", {"stage": 1, "model_id": model.id, "status": "generating"})
        text = await stream_model_text(
            1, model, STAGE1_SYSTEM_PROMPT, user_content, on_event, generate, "response",
        )
        on_event("model_status", {"stage": 1, "model_id": model.id, "status": "complete", "content": text})
        return text

    contents = await asyncio.gather(*[stream_member(m) for m in council])

    labels = label_pool(len(council))
    shuffle(labels)

    return [
        Stage1Response(model_id=m.id, display_name=m.display_name, content=text, label=label)
        for m, text, label in zip(council, contents, labels)
    ]
