"""Deliberation orchestrator: drives stages 1-3 and emits progress events."""

import logging
import random
from dataclasses import asdict
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Union

from ..attachments import FileAttachment, build_user_content
from ..errors import InvalidRequestError
from ..llm_client import stream_generate
from .models import DeliberationRequest, DeliberationResult
from .registry import resolve_council, resolve_chairman
from .stage1 import stage1_collect_responses_streaming
from .stage2 import stage2_collect_rankings_streaming
from .stage3 import stage3_synthesize_streaming
from .utils import EventCallback, Generate

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    STAGE1_RUNNING = "stage1_running"
    STAGE1_DONE = "stage1_done"
    STAGE2_RUNNING = "stage2_running"
    STAGE2_DONE = "stage2_done"
    STAGE3_RUNNING = "stage3_running"
    COMPLETE = "complete"
    ERRORED = "errored"


def _to_attachment(item: Any) -> FileAttachment:
    if isinstance(item, FileAttachment):
        return item
    if isinstance(item, dict):
        return FileAttachment(
            url=str(item.get("url", "")),
            media_type=item.get("media_type"),
            filename=item.get("filename"),
        )
    raise InvalidRequestError("Attachments must be objects with a url")


def validate_request(
    question: Any,
    attachments: Optional[Iterable[Any]] = None,
    council_model_ids: Optional[Iterable[str]] = None,
    chairman_model_id: Optional[str] = None,
) -> DeliberationRequest:
    """Validate raw request fields and resolve the effective council and chairman."""
    if not isinstance(question, str) or not question.strip():
        raise InvalidRequestError("Question is required")
    return DeliberationRequest(
        question=question.strip(),
        council=resolve_council(council_model_ids),
        chairman=resolve_chairman(chairman_model_id),
        attachments=[_to_attachment(a) for a in (attachments or [])],
    )


class DeliberationOrchestrator:
    """Runs one deliberation.

    `generate` is the text generation gateway and `shuffle` the in-place
    shuffle used for label assignment and evaluation order; both can be
    replaced to make a run deterministic.
    """

    def __init__(
        self,
        generate: Generate = stream_generate,
        shuffle: Callable[[list], None] = random.shuffle,
    ):
        self.generate = generate
        self.shuffle = shuffle
        self.phase = Phase.IDLE

    async def run(
        self,
        request: Union[DeliberationRequest, Dict[str, Any]],
        on_event: EventCallback,
    ) -> Optional[DeliberationResult]:
        """Run all three stages. Returns None when the request is invalid."""
        if not isinstance(request, DeliberationRequest):
            try:
                request = validate_request(
                    request.get("question"),
                    request.get("attachments"),
                    request.get("council_model_ids"),
                    request.get("chairman_model_id"),
                )
            except InvalidRequestError as e:
                self.phase = Phase.ERRORED
                on_event("error", {"message": str(e)})
                return None

        council = request.council
        logger.info(
            "Deliberating with council %s, chairman %s",
            [m.id for m in council], request.chairman.id,
        )

        # Stage 1
        self.phase = Phase.STAGE1_RUNNING
        on_event("stage", {"stage": 1, "status": "started"})
        user_content = build_user_content(request.question, request.attachments)
        stage1 = await stage1_collect_responses_streaming(
            user_content, council, on_event, generate=self.generate, shuffle=self.shuffle,
        )
        self.phase = Phase.STAGE1_DONE
        on_event("stage", {"stage": 1, "status": "complete", "data": [asdict(r) for r in stage1]})

        # Stage 2
        self.phase = Phase.STAGE2_RUNNING
        on_event("stage", {"stage": 2, "status": "started"})
        stage2 = await stage2_collect_rankings_streaming(
            request.question, stage1, council, on_event, generate=self.generate, shuffle=self.shuffle,
        )
        self.phase = Phase.STAGE2_DONE
        on_event("stage", {"stage": 2, "status": "complete", "data": stage2.to_dict()})

        # Stage 3
        self.phase = Phase.STAGE3_RUNNING
        on_event("stage", {"stage": 3, "status": "started"})
        stage3 = await stage3_synthesize_streaming(
            request.question, stage1, stage2, request.chairman, on_event, generate=self.generate,
        )
        on_event("stage", {"stage": 3, "status": "complete", "data": asdict(stage3)})

        result = DeliberationResult(
            question=request.question,
            stage1=stage1,
            stage2=stage2,
            stage3=stage3,
        )
        self.phase = Phase.COMPLETE
        on_event("complete", result.to_dict())
        logger.info("Deliberation complete: %s", [r.model_id for r in stage2.aggregate_rankings])
        return result
