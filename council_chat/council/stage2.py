"""Stage 2: Anonymized peer evaluation and rank aggregation."""

import asyncio
import random
from typing import List, Callable

from ..config_loader import ModelDescriptor
from ..llm_client import stream_generate
from .models import Stage1Response, Stage2Evaluation, Stage2Data
from .ranking import parse_ranking_from_text, calculate_aggregate_rankings
from .utils import EventCallback, Generate, stream_model_text

STAGE2_SYSTEM_PROMPT = (
    "You are a fair and impartial judge evaluating AI responses. "
    "Be objective and thorough in your analysis."
)


def build_evaluation_prompt(
    question: str,
    stage1_results: List[Stage1Response],
    shuffle: Callable[[list], None] = random.shuffle,
) -> str:
    """Evaluation prompt with label-prefixed responses in a freshly shuffled order."""
    ordered = list(stage1_results)
    shuffle(ordered)
    anonymized = "\n\n---\n\n".join(f"{r.label}:\n{r.content}" for r in ordered)

    return f"""You are evaluating responses to the following question:

"{question}"

Here are the responses from different sources (anonymized):

{anonymized}

Please:
1. Evaluate each response based on accuracy, helpfulness, clarity, and depth
2. Provide a brief analysis of each response's strengths and weaknesses
3. End with a FINAL RANKING section that lists responses from best to worst

Format your ranking exactly like this:
FINAL RANKING:
1. Response X
2. Response Y
3. Response Z

Do not include any additional text after the ranking."""


async def stage2_collect_rankings_streaming(
    question: str,
    stage1_results: List[Stage1Response],
    council: List[ModelDescriptor],
    on_event: EventCallback,
    generate: Generate = stream_generate,
    shuffle: Callable[[list], None] = random.shuffle,
) -> Stage2Data:
    """Stage 2: every council member ranks the anonymized responses."""
    label_to_model = {r.label: r.display_name for r in stage1_results}
    evaluation_prompt = build_evaluation_prompt(question, stage1_results, shuffle)
    council_size = len(council)

    async def stream_ranking(model: ModelDescriptor) -> Stage2Evaluation:
        on_event("model_status", {"stage": 2, "model_id": model.id, "status": "evaluating"})
        text = await stream_model_text(
            2, model, STAGE2_SYSTEM_PROMPT, evaluation_prompt, on_event, generate, "evaluation",
        )
        parsed = parse_ranking_from_text(text, council_size)
        on_event("model_status", {
            "stage": 2, "model_id": model.id, "status": "complete",
            "evaluation": text, "parsed_ranking": parsed,
        })
        return Stage2Evaluation(
            model_id=model.id, display_name=model.display_name,
            evaluation=text, parsed_ranking=parsed,
        )

    evaluations = list(await asyncio.gather(*[stream_ranking(m) for m in council]))
    aggregate = calculate_aggregate_rankings(evaluations, label_to_model, council)

    return Stage2Data(
        evaluations=evaluations,
        label_to_model=label_to_model,
        aggregate_rankings=aggregate,
    )
