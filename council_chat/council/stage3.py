"""Stage 3: Chairman synthesis of deliberation results."""

from typing import List

from ..config_loader import ModelDescriptor
from ..llm_client import stream_generate
from .models import Stage1Response, Stage2Data, Stage3Result
from .utils import EventCallback, Generate, stream_model_text

STAGE3_SYSTEM_PROMPT = (
    "You are the Chairman of an AI council, responsible for synthesizing the collective "
    "wisdom of multiple AI models into a single, authoritative response."
)

EVALUATION_EXCERPT_CHARS = 500


def build_synthesis_prompt(
    question: str,
    stage1_results: List[Stage1Response],
    stage2: Stage2Data,
) -> str:
    average_by_model = {r.model_id: r.average_rank for r in stage2.aggregate_rankings}

    responses_with_rankings = "\n\n---\n\n".join(
        f"[{r.display_name}] (Peer ranking: #{average_by_model[r.model_id]:.1f}):\n{r.content}"
        if r.model_id in average_by_model
        else f"[{r.display_name}] (Peer ranking: #N/A):\n{r.content}"
        for r in stage1_results
    )

    rankings_summary = "\n".join(
        f"{i + 1}. {r.display_name} (avg rank: {r.average_rank:.2f}, votes: {r.vote_count})"
        for i, r in enumerate(stage2.aggregate_rankings)
    )

    insights = "\n\n".join(
        f"{e.display_name}'s assessment highlights: {e.evaluation[:EVALUATION_EXCERPT_CHARS]}..."
        for e in stage2.evaluations
    )

    return f"""As the Chairman of this AI council, synthesize the best possible answer to the user's question based on the council's deliberation.

Original Question: "{question}"

Council Responses (with peer rankings):
{responses_with_rankings}

Aggregate Peer Rankings:
{rankings_summary}

Key Evaluation Insights:
{insights}

Your task:
1. Synthesize the best elements from all responses
2. Give more weight to higher-ranked responses
3. Resolve any contradictions with the most accurate information
4. Provide a comprehensive, well-structured final answer

Begin your synthesis:"""


async def stage3_synthesize_streaming(
    question: str,
    stage1_results: List[Stage1Response],
    stage2: Stage2Data,
    chairman: ModelDescriptor,
    on_event: EventCallback,
    generate: Generate = stream_generate,
) -> Stage3Result:
    """Stage 3: the chairman streams one synthesis of the whole deliberation."""
    prompt = build_synthesis_prompt(question, stage1_results, stage2)

    on_event("model_status", {"stage": 3, "model_id": chairman.id, "status": "synthesizing"})
    synthesis = await stream_model_text(
        3, chairman, STAGE3_SYSTEM_PROMPT, prompt, on_event, generate, "synthesis",
    )
    on_event("model_status", {"stage": 3, "model_id": chairman.id, "status": "complete", "synthesis": synthesis})

    return Stage3Result(synthesis=synthesis, chairman=chairman.display_name)
