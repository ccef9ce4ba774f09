"""3-stage LLM council deliberation.

This package provides the full deliberation pipeline:
- Stage 1: Collect individual responses from council members
- Stage 2: Anonymized peer evaluation and rank aggregation
- Stage 3: Chairman synthesis of the final answer
"""

from .orchestrator import DeliberationOrchestrator, Phase, validate_request
from .stage1 import stage1_collect_responses_streaming
from .stage2 import stage2_collect_rankings_streaming
from .stage3 import stage3_synthesize_streaming
from .ranking import parse_ranking_from_text, calculate_aggregate_rankings
from .sessions import DeliberationSession, SessionRegistry

__all__ = [
    "DeliberationOrchestrator",
    "Phase",
    "validate_request",
    "stage1_collect_responses_streaming",
    "stage2_collect_rankings_streaming",
    "stage3_synthesize_streaming",
    "parse_ranking_from_text",
    "calculate_aggregate_rankings",
    "DeliberationSession",
    "SessionRegistry",
]
