"""Ranking parser and aggregate scoring for Stage 2 evaluation."""

import re
from typing import List, Dict

from ..config_loader import ModelDescriptor
from .models import Stage2Evaluation, AggregateRanking

_FINAL_RANKING_RE = re.compile(r"FINAL RANKING[:\s]*(.*?)(?=\n[ \t]*\n|\Z)", re.IGNORECASE | re.DOTALL)
_LABEL_RE = re.compile(r"(?i:response)\s+([A-Z])\b")


def _labels_in(text: str) -> List[str]:
    return [f"Response {m}" for m in _LABEL_RE.findall(text)]


def parse_ranking_from_text(text: str, council_size: int) -> List[str]:
    """Parse response labels, best first, from a judge's free-text evaluation.

    Reads the block after a "FINAL RANKING" marker up to the next blank line.
    Without a marker, falls back to every label mentioned in the text, first
    occurrence wins, truncated to the council size.
    """
    final_match = _FINAL_RANKING_RE.search(text)
    if final_match:
        return _labels_in(final_match.group(1))

    labels = []
    for label in _labels_in(text):
        if label not in labels:
            labels.append(label)
    return labels[:council_size]


def calculate_aggregate_rankings(
    evaluations: List[Stage2Evaluation],
    label_to_model: Dict[str, str],
    council: List[ModelDescriptor],
) -> List[AggregateRanking]:
    """Average peer rank per council model, best first.

    A model never ranked by anyone gets the council size as its average rank.
    Ties keep council order.
    """
    by_name = {m.display_name: m for m in council}
    totals = {m.id: 0 for m in council}
    counts = {m.id: 0 for m in council}

    for evaluation in evaluations:
        for position, label in enumerate(evaluation.parsed_ranking):
            normalized = " ".join(label.split())
            model = by_name.get(label_to_model.get(normalized, ""))
            if model is None:
                continue
            totals[model.id] += position + 1
            counts[model.id] += 1

    council_size = len(council)
    rankings = [
        AggregateRanking(
            model_id=m.id,
            display_name=m.display_name,
            average_rank=totals[m.id] / counts[m.id] if counts[m.id] else float(council_size),
            vote_count=counts[m.id],
        )
        for m in council
    ]
    return sorted(rankings, key=lambda r: r.average_rank)
