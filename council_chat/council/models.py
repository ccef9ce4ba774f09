"""Data types produced and consumed by the deliberation pipeline."""

from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any

from ..attachments import FileAttachment
from ..config_loader import ModelDescriptor


@dataclass
class DeliberationRequest:
    """A validated request: effective council and chairman already resolved."""
    question: str
    council: List[ModelDescriptor]
    chairman: ModelDescriptor
    attachments: List[FileAttachment] = field(default_factory=list)


@dataclass(frozen=True)
class Stage1Response:
    model_id: str
    display_name: str
    content: str
    label: str


@dataclass(frozen=True)
class Stage2Evaluation:
    model_id: str
    display_name: str
    evaluation: str
    parsed_ranking: List[str]


@dataclass(frozen=True)
class AggregateRanking:
    model_id: str
    display_name: str
    average_rank: float
    vote_count: int


@dataclass(frozen=True)
class Stage3Result:
    synthesis: str
    chairman: str


@dataclass
class Stage2Data:
    evaluations: List[Stage2Evaluation]
    label_to_model: Dict[str, str]
    aggregate_rankings: List[AggregateRanking]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DeliberationResult:
    question: str
    stage1: List[Stage1Response]
    stage2: Stage2Data
    stage3: Stage3Result

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
