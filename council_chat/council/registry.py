"""Model registry: council membership, chairman and anonymous labels."""

import logging
from typing import Iterable, List, Optional

from ..config_loader import (
    ModelDescriptor, get_models, get_council_model_ids, get_chairman_model_id,
)
from ..errors import UnknownModelError

logger = logging.getLogger(__name__)

MIN_COUNCIL_SIZE = 2


def list_models() -> List[ModelDescriptor]:
    return get_models()


def get_model(model_id: str) -> ModelDescriptor:
    for model in get_models():
        if model.id == model_id:
            return model
    raise UnknownModelError(model_id)


def resolve(model_ids: Iterable[str]) -> List[ModelDescriptor]:
    """Resolve ids to descriptors, keeping order and dropping duplicates.

    Raises UnknownModelError on the first id not in the registry.
    """
    by_id = {m.id: m for m in get_models()}
    resolved = []
    for model_id in model_ids:
        if model_id not in by_id:
            raise UnknownModelError(model_id)
        if by_id[model_id] not in resolved:
            resolved.append(by_id[model_id])
    return resolved


def list_council_models() -> List[ModelDescriptor]:
    """The default council, as configured."""
    return resolve(get_council_model_ids())


def default_chairman() -> ModelDescriptor:
    return get_model(get_chairman_model_id())


def resolve_council(model_ids: Optional[Iterable[str]]) -> List[ModelDescriptor]:
    """Effective council for a request.

    Unknown ids are ignored; if fewer than two known models remain the
    default council is used instead.
    """
    if model_ids is None:
        return list_council_models()
    model_ids = list(model_ids)
    known = {m.id for m in get_models()}
    council = resolve([mid for mid in model_ids if mid in known])
    if len(council) < MIN_COUNCIL_SIZE:
        logger.warning(
            "Requested council %s resolves to %d model(s); using default council",
            model_ids, len(council),
        )
        return list_council_models()
    return council


def resolve_chairman(model_id: Optional[str]) -> ModelDescriptor:
    if model_id:
        try:
            return get_model(model_id)
        except UnknownModelError:
            logger.warning("Unknown chairman %s; using default chairman", model_id)
    return default_chairman()


def generate_label(index: int) -> str:
    """Anonymous label for position `index`: Response A, Response B, ..."""
    return f"Response {chr(65 + index)}"


def label_pool(size: int) -> List[str]:
    return [generate_label(i) for i in range(size)]
