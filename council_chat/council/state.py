"""Per-conversation deliberation state, updated by pure reducer transitions.

`reduce_event` never mutates its input: every transition returns a new state
dict that shares untouched branches with the previous one. Readers can hold
on to any state they were handed without it changing underneath them.
"""

from typing import Any, Dict, Optional

STAGES = ("1", "2", "3")

# Field that accumulates model_chunk deltas, per stage.
CHUNK_FIELDS = {"1": "content", "2": "evaluation", "3": "synthesis"}
CHUNK_STATUSES = {"1": "generating", "2": "evaluating", "3": "synthesizing"}
STATUS_FIELDS = ("content", "evaluation", "parsed_ranking", "synthesis")
STAGE_DATA_KEYS = {"1": "stage1", "2": "stage2", "3": "stage3"}


def initial_state(question: str = "", attachments: Optional[list] = None) -> Dict[str, Any]:
    return {
        "question": question,
        "attachments": list(attachments or []),
        "phase": "idle",
        "current_stage": 0,
        "stage_statuses": {s: "idle" for s in STAGES},
        "model_statuses": {s: {} for s in STAGES},
        "stage1": [],
        "stage2": None,
        "stage3": None,
        "is_processing": False,
        "cancelled": False,
        "error": None,
    }


def _with_model_status(state: Dict[str, Any], stage: str, model_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    stage_models = state["model_statuses"].get(stage, {})
    previous = stage_models.get(model_id, {})
    return {
        **state,
        "model_statuses": {
            **state["model_statuses"],
            stage: {**stage_models, model_id: {**previous, **updates}},
        },
    }


def reduce_event(state: Dict[str, Any], event: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Return the state that results from applying one progress event."""
    if event == "stage":
        stage = str(data["stage"])
        status = data["status"]
        updated = {
            **state,
            "current_stage": int(stage),
            "is_processing": True,
            "stage_statuses": {**state["stage_statuses"], stage: status},
            "phase": f"stage{stage}_running" if status == "started" else f"stage{stage}_done",
        }
        if status == "complete" and data.get("data") is not None:
            updated[STAGE_DATA_KEYS[stage]] = data["data"]
        return updated

    if event == "model_status":
        stage = str(data["stage"])
        updates = {"status": data["status"]}
        for key in STATUS_FIELDS:
            if data.get(key) is not None:
                updates[key] = data[key]
        return _with_model_status(state, stage, data["model_id"], updates)

    if event == "model_chunk":
        stage = str(data["stage"])
        field_name = CHUNK_FIELDS[stage]
        current = state["model_statuses"].get(stage, {}).get(data["model_id"], {})
        return _with_model_status(state, stage, data["model_id"], {
            "status": current.get("status") or CHUNK_STATUSES[stage],
            field_name: current.get(field_name, "") + data["delta"],
        })

    if event == "complete":
        return {**state, "phase": "complete", "is_processing": False}

    if event == "error":
        return {**state, "phase": "errored", "is_processing": False, "error": data.get("message")}

    if event == "cancelled":
        return {**state, "is_processing": False, "cancelled": True}

    return state
