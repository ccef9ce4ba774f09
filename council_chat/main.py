"""FastAPI backend for single-assistant chat and council deliberation."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from . import storage
from .attachments import FileAttachment, filter_attachments
from .config import setup_logging
from .config_loader import load_config, get_chat_config
from .council import DeliberationOrchestrator, DeliberationSession, SessionRegistry, validate_request
from .council.models import DeliberationRequest
from .council.registry import list_models, list_council_models, default_chairman, get_model
from .errors import InvalidRequestError, DeliberationInProgressError, UnknownModelError
from .llm_client import stream_generate, stream_messages
from .transport import EventTransport, SSE_HEADERS, format_sse

logger = logging.getLogger(__name__)

sessions = SessionRegistry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifespan events."""
    setup_logging()
    load_config()
    logger.info("Starting Council Chat API...")
    logger.info("Council models: %s", [m.id for m in list_council_models()])
    logger.info("Chairman: %s", default_chairman().id)
    yield
    logger.info("Shutting down Council Chat API...")


app = FastAPI(title="Council Chat", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========== Models ==========


class AttachmentModel(BaseModel):
    url: str
    media_type: Optional[str] = None
    filename: Optional[str] = None


class DeliberationStartRequest(BaseModel):
    conversation_id: str = "default"
    question: Optional[str] = None
    attachments: List[AttachmentModel] = []
    council_model_ids: Optional[List[str]] = None
    chairman_model_id: Optional[str] = None


class SaveResultRequest(BaseModel):
    conversation_id: Optional[str] = None
    result: Any = None


class SaveMessagesRequest(BaseModel):
    conversation_id: Optional[str] = None
    messages: List[Any] = []


class ChatMessage(BaseModel):
    role: str
    content: Union[str, List[Dict[str, Any]]]


class ChatRequest(BaseModel):
    messages: List[ChatMessage]
    model_id: Optional[str] = None


# ========== Council Deliberation ==========


async def _run_deliberation(session: DeliberationSession, request: DeliberationRequest, transport: EventTransport):
    """Run one deliberation, stream its events and persist a completed result."""

    def on_event(event: str, data: Dict[str, Any]):
        session.apply(event, data)
        transport.send(event, data)

    try:
        result = await DeliberationOrchestrator(generate=stream_generate).run(request, on_event)
        if result is not None:
            try:
                storage.save_result(session.conversation_id, result.to_dict())
            except OSError as e:
                logger.warning("Failed to persist result for %s: %s", session.conversation_id, e)
    except asyncio.CancelledError:
        logger.info("Deliberation for %s cancelled; nothing persisted", session.conversation_id)
        raise
    except Exception:
        logger.exception("Deliberation for %s failed", session.conversation_id)
        on_event("error", {"message": "Deliberation failed unexpectedly"})
    finally:
        transport.close()
        sessions.finish(session)


@app.post("/api/council")
async def start_deliberation(request: DeliberationStartRequest):
    try:
        deliberation = validate_request(
            request.question,
            [a.model_dump() for a in request.attachments],
            request.council_model_ids,
            request.chairman_model_id,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        session = sessions.begin(
            request.conversation_id,
            deliberation.question,
            [a.model_dump() for a in request.attachments],
        )
    except DeliberationInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

    transport = EventTransport()
    task = asyncio.create_task(_run_deliberation(session, deliberation, transport))
    session.task = task

    def _cleanup(_task: asyncio.Task):
        # A task cancelled before it started never enters its finally block.
        transport.close()
        sessions.finish(session)

    task.add_done_callback(_cleanup)

    return StreamingResponse(transport.stream(), media_type="text/event-stream", headers=SSE_HEADERS)


@app.post("/api/council/{conversation_id}/cancel")
async def cancel_deliberation(conversation_id: str):
    if not sessions.cancel(conversation_id):
        raise HTTPException(status_code=404, detail="No deliberation in progress")
    return {"status": "cancelled"}


@app.get("/api/council/{conversation_id}/state")
async def get_deliberation_state(conversation_id: str):
    state = sessions.snapshot(conversation_id)
    if state is None:
        raise HTTPException(status_code=404, detail="No deliberation state for this conversation")
    return state


# ========== Council Persistence ==========


@app.get("/api/council/conversations")
async def list_council_conversations():
    return storage.list_conversations(storage.COUNCIL_CONVERSATIONS_KEY)


@app.post("/api/council/conversations")
async def save_council_conversations(conversations: List[Dict[str, Any]]):
    storage.save_conversations(storage.COUNCIL_CONVERSATIONS_KEY, conversations)
    return {"success": True}


@app.get("/api/council/results")
async def get_council_result(conversation_id: Optional[str] = None):
    if not conversation_id:
        raise HTTPException(status_code=400, detail="conversation_id required")
    return storage.get_result(conversation_id)


@app.post("/api/council/results")
async def save_council_result(request: SaveResultRequest):
    if not request.conversation_id:
        raise HTTPException(status_code=400, detail="conversation_id required")
    storage.save_result(request.conversation_id, request.result)
    return {"success": True}


@app.delete("/api/council/results")
async def delete_council_result(conversation_id: Optional[str] = None):
    if not conversation_id:
        raise HTTPException(status_code=400, detail="conversation_id required")
    sessions.cancel(conversation_id)
    storage.delete_result(conversation_id)
    sessions.forget(conversation_id)
    return {"success": True}


# ========== Single-Assistant Chat ==========


def _prepare_chat_messages(messages: List[ChatMessage]) -> List[Dict[str, Any]]:
    """Drop system turns and run file parts through the attachment filter."""
    prepared = []
    for msg in messages:
        if msg.role not in ("user", "assistant"):
            continue
        content = msg.content
        if isinstance(content, list):
            parts = [p for p in content if p.get("type") == "text"]
            files = [
                FileAttachment(url=p.get("url", ""), media_type=p.get("media_type"), filename=p.get("filename"))
                for p in content if p.get("type") == "file"
            ]
            parts.extend(filter_attachments(files))
            content = parts
        prepared.append({"role": msg.role, "content": content})
    return prepared


@app.post("/api/chat")
async def chat(request: ChatRequest):
    chat_config = get_chat_config()
    try:
        model = get_model(request.model_id or chat_config["model"])
    except UnknownModelError as e:
        raise HTTPException(status_code=400, detail=str(e))

    messages = _prepare_chat_messages(request.messages)
    if not messages:
        raise HTTPException(status_code=400, detail="At least one user message is required")

    async def event_stream():
        async for chunk in stream_messages(model, chat_config["system_prompt"], messages):
            if chunk["type"] == "token":
                yield format_sse("chunk", {"model_id": model.id, "delta": chunk["delta"]})
            elif chunk["type"] == "complete":
                yield format_sse("done", {"model_id": model.id, "content": chunk["content"]})
            elif chunk["type"] == "error":
                yield format_sse("error", {"message": f"Failed to get response from {model.display_name}"})

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)


@app.get("/api/conversations")
async def list_chat_conversations():
    return storage.list_conversations(storage.CHAT_CONVERSATIONS_KEY)


@app.post("/api/conversations")
async def save_chat_conversations(conversations: List[Dict[str, Any]]):
    storage.save_conversations(storage.CHAT_CONVERSATIONS_KEY, conversations)
    return {"success": True}


@app.get("/api/messages")
async def get_chat_messages(conversation_id: Optional[str] = None):
    if not conversation_id:
        raise HTTPException(status_code=400, detail="conversation_id required")
    return storage.get_messages(conversation_id)


@app.post("/api/messages")
async def save_chat_messages(request: SaveMessagesRequest):
    if not request.conversation_id:
        raise HTTPException(status_code=400, detail="conversation_id required")
    storage.save_messages(request.conversation_id, request.messages)
    return {"success": True}


@app.delete("/api/messages")
async def delete_chat_messages(conversation_id: Optional[str] = None):
    if not conversation_id:
        raise HTTPException(status_code=400, detail="conversation_id required")
    storage.delete_messages(conversation_id)
    return {"success": True}


# ========== Models & Health ==========


@app.get("/api/models")
async def get_models():
    return {
        "models": [m.to_dict() for m in list_models()],
        "council": [m.id for m in list_council_models()],
        "chairman": default_chairman().id,
        "chat_model": get_chat_config()["model"],
    }


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "models": [m.id for m in list_models()],
        "council": [m.id for m in list_council_models()],
        "chairman": default_chairman().id,
    }
