"""Shared pytest fixtures."""

import asyncio
from pathlib import Path
from typing import Any, Dict, List

import pytest

from council_chat import config_loader, storage
from council_chat.config_loader import ModelDescriptor
from council_chat.council.registry import get_model
from council_chat.council.stage1 import STAGE1_SYSTEM_PROMPT
from council_chat.council.stage2 import STAGE2_SYSTEM_PROMPT
from council_chat.council.stage3 import STAGE3_SYSTEM_PROMPT
from council_chat.providers import clear_provider_cache

TEST_CONFIG = """
models:
  - {id: alpha, name: Alpha, provider: openai, model: alpha-1}
  - {id: beta, name: Beta, provider: anthropic, model: beta-1}
  - {id: gamma, name: Gamma, provider: google, model: gamma-1}
  - {id: delta, name: Delta, provider: xai, model: delta-1}
council: [alpha, beta, gamma]
chairman: gamma
chat:
  model: delta
  system_prompt: You are a test assistant.
attachments:
  max_bytes: 1024
  allowed_media_types: [image/png, text/plain, application/pdf]
"""

STAGES_BY_PROMPT = {
    STAGE1_SYSTEM_PROMPT: 1,
    STAGE2_SYSTEM_PROMPT: 2,
    STAGE3_SYSTEM_PROMPT: 3,
}

DEFAULT_RANKING = "Solid answers all round.\n\nFINAL RANKING:\n1. Response A\n2. Response B\n3. Response C"


class ScriptedGateway:
    """Stand-in for the text generation gateway.

    Replies are keyed by (stage, model_id); the stage is recognised from the
    system prompt. Keys listed in `failures` end in an error chunk, keys in
    `raises` raise mid-stream.
    """

    def __init__(self, replies=None, failures=(), raises=()):
        self.replies: Dict[tuple, str] = dict(replies or {})
        self.failures = set(failures)
        self.raises = set(raises)
        self.calls: List[Dict[str, Any]] = []

    def reply_for(self, stage: int, model: ModelDescriptor) -> str:
        if (stage, model.id) in self.replies:
            return self.replies[(stage, model.id)]
        if stage == 1:
            return f"{model.display_name} says 4"
        if stage == 2:
            return DEFAULT_RANKING
        return "The council agrees: 4."

    async def __call__(self, model, system_prompt, content, history=None, max_tokens=None):
        stage = STAGES_BY_PROMPT.get(system_prompt, 0)
        self.calls.append({"stage": stage, "model_id": model.id, "content": content})
        key = (stage, model.id)
        text = self.reply_for(stage, model)
        words = text.split(" ")
        buffer = ""
        for i, word in enumerate(words):
            delta = word if i == 0 else " " + word
            buffer += delta
            yield {"type": "token", "delta": delta, "content": buffer}
            if key in self.raises:
                raise RuntimeError(f"{model.id} blew up")
        if key in self.failures:
            yield {"type": "error", "error": "upstream 500", "content": buffer}
            return
        yield {"type": "complete", "content": buffer}


class StallingGateway(ScriptedGateway):
    """ScriptedGateway whose calls for one stage block until `release` is set."""

    def __init__(self, stall_stage: int, **kwargs):
        super().__init__(**kwargs)
        self.stall_stage = stall_stage
        self.reached = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, model, system_prompt, content, history=None, max_tokens=None):
        if STAGES_BY_PROMPT.get(system_prompt) == self.stall_stage:
            self.reached.set()
            await self.release.wait()
        async for chunk in super().__call__(model, system_prompt, content):
            yield chunk


class EventRecorder:
    """Collects (event, data) pairs passed to an on_event callback."""

    def __init__(self):
        self.events: List[tuple] = []

    def __call__(self, event: str, data: Dict[str, Any]):
        self.events.append((event, data))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def of(self, name: str) -> List[Dict[str, Any]]:
        return [data for event, data in self.events if event == name]


def keep_order(items: list) -> None:
    """Deterministic replacement for random.shuffle."""


def reverse_order(items: list) -> None:
    items.reverse()


@pytest.fixture(autouse=True)
def test_config(tmp_path: Path, monkeypatch):
    config_path = tmp_path / "models.yaml"
    config_path.write_text(TEST_CONFIG, encoding="utf-8")
    monkeypatch.setenv("COUNCIL_CONFIG_PATH", str(config_path))
    config_loader.reload_config()
    clear_provider_cache()
    yield config_path
    monkeypatch.delenv("COUNCIL_CONFIG_PATH", raising=False)
    config_loader.reload_config()
    clear_provider_cache()


@pytest.fixture(autouse=True)
def store(tmp_path: Path, monkeypatch):
    original = storage.get_store()
    configured = storage.configure(tmp_path / "store")
    yield configured
    monkeypatch.setattr(storage, "_store", original)


@pytest.fixture
def council() -> List[ModelDescriptor]:
    return [get_model("alpha"), get_model("beta"), get_model("gamma")]


@pytest.fixture
def chairman() -> ModelDescriptor:
    return get_model("gamma")


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
