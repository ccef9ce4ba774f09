"""JSON-file key-value storage for conversations, messages and council results."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .config import DATA_DIR

logger = logging.getLogger(__name__)

COUNCIL_CONVERSATIONS_KEY = "council:conversations"
CHAT_CONVERSATIONS_KEY = "conversations"


def council_result_key(conversation_id: str) -> str:
    return f"council:results:{conversation_id}"


def messages_key(conversation_id: str) -> str:
    return f"messages:{conversation_id}"


class JSONFileStore:
    """One JSON file per key. Last write wins."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def set(self, key: str, value: Any):
        self.base_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.base_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, default=str)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            os.unlink(tmp_path)
            raise

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        return True


_store = JSONFileStore(DATA_DIR / "store")


def get_store() -> JSONFileStore:
    return _store


def configure(base_dir: Path) -> JSONFileStore:
    """Point the module-level store at a different directory."""
    global _store
    _store = JSONFileStore(base_dir)
    return _store


# ========== Council results ==========


def get_result(conversation_id: str) -> Optional[Dict[str, Any]]:
    return get_store().get(council_result_key(conversation_id))


def save_result(conversation_id: str, result: Dict[str, Any]):
    get_store().set(council_result_key(conversation_id), result)


def delete_result(conversation_id: str) -> bool:
    return get_store().delete(council_result_key(conversation_id))


# ========== Conversation lists ==========


def list_conversations(key: str) -> List[Dict[str, Any]]:
    return get_store().get(key) or []


def save_conversations(key: str, conversations: List[Dict[str, Any]]):
    get_store().set(key, conversations)


# ========== Chat messages ==========


def get_messages(conversation_id: str) -> List[Dict[str, Any]]:
    return get_store().get(messages_key(conversation_id)) or []


def save_messages(conversation_id: str, messages: List[Dict[str, Any]]):
    get_store().set(messages_key(conversation_id), messages)


def delete_messages(conversation_id: str) -> bool:
    return get_store().delete(messages_key(conversation_id))
