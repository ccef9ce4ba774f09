"""YAML-based configuration loader for the council and chat models."""

import logging
import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import List, Dict, Any, Optional

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "anthropic", "google", "xai")

_config_cache: Optional[Dict[str, Any]] = None

_DEFAULT_CONFIG: Dict[str, Any] = {
    "models": [
        {"id": "gpt-5.2", "name": "GPT 5.2", "provider": "openai", "model": "gpt-5.2"},
        {"id": "claude-opus", "name": "Claude Opus 4.5", "provider": "anthropic", "model": "claude-opus-4-5"},
        {"id": "gemini-3-pro", "name": "Gemini 3 Pro", "provider": "google", "model": "gemini-3-pro-preview"},
        {"id": "grok-4.1-fast", "name": "Grok 4.1 Fast", "provider": "xai", "model": "grok-4.1-fast-reasoning"},
        {"id": "gpt-5-mini", "name": "GPT 5 Mini", "provider": "openai", "model": "gpt-5-mini"},
    ],
    "council": ["gpt-5.2", "claude-opus", "gemini-3-pro", "grok-4.1-fast"],
    "chairman": "gemini-3-pro",
    "chat": {"model": "gpt-5-mini", "system_prompt": "You are a helpful assistant."},
    "attachments": {
        "max_bytes": 10 * 1024 * 1024,
        "allowed_media_types": [
            "image/png", "image/jpeg", "image/gif", "image/webp",
            "application/pdf", "text/plain", "text/markdown", "text/csv",
            "application/json",
        ],
    },
    "timeout_config": {
        "connection_timeout": 30,
        "default_timeout": 120,
        "max_tokens": 4096,
    },
}


@dataclass(frozen=True)
class ModelDescriptor:
    """A model that can sit on the council, chair it, or serve chat."""
    id: str
    display_name: str
    provider: str
    provider_model_id: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "provider": self.provider,
            "provider_model_id": self.provider_model_id,
        }


def get_project_root() -> Path:
    return Path(__file__).parent.parent


def get_config_path() -> Path:
    override = os.getenv("COUNCIL_CONFIG_PATH")
    if override:
        return Path(override)
    return get_project_root() / "config" / "models.yaml"


def _load_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config() -> Dict[str, Any]:
    """Load model configuration from config/models.yaml (cached)."""
    global _config_cache
    if _config_cache is not None:
        return _config_cache

    config_path = get_config_path()
    if config_path.exists():
        _config_cache = _load_yaml(config_path)
        logger.info("Loaded configuration from %s", config_path)
    else:
        logger.warning("%s not found, using defaults", config_path)
        _config_cache = dict(_DEFAULT_CONFIG)
    return _config_cache


def reload_config() -> Dict[str, Any]:
    """Force reload configuration from disk."""
    global _config_cache
    _config_cache = None
    return load_config()


def _to_descriptor(entry: Dict[str, Any]) -> ModelDescriptor:
    provider = str(entry.get("provider", "")).lower()
    if provider not in PROVIDERS:
        raise ValueError(f"Model {entry.get('id')!r} has unknown provider {provider!r}")
    return ModelDescriptor(
        id=str(entry["id"]),
        display_name=str(entry.get("name", entry["id"])),
        provider=provider,
        provider_model_id=str(entry.get("model", entry["id"])),
    )


def get_models() -> List[ModelDescriptor]:
    """Get every configured model descriptor, in config order."""
    config = load_config()
    models = []
    seen = set()
    seen_names = set()
    for entry in config.get("models", []):
        descriptor = _to_descriptor(entry)
        if descriptor.id in seen:
            raise ValueError(f"Duplicate model id in config: {descriptor.id}")
        # Peer rankings resolve labels through display names.
        if descriptor.display_name in seen_names:
            raise ValueError(f"Duplicate model name in config: {descriptor.display_name}")
        seen.add(descriptor.id)
        seen_names.add(descriptor.display_name)
        models.append(descriptor)
    return models


def get_council_model_ids() -> List[str]:
    """Get the default council member IDs."""
    config = load_config()
    council = config.get("council")
    if council:
        return [str(mid) for mid in council]
    return [m["id"] for m in config.get("models", [])]


def get_chairman_model_id() -> str:
    config = load_config()
    return str(config.get("chairman", _DEFAULT_CONFIG["chairman"]))


def get_chat_config() -> Dict[str, Any]:
    config = load_config()
    chat = dict(_DEFAULT_CONFIG["chat"])
    chat.update(config.get("chat", {}))
    return chat


def get_attachment_config() -> Dict[str, Any]:
    config = load_config()
    attachments = dict(_DEFAULT_CONFIG["attachments"])
    attachments.update(config.get("attachments", {}))
    return attachments


def get_timeout_config() -> Dict[str, Any]:
    config = load_config()
    timeouts = dict(_DEFAULT_CONFIG["timeout_config"])
    timeouts.update(config.get("timeout_config", {}))
    return timeouts
