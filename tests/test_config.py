"""Tests for council_chat/config_loader.py."""

import pytest

from council_chat import config_loader
from council_chat.config_loader import get_chat_config, get_models, get_timeout_config


def _use_config(tmp_path, monkeypatch, text):
    path = tmp_path / "custom.yaml"
    path.write_text(text, encoding="utf-8")
    monkeypatch.setenv("COUNCIL_CONFIG_PATH", str(path))
    config_loader.reload_config()


def test_models_load_in_config_order():
    assert [m.id for m in get_models()] == ["alpha", "beta", "gamma", "delta"]
    assert get_models()[1].provider_model_id == "beta-1"


def test_duplicate_display_names_are_rejected(tmp_path, monkeypatch):
    _use_config(tmp_path, monkeypatch, """
models:
  - {id: one, name: Twin, provider: openai, model: one-1}
  - {id: two, name: Twin, provider: xai, model: two-1}
""")
    with pytest.raises(ValueError, match="Duplicate model name"):
        get_models()


def test_duplicate_ids_and_unknown_providers_are_rejected(tmp_path, monkeypatch):
    _use_config(tmp_path, monkeypatch, """
models:
  - {id: one, name: One, provider: openai}
  - {id: one, name: Other, provider: openai}
""")
    with pytest.raises(ValueError, match="Duplicate model id"):
        get_models()

    _use_config(tmp_path, monkeypatch, "models:\n  - {id: one, name: One, provider: mystery}\n")
    with pytest.raises(ValueError, match="unknown provider"):
        get_models()


def test_missing_file_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv("COUNCIL_CONFIG_PATH", str(tmp_path / "absent.yaml"))
    config_loader.reload_config()

    assert "gpt-5.2" in [m.id for m in get_models()]
    assert get_chat_config()["system_prompt"] == "You are a helpful assistant."
    assert get_timeout_config()["max_tokens"] == 4096
