"""Tests for settings persistence."""

import json

from chat_overlay.core.models import CasingPolicy
from chat_overlay.core.settings import (
    DEFAULT_LOOKUP_BASE_URL,
    DEFAULT_USER_AGENT,
    Settings,
)


def test_defaults():
    settings = Settings()
    assert settings.message.casing_policy is CasingPolicy.NONE
    assert not settings.message.infer_casing_from_body
    assert settings.lookup.base_url == DEFAULT_LOOKUP_BASE_URL
    assert settings.emoji.user_agent == DEFAULT_USER_AGENT
    assert settings.emoji.loader_threads == 2


def test_save_and_load(tmp_path):
    path = tmp_path / "settings.json"
    settings = Settings()
    settings.message.casing_policy = CasingPolicy.REMOTE_LOOKUP
    settings.message.infer_casing_from_body = True
    settings.lookup.client_id = "abc123"
    settings.emoji.animate = False
    settings.save(path)

    loaded = Settings.load(path)
    assert loaded.message.casing_policy is CasingPolicy.REMOTE_LOOKUP
    assert loaded.message.infer_casing_from_body
    assert loaded.lookup.client_id == "abc123"
    assert not loaded.emoji.animate
    assert list(tmp_path.iterdir()) == [path]


def test_load_missing_file(tmp_path):
    settings = Settings.load(tmp_path / "nope.json")
    assert settings.message.casing_policy is CasingPolicy.NONE


def test_load_malformed_file(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    settings = Settings.load(path)
    assert settings.message.casing_policy is CasingPolicy.NONE
    assert "Ignoring unreadable settings file" in caplog.text


def test_unknown_policy_falls_back(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"message": {"casing_policy": "shouting"}}), encoding="utf-8")
    assert Settings.load(path).message.casing_policy is CasingPolicy.NONE


def test_numbers_clamped(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "lookup": {"timeout_seconds": 0},
                "emoji": {"loader_threads": 99, "request_timeout_seconds": True},
            }
        ),
        encoding="utf-8",
    )
    settings = Settings.load(path)
    assert settings.lookup.timeout_seconds == 1
    assert settings.emoji.loader_threads == 16
    assert settings.emoji.request_timeout_seconds == 10


def test_empty_strings_use_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"lookup": {"base_url": ""}, "emoji": {"user_agent": ""}}),
        encoding="utf-8",
    )
    settings = Settings.load(path)
    assert settings.lookup.base_url == DEFAULT_LOOKUP_BASE_URL
    assert settings.emoji.user_agent == DEFAULT_USER_AGENT
