import dataclasses

import pytest

from src.config import DEFAULT_EXTRACTION_MODEL, DEFAULT_FAST_MODEL, MAX_UPLOAD_BYTES, load_config

ENV_KEYS = [
    "GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY", "EXTRACTION_MODEL", "CHAT_MODEL", "EXECUTION_MODEL",
    "GEMINI_TIMEOUT_SECONDS", "CLASSIFY_DELAY_SECONDS", "EXECUTION_WORKERS", "MAX_UPLOAD_BYTES",
    "COPY_ACK_SECONDS", "LOGS_DIR", "CHAT_HISTORY_DIR",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = load_config()

    assert config.api_key == ""
    assert config.extraction_model == DEFAULT_EXTRACTION_MODEL
    assert config.chat_model == config.execution_model == DEFAULT_FAST_MODEL
    assert config.request_timeout_seconds == 120.0
    assert config.classify_delay_seconds == 1.0
    assert config.max_upload_bytes == MAX_UPLOAD_BYTES
    assert config.copy_ack_seconds == 2.0


def test_api_key_aliases(clean_env):
    clean_env.setenv("API_KEY", "third")
    assert load_config().api_key == "third"

    clean_env.setenv("GEMINI_API_KEY", "second")
    assert load_config().api_key == "second"

    clean_env.setenv("GOOGLE_API_KEY", "first")
    assert load_config().api_key == "first"


def test_overrides(clean_env):
    clean_env.setenv("CHAT_MODEL", "gemini-custom")
    clean_env.setenv("CLASSIFY_DELAY_SECONDS", "0")
    clean_env.setenv("EXECUTION_WORKERS", "2")

    config = load_config()
    assert config.chat_model == "gemini-custom"
    assert config.classify_delay_seconds == 0.0
    assert config.execution_workers == 2


def test_config_is_immutable(clean_env):
    config = load_config()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.chat_model = "other"
