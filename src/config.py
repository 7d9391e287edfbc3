# src/config.py
# Load .env before anything reads the environment (GOOGLE_API_KEY lives there).
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_EXTRACTION_MODEL = "gemini-3-pro-preview"
DEFAULT_FAST_MODEL = "gemini-3-flash-preview"

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB per upload


def _env(key: str, default: str) -> str:
    return os.getenv(key, default)


def _env_alias(keys: list[str], default: str) -> str:
    for key in keys:
        value = os.getenv(key)
        if value is not None and value != "":
            return value
    return default


@dataclass(frozen=True)
class AppConfig:
    api_key: str
    extraction_model: str
    chat_model: str
    execution_model: str
    request_timeout_seconds: float
    classify_delay_seconds: float
    execution_workers: int
    max_upload_bytes: int
    copy_ack_seconds: float
    logs_dir: str
    chat_history_dir: str


def load_config() -> AppConfig:
    return AppConfig(
        api_key=_env_alias(["GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY"], ""),
        extraction_model=_env("EXTRACTION_MODEL", DEFAULT_EXTRACTION_MODEL),
        chat_model=_env("CHAT_MODEL", DEFAULT_FAST_MODEL),
        execution_model=_env("EXECUTION_MODEL", DEFAULT_FAST_MODEL),
        request_timeout_seconds=float(_env("GEMINI_TIMEOUT_SECONDS", "120")),
        classify_delay_seconds=float(_env("CLASSIFY_DELAY_SECONDS", "1.0")),
        execution_workers=int(_env("EXECUTION_WORKERS", "4")),
        max_upload_bytes=int(_env("MAX_UPLOAD_BYTES", str(MAX_UPLOAD_BYTES))),
        copy_ack_seconds=float(_env("COPY_ACK_SECONDS", "2.0")),
        logs_dir=_env("LOGS_DIR", "logs"),
        chat_history_dir=_env("CHAT_HISTORY_DIR", os.path.join("data", "chat_history")),
    )
