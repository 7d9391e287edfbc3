# src/tools/chat_history.py
import json
import os
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from src.logging_setup import get_logger
from src.models.assignment import chat_storage_key
from src.models.chat import ChatMessage

logger = get_logger("chat_history", "chat_history.log")

_MESSAGES = TypeAdapter(List[ChatMessage])


class ChatHistoryStore:
    """
    Chat transcripts on local disk, one JSON file per normalized document title.
    """

    def __init__(self, base_dir: str):
        self.base_dir = base_dir

    def path_for(self, title: str) -> str:
        return os.path.join(self.base_dir, f"chat_history_{chat_storage_key(title)}.json")

    def load(self, title: str) -> Optional[List[ChatMessage]]:
        """Return the saved transcript, or None if there is none (or it is unreadable)."""
        path = self.path_for(title)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return _MESSAGES.validate_python(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError):
            logger.exception("Failed to read chat history %s; starting fresh", path)
            return None

    def save(self, title: str, messages: List[ChatMessage]) -> None:
        path = self.path_for(title)
        os.makedirs(self.base_dir, exist_ok=True)
        tmp_path = path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(_MESSAGES.dump_json(messages, indent=2).decode("utf-8"))
        os.replace(tmp_path, path)
