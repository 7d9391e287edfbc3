# src/models/chat.py
from __future__ import annotations

import time
from typing import List, Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str
    is_system: bool = False
    timestamp: float = Field(default_factory=time.time)


class InFlightMessage:
    """
    The model reply currently being streamed.

    Kept apart from the message log; `finish()` turns it into an immutable
    ChatMessage once the stream segment is complete.
    """

    def __init__(self):
        self._chunks: List[str] = []
        self.started_at = time.time()

    def append(self, text: str) -> None:
        if text:
            self._chunks.append(text)

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def is_empty(self) -> bool:
        return not self.text.strip()

    def finish(self) -> ChatMessage:
        return ChatMessage(role="model", text=self.text, timestamp=self.started_at)


def greeting_message(title: str) -> ChatMessage:
    return ChatMessage(
        role="model",
        text=f'Hi! I\'m your AI Tutor for "{title}". How can I help you understand this assignment better today?',
    )
