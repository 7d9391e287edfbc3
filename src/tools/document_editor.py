# src/tools/document_editor.py
"""
Editor-side state that sits next to the document model: theme choice,
copy-to-clipboard acknowledgement and the two-step delete confirmation.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from src.logging_setup import get_logger
from src.models.assignment import AssignmentResult, Question, delete_question

logger = get_logger("solution_editor", "solution_editor.log")

COPY_ACK_SECONDS = 2.0


@dataclass(frozen=True)
class Theme:
    key: str
    label: str
    font_family: str
    text_color: str
    accent_color: str
    code_background: str
    code_color: str
    line_height: float
    base_font_size: str


THEMES: Dict[str, Theme] = {
    "standard": Theme(
        key="standard",
        label="Arial (Standard)",
        font_family="Arial, Helvetica, sans-serif",
        text_color="#111827",
        accent_color="#2563eb",
        code_background="#1e293b",
        code_color="#93c5fd",
        line_height=1.5,
        base_font_size="11pt",
    ),
    "academic": Theme(
        key="academic",
        label="Times New Roman (Academic)",
        font_family="'Times New Roman', Times, serif",
        text_color="#000000",
        accent_color="#1f2937",
        code_background="#f3f4f6",
        code_color="#111827",
        line_height=2.0,
        base_font_size="12pt",
    ),
    "modern": Theme(
        key="modern",
        label="Inter (Modern)",
        font_family="Inter, 'Helvetica Neue', Arial, sans-serif",
        text_color="#1e293b",
        accent_color="#4f46e5",
        code_background="#0f172a",
        code_color="#a5b4fc",
        line_height=1.65,
        base_font_size="11pt",
    ),
    "manuscript": Theme(
        key="manuscript",
        label="Courier (Manuscript)",
        font_family="'Courier New', Courier, monospace",
        text_color="#111827",
        accent_color="#374151",
        code_background="#f9fafb",
        code_color="#111827",
        line_height=1.25,
        base_font_size="10pt",
    ),
}

DEFAULT_THEME = "standard"


def get_theme(key: Optional[str]) -> Theme:
    return THEMES.get(key or DEFAULT_THEME, THEMES[DEFAULT_THEME])


class CopyIndicator:
    """
    Transient "copied" acknowledgement for code blocks.

    Only one question can show it at a time; it clears itself `duration`
    seconds after being set.
    """

    def __init__(self, duration: float = COPY_ACK_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.duration = duration
        self._clock = clock
        self._question_id: Optional[str] = None
        self._expires_at = 0.0

    def mark(self, question_id) -> None:
        self._question_id = str(question_id)
        self._expires_at = self._clock() + self.duration

    def active_id(self) -> Optional[str]:
        if self._question_id is not None and self._clock() >= self._expires_at:
            self._question_id = None
        return self._question_id

    def is_copied(self, question_id) -> bool:
        return self.active_id() == str(question_id)

    def remaining(self) -> float:
        if self.active_id() is None:
            return 0.0
        return max(0.0, self._expires_at - self._clock())


class DeleteConfirmation:
    """Two-step delete: request() arms it for one question, confirm() removes it."""

    def __init__(self):
        self.pending_id: Optional[str] = None

    def request(self, question_id) -> None:
        self.pending_id = str(question_id)

    def cancel(self) -> None:
        self.pending_id = None

    def is_pending(self, question_id) -> bool:
        return self.pending_id == str(question_id)

    def confirm(self, doc: AssignmentResult) -> Optional[Question]:
        if self.pending_id is None:
            return None
        removed = delete_question(doc, self.pending_id)
        if removed is not None:
            logger.info("Deleted question %s (%d asset(s))", removed.id, len(removed.assets))
        self.pending_id = None
        return removed
