# src/models/assignment.py
"""
In-memory document model for a solved assignment.

An `AssignmentResult` is created once per successful extraction and then
mutated in place by the solution editor and by tutor tool calls. Questions
own their assets: deleting a question drops its assets with it.
"""

from __future__ import annotations

import re
import uuid
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class AssignmentType(str, Enum):
    THEORY = "theory"
    CODING = "coding"
    MIXED = "mixed"


class Asset(BaseModel):
    id: str = Field(default_factory=lambda: new_asset_id())
    kind: Literal["image"] = "image"
    url: str
    caption: Optional[str] = None


class Question(BaseModel):
    id: str
    question_text: str
    explanation: str = ""
    language: Optional[str] = None
    requires_execution: bool = False
    solution: Optional[str] = None
    code: Optional[str] = None
    execution_output: Optional[str] = None
    assets: List[Asset] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        # the model sometimes emits numeric ids
        return str(v) if v is not None else v

    @property
    def has_code_block(self) -> bool:
        return self.code is not None

    @property
    def shows_solution_block(self) -> bool:
        """Code view supersedes the plain solution view."""
        return bool(self.solution) and not self.code


class AssignmentResult(BaseModel):
    type: AssignmentType
    title: str
    questions: List[Question] = Field(default_factory=list)

    def to_context_json(self) -> str:
        """Serialize for the tutor's system instruction (asset payloads omitted)."""
        return self.model_dump_json(indent=2, exclude_none=True, exclude={"questions": {"__all__": {"assets"}}})


# Fields a user may edit in place, keyed by question id.
EDITABLE_FIELDS = ("question_text", "explanation", "solution", "code", "language")


def new_asset_id() -> str:
    return f"asset_{uuid.uuid4().hex[:12]}"


def chat_storage_key(title: str) -> str:
    """Normalize a document title into the key its chat transcript is stored under."""
    key = re.sub(r"[^a-z0-9]+", "_", (title or "").strip().lower()).strip("_")
    return key or "untitled"


def find_question(doc: AssignmentResult, question_id) -> Optional[Question]:
    wanted = str(question_id)
    for q in doc.questions:
        if q.id == wanted:
            return q
    return None


def update_title(doc: AssignmentResult, value: str) -> None:
    doc.title = value


def update_question_field(doc: AssignmentResult, question_id, field: str, value: str) -> bool:
    """
    Set one editable field on the question with `question_id`.

    Returns False when no question matches. Raises ValueError for fields that
    are not user-editable.
    """
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Field {field!r} is not editable")
    q = find_question(doc, question_id)
    if q is None:
        return False
    setattr(q, field, value)
    return True


def delete_question(doc: AssignmentResult, question_id) -> Optional[Question]:
    """Remove the question (and its assets) and return it, or None if absent."""
    wanted = str(question_id)
    for idx, q in enumerate(doc.questions):
        if q.id == wanted:
            return doc.questions.pop(idx)
    return None


def add_asset(doc: AssignmentResult, question_id, asset: Asset) -> bool:
    q = find_question(doc, question_id)
    if q is None:
        return False
    q.assets.append(asset)
    return True


def remove_asset(doc: AssignmentResult, question_id, asset_id: str) -> bool:
    q = find_question(doc, question_id)
    if q is None:
        return False
    before = len(q.assets)
    q.assets = [a for a in q.assets if a.id != asset_id]
    return len(q.assets) != before
