# src/tools/assignment_tools.py
"""
The `update_assignment_content` tool exposed to the tutor model.

The model's arguments arrive loosely typed. parse_update_args() validates them
into an AssignmentUpdate (bad question entries are logged and dropped) and
apply_update() merges it into the live document by question id:

  - only the fields that were supplied overwrite existing values
  - ids that do not exist in the document are ignored
  - ids are compared as strings
"""

from typing import Any, Dict, List, Optional

from google.genai import types
from pydantic import BaseModel, ValidationError, field_validator

from src.logging_setup import get_logger
from src.models.assignment import AssignmentResult, find_question

logger = get_logger("tutor_agent", "tutor_agent_events.log")

UPDATE_TOOL_NAME = "update_assignment_content"

PATCHABLE_FIELDS = ("question_text", "explanation", "solution", "code", "language")

UPDATE_TOOL_DECLARATION = types.FunctionDeclaration(
    name=UPDATE_TOOL_NAME,
    description=(
        "Update the assignment document shown to the student. Use it when the student asks you "
        "to change, fix, rewrite or extend a question, explanation, solution or code. Only include "
        "the fields that should change; questions are matched by their id."
    ),
    parameters=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING, description="New document title."),
            "questions": types.Schema(
                type=types.Type.ARRAY,
                description="Partial updates for existing questions.",
                items=types.Schema(
                    type=types.Type.OBJECT,
                    properties={
                        "id": types.Schema(type=types.Type.STRING, description="Id of the question to update."),
                        "question_text": types.Schema(type=types.Type.STRING),
                        "explanation": types.Schema(type=types.Type.STRING),
                        "solution": types.Schema(type=types.Type.STRING),
                        "code": types.Schema(type=types.Type.STRING),
                        "language": types.Schema(type=types.Type.STRING),
                    },
                    required=["id"],
                ),
            ),
        },
    ),
)


class QuestionPatch(BaseModel):
    id: str
    question_text: Optional[str] = None
    explanation: Optional[str] = None
    solution: Optional[str] = None
    code: Optional[str] = None
    language: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        if v is None or isinstance(v, (dict, list)):
            raise ValueError("question id must be a scalar")
        return str(v)

    def supplied_fields(self) -> Dict[str, str]:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if k in PATCHABLE_FIELDS and v is not None}


class AssignmentUpdate(BaseModel):
    title: Optional[str] = None
    questions: List[QuestionPatch] = []


class UpdateSummary(BaseModel):
    modified_question_ids: List[str] = []
    title_changed: bool = False

    @property
    def modified_count(self) -> int:
        return len(self.modified_question_ids)

    def confirmation_text(self) -> str:
        n = self.modified_count
        parts = [f"Updated {n} question{'s' if n != 1 else ''} in the document"]
        if self.title_changed:
            parts.append("and changed the title")
        return "✓ " + " ".join(parts) + "."

    def acknowledgement(self) -> Dict[str, Any]:
        return {
            "status": "success",
            "modified_questions": self.modified_question_ids,
            "title_updated": self.title_changed,
        }


def parse_update_args(args: Any) -> AssignmentUpdate:
    """Coerce raw tool-call arguments into an AssignmentUpdate."""
    if not isinstance(args, dict):
        logger.warning("update_assignment_content: ignoring non-object arguments %r", type(args).__name__)
        return AssignmentUpdate()

    title = args.get("title")
    if title is not None and not isinstance(title, str):
        logger.warning("update_assignment_content: dropping non-string title %r", title)
        title = None

    raw_questions = args.get("questions") or []
    if not isinstance(raw_questions, list):
        logger.warning("update_assignment_content: 'questions' is not a list; ignoring it")
        raw_questions = []

    patches: List[QuestionPatch] = []
    for entry in raw_questions:
        if not isinstance(entry, dict):
            logger.warning("update_assignment_content: dropping non-object question entry %r", entry)
            continue
        try:
            patches.append(QuestionPatch.model_validate(entry))
        except ValidationError as e:
            logger.warning("update_assignment_content: dropping malformed question entry %r: %s", entry, e)
    return AssignmentUpdate(title=title, questions=patches)


def apply_update(doc: AssignmentResult, update: AssignmentUpdate) -> UpdateSummary:
    """Merge `update` into `doc` in place and report what was touched."""
    summary = UpdateSummary()
    if update.title is not None:
        doc.title = update.title
        summary.title_changed = True

    for patch in update.questions:
        q = find_question(doc, patch.id)
        if q is None:
            logger.info("update_assignment_content: no question with id %s; skipping", patch.id)
            continue
        fields = patch.supplied_fields()
        for name, value in fields.items():
            setattr(q, name, value)
        if fields and q.id not in summary.modified_question_ids:
            summary.modified_question_ids.append(q.id)
    logger.info("Applied update: questions=%s title_changed=%s", summary.modified_question_ids, summary.title_changed)
    return summary
