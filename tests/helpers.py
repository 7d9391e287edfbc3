import base64
import dataclasses
from typing import Any, Dict, List, Optional

from google.genai import types

from src.config import load_config
from src.models.assignment import AssignmentResult
from src.tools.upload_adapter import FileData


def make_config(**overrides):
    """Config for tests: no classification pause, small pool, temp-friendly dirs."""
    defaults = {"classify_delay_seconds": 0.0, "execution_workers": 4, "api_key": "test-key"}
    defaults.update(overrides)
    return dataclasses.replace(load_config(), **defaults)


def algebra_doc() -> AssignmentResult:
    return AssignmentResult.model_validate({
        "title": "Algebra Set",
        "type": "theory",
        "questions": [
            {"id": "q1", "question_text": "Solve x+2=5", "solution": "x=3", "explanation": "Subtract 2"},
        ],
    })


def three_question_doc() -> AssignmentResult:
    return AssignmentResult.model_validate({
        "title": "Mixed Bag",
        "type": "mixed",
        "questions": [
            {"id": "q1", "question_text": "First", "solution": "A", "explanation": "E1",
             "assets": [{"id": "a1", "url": "data:image/png;base64,AAAA"}]},
            {"id": "q2", "question_text": "Second", "solution": "B", "explanation": "E2",
             "assets": [{"id": "a2", "url": "https://example.com/x.png", "caption": "diagram"}]},
            {"id": "q3", "question_text": "Third", "solution": "C", "explanation": "E3",
             "code": "print(3)", "language": "python"},
        ],
    })


def pdf_file_data(name: str = "homework.pdf") -> FileData:
    return FileData(name=name, mime_type="application/pdf",
                    base64=base64.b64encode(b"%PDF-1.4 fake").decode("ascii"))


def _finish(done: bool):
    return types.FinishReason.STOP if done else None


def text_chunk(text: str, done: bool = False) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(candidates=[
        types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)]), finish_reason=_finish(done))
    ])


def call_chunk(name: str, args: Dict[str, Any], call_id: Optional[str] = None,
               done: bool = False) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(candidates=[
        types.Candidate(content=types.Content(role="model", parts=[
            types.Part(function_call=types.FunctionCall(name=name, args=args, id=call_id))
        ]), finish_reason=_finish(done))
    ])


class FakeChat:
    """
    Stand-in for a google-genai Chat. Each send_message_stream() call consumes
    the next scripted response: a list of chunks, or an exception to raise.
    """

    def __init__(self, responses: List[Any]):
        self._responses = list(responses)
        self.sent: List[Any] = []

    def send_message_stream(self, message):
        self.sent.append(message)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return iter(item)


class FakeChatGateway:
    """Gateway double that hands out FakeChat objects and records how it was seeded."""

    def __init__(self, *chats: FakeChat):
        self._chats = list(chats)
        self.started: List[Dict[str, Any]] = []

    def start_chat(self, system_instruction, function_declarations, history=None):
        self.started.append({
            "system_instruction": system_instruction,
            "tools": function_declarations,
            "history": history or [],
        })
        return self._chats.pop(0)
