# src/agents/tutor_agent/agent.py
"""
Tutor chat session bound to one assignment document.

The Gemini chat is created lazily (first open / first message) with the whole
document serialized into the system instruction and one callable tool,
`update_assignment_content`. Function calling is handled here rather than by
the SDK so each edit can be applied to the live document, confirmed in the
transcript and acknowledged back to the model before it narrates the change.

Per turn:
  1. append the user message, stream the reply into an in-flight message
  2. collect function calls seen in the stream
  3. apply each call, append a system confirmation, send the function
     responses and stream the follow-up the same way
  4. on any error roll the document and transcript back to the start of the
     turn, append a single apology and drop the SDK chat

A dropped chat (error, or tool calls left over after MAX_TOOL_ROUNDS) is
recreated on the next turn from the stored transcript, so the model never sees
a function call without its response. Restored transcripts seed a new chat the
same way.
"""

from typing import Iterator, List, Optional

from google.genai import types

from src.errors import ChatBusyError, ToolCallError
from src.logging_setup import get_logger
from src.models.assignment import AssignmentResult
from src.models.chat import ChatMessage, InFlightMessage, greeting_message
from src.tools.assignment_tools import (
    UPDATE_TOOL_DECLARATION,
    UPDATE_TOOL_NAME,
    apply_update,
    parse_update_args,
)

logger = get_logger("tutor_agent", "tutor_agent_events.log")

APOLOGY_TEXT = "Sorry, I encountered an error. Please try again."

# follow-up rounds allowed when the model keeps chaining tool calls
MAX_TOOL_ROUNDS = 3

QUICK_PROMPTS = ["Explain Q1", "Alternative solution", "Practice problem"]

SYSTEM_INSTRUCTION_TEMPLATE = """You are AceAssign AI Tutor. You are helping a student with their assignment titled "{title}".
The full assignment content is provided below in JSON format.
Use this context to answer questions, explain concepts further, provide alternative solutions, or help with related practice problems.
Always be encouraging, academic, and clear.
Use markdown for formatting.

You can edit the document the student is looking at by calling the `update_assignment_content` tool.
- Call it only when the student asks for a change to the document (fix, rewrite, simplify, add code, rename...).
- Identify questions by their "id" exactly as it appears in the context.
- Send only the fields that should change; everything else is kept.
- After the tool returns, briefly tell the student what you changed.

Context: {context}"""


def build_system_instruction(doc: AssignmentResult) -> str:
    return SYSTEM_INSTRUCTION_TEMPLATE.format(title=doc.title, context=doc.to_context_json())


def _iter_parts(chunk) -> Iterator[types.Part]:
    """Yield the content parts of a streamed chunk (first candidate only)."""
    for cand in (getattr(chunk, "candidates", None) or [])[:1]:
        content = getattr(cand, "content", None)
        for part in (getattr(content, "parts", None) or []):
            yield part


def transcript_history(messages: List[ChatMessage]) -> List[types.Content]:
    """
    Rebuild chat history for the model from the stored transcript.

    System confirmations and the opening greeting are skipped. Adjacent
    messages from the same role are merged into one turn.
    """
    contents: List[types.Content] = []
    for m in messages:
        if m.is_system or not m.text.strip():
            continue
        if not contents and m.role == "model":
            continue
        if contents and contents[-1].role == m.role:
            contents[-1].parts.append(types.Part(text=m.text))
        else:
            contents.append(types.Content(role=m.role, parts=[types.Part(text=m.text)]))
    return contents


class TutorChatSession:
    """
    Owns the chat transcript, the Gemini chat object and the in-flight reply.

    `store` (optional) is a ChatHistoryStore; the transcript is restored from it
    on construction and saved after every turn.
    """

    def __init__(self, document: AssignmentResult, gateway, store=None):
        self.document = document
        self.gateway = gateway
        self.store = store
        self._chat = None
        self._busy = False
        self.in_flight: Optional[InFlightMessage] = None

        restored = store.load(document.title) if store is not None else None
        if restored:
            logger.info("Restored %d chat message(s) for %r", len(restored), document.title)
            self.messages: List[ChatMessage] = restored
        else:
            self.messages = [greeting_message(document.title)]

    @property
    def is_busy(self) -> bool:
        return self._busy

    def _start_chat(self, history_messages: List[ChatMessage]):
        chat = self.gateway.start_chat(
            build_system_instruction(self.document),
            [UPDATE_TOOL_DECLARATION],
            history=transcript_history(history_messages),
        )
        logger.info("Chat session created for %r", self.document.title)
        return chat

    def open(self):
        """Create the underlying chat session, seeded with the transcript so far."""
        if self._chat is None:
            self._chat = self._start_chat(self.messages)
        return self._chat

    def clear_history(self) -> None:
        """Reset to a single greeting and drop the session so the next turn reseeds context."""
        self.messages = [greeting_message(self.document.title)]
        self._chat = None
        self.in_flight = None
        self._persist()
        logger.info("Chat history cleared for %r", self.document.title)

    def send(self, user_text: str) -> str:
        """Run a full turn without streaming; returns the concatenated model text."""
        return "".join(self.stream_turn(user_text))

    def stream_turn(self, user_text: str) -> Iterator[str]:
        """
        Run one turn, yielding model text as it streams in.

        Raises ChatBusyError if another turn is still in flight. A failed turn
        rolls the document and transcript back to where the turn began and
        leaves only the user message and an apology.
        """
        if self._busy:
            raise ChatBusyError("Please wait for the tutor to finish the current reply.")
        text = (user_text or "").strip()
        if not text:
            return

        self._busy = True
        checkpoint = len(self.messages)
        snapshot = self.document.model_copy(deep=True)
        self.messages.append(ChatMessage(role="user", text=text))
        try:
            chat = self._chat or self._start_chat(self.messages[:checkpoint])
            self._chat = chat
            calls = yield from self._stream_reply(chat, text)
            rounds = 0
            while calls and rounds < MAX_TOOL_ROUNDS:
                responses = [self._handle_function_call(fc) for fc in calls]
                calls = yield from self._stream_reply(chat, responses)
                rounds += 1
            if calls:
                logger.warning("Stopped after %d tool round(s); %d call(s) left unanswered", rounds, len(calls))
                # the SDK history now ends on unanswered calls; reseed from the transcript next turn
                self._chat = None
        except Exception:
            logger.exception("Chat turn failed")
            self.in_flight = None
            self._rollback(snapshot, checkpoint + 1)
            self._chat = None
            self.messages.append(ChatMessage(role="model", text=APOLOGY_TEXT))
        finally:
            self._busy = False
            self._persist()

    def _rollback(self, snapshot: AssignmentResult, keep: int) -> None:
        # restore in place: the editor holds a reference to this document object
        for name in type(self.document).model_fields:
            setattr(self.document, name, getattr(snapshot, name))
        del self.messages[keep:]

    def _stream_reply(self, chat, message) -> Iterator[str]:
        """Stream one model response; returns the function calls it contained."""
        self.in_flight = InFlightMessage()
        calls: List[types.FunctionCall] = []
        for chunk in chat.send_message_stream(message):
            for part in _iter_parts(chunk):
                if getattr(part, "function_call", None) is not None:
                    fc = part.function_call
                    logger.info("[function_call] %s", fc.name)
                    calls.append(fc)
                elif getattr(part, "text", None) and not getattr(part, "thought", False):
                    self.in_flight.append(part.text)
                    yield part.text

        finished, self.in_flight = self.in_flight, None
        if not finished.is_empty():
            self.messages.append(finished.finish())
        return calls

    def _handle_function_call(self, fc: types.FunctionCall) -> types.Part:
        if fc.name != UPDATE_TOOL_NAME:
            err = ToolCallError(fc.name or "")
            logger.warning("Model requested unknown tool %r", fc.name)
            return types.Part(function_response=types.FunctionResponse(
                id=fc.id, name=fc.name, response={"error": str(err)},
            ))

        update = parse_update_args(fc.args or {})
        summary = apply_update(self.document, update)
        # document is already edited when the confirmation lands in the transcript
        self.messages.append(ChatMessage(role="model", text=summary.confirmation_text(), is_system=True))
        return types.Part(function_response=types.FunctionResponse(
            id=fc.id, name=fc.name, response=summary.acknowledgement(),
        ))

    def _persist(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(self.document.title, self.messages)
        except OSError:
            logger.exception("Failed to persist chat history for %r", self.document.title)
