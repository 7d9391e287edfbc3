# src/agents/gateway/gateway.py
"""
Thin gateway over the Gemini API.

- extract_and_solve(): one structured-output request that extracts, classifies
  and solves every question in an uploaded document
- simulate_execution(): asks the model for the *approximate* terminal output of
  a code snippet; no interpreter is ever run
- start_chat(): opens a chat session for the tutor with manual tool calling,
  optionally seeded with earlier turns

Every call is one-shot: failures surface as GatewayError (or ParseError for a
malformed structured response) and are never retried here.
"""

import json
from typing import List, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from src.config import AppConfig, load_config
from src.errors import GatewayError, ParseError
from src.logging_setup import get_logger
from src.models.assignment import AssignmentResult, AssignmentType
from src.tools.upload_adapter import FileData

logger = get_logger("gemini_gateway", "gemini_gateway.log")

EXTRACTION_INSTRUCTION = (
    "Act as an expert academic professor. Extract all questions from this document. "
    "Solve them with detailed step-by-step explanations. IMPORTANT: Use standard Markdown "
    "backticks (e.g. `variableName` or `function()`) for any inline code snippets, keywords, "
    "or mathematical expressions within your explanations and solutions. For coding questions, "
    "provide clean, commented code in the separate code field. Classify the assignment as "
    "'theory', 'coding', or 'mixed'. Return the data in the following JSON format."
)

NO_OUTPUT_TEXT = "Execution completed with no output."

REQUIRED_KEYS = ("title", "type", "questions")

EXTRACTION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "title": types.Schema(type=types.Type.STRING),
        "type": types.Schema(type=types.Type.STRING, enum=[t.value for t in AssignmentType]),
        "questions": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "id": types.Schema(type=types.Type.STRING),
                    "question_text": types.Schema(type=types.Type.STRING),
                    "language": types.Schema(type=types.Type.STRING),
                    "requires_execution": types.Schema(type=types.Type.BOOLEAN),
                    "solution": types.Schema(type=types.Type.STRING),
                    "code": types.Schema(type=types.Type.STRING),
                    "explanation": types.Schema(type=types.Type.STRING),
                },
                required=["id", "question_text", "solution", "explanation"],
            ),
        ),
    },
    required=list(REQUIRED_KEYS),
)


def execution_prompt(code: str, language: str) -> str:
    return (
        f"Simulate the execution output of the following {language} code. "
        f"Only provide the terminal output, no extra text:\n\n{code}"
    )


def parse_assignment_json(text: Optional[str]) -> AssignmentResult:
    """
    Decode the structured extraction response.

    A missing body, invalid JSON, an object missing title/type/questions or any
    schema violation raises ParseError.
    """
    if not text or not text.strip():
        raise ParseError("The AI service returned an empty response.")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"The AI service returned malformed JSON: {e}") from e
    if not isinstance(data, dict):
        raise ParseError("The AI service returned JSON that is not an object.")
    missing = [k for k in REQUIRED_KEYS if k not in data]
    if missing:
        raise ParseError(f"The AI response is missing required fields: {', '.join(missing)}")
    try:
        return AssignmentResult.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"The AI response does not match the assignment schema: {e}") from e


class GeminiGateway:
    def __init__(self, config: Optional[AppConfig] = None, client=None):
        self.config = config or load_config()
        if client is None:
            try:
                client = genai.Client(
                    api_key=self.config.api_key or None,
                    http_options=types.HttpOptions(timeout=int(self.config.request_timeout_seconds * 1000)),
                )
            except ValueError as e:
                # raised when no API key is configured
                raise GatewayError(f"Gemini client could not be created: {e}") from e
        self._client = client

    def extract_and_solve(self, file_data: FileData) -> AssignmentResult:
        logger.info("extract_and_solve: %s (%s) via %s", file_data.name, file_data.mime_type,
                    self.config.extraction_model)
        try:
            response = self._client.models.generate_content(
                model=self.config.extraction_model,
                contents=[
                    types.Content(
                        role="user",
                        parts=[
                            types.Part.from_bytes(data=file_data.raw_bytes(), mime_type=file_data.mime_type),
                            types.Part(text=EXTRACTION_INSTRUCTION),
                        ],
                    )
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=EXTRACTION_SCHEMA,
                ),
            )
        except Exception as e:
            logger.exception("Extraction request failed")
            raise GatewayError(str(e) or "Extraction request failed.") from e

        result = parse_assignment_json(getattr(response, "text", None))
        logger.info("Extracted %r (%s) with %d question(s)", result.title, result.type.value, len(result.questions))
        return result

    def simulate_execution(self, code: str, language: str) -> str:
        logger.info("simulate_execution: %s snippet (%d chars)", language, len(code or ""))
        try:
            response = self._client.models.generate_content(
                model=self.config.execution_model,
                contents=execution_prompt(code, language),
            )
        except Exception as e:
            logger.exception("Execution simulation failed")
            raise GatewayError(str(e) or "Execution simulation failed.") from e
        return getattr(response, "text", None) or NO_OUTPUT_TEXT

    def start_chat(self, system_instruction: str, function_declarations: List[types.FunctionDeclaration],
                   history: Optional[List[types.Content]] = None):
        logger.info("Starting chat session on %s (%d prior turn(s))", self.config.chat_model, len(history or []))
        try:
            return self._client.chats.create(
                model=self.config.chat_model,
                config=types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    tools=[types.Tool(function_declarations=function_declarations)],
                    automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
                ),
                history=history or None,
            )
        except Exception as e:
            logger.exception("Chat session creation failed")
            raise GatewayError(str(e) or "Could not start chat session.") from e
