import json
from unittest.mock import MagicMock

import pytest
from google.genai import types

from src.agents.gateway.gateway import (
    EXTRACTION_INSTRUCTION,
    NO_OUTPUT_TEXT,
    GeminiGateway,
    parse_assignment_json,
)
from src.errors import GatewayError, ParseError
from src.tools.assignment_tools import UPDATE_TOOL_DECLARATION
from tests.helpers import make_config, pdf_file_data

ALGEBRA_JSON = json.dumps({
    "title": "Algebra Set",
    "type": "theory",
    "questions": [{"id": "q1", "question_text": "Solve x+2=5", "solution": "x=3", "explanation": "Subtract 2"}],
})


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def gateway(client):
    return GeminiGateway(make_config(), client=client)


def test_extract_and_solve_sends_file_and_instruction(gateway, client):
    client.models.generate_content.return_value = MagicMock(text=ALGEBRA_JSON)

    result = gateway.extract_and_solve(pdf_file_data())

    assert result.title == "Algebra Set"
    assert result.questions[0].solution == "x=3"

    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == gateway.config.extraction_model
    parts = kwargs["contents"][0].parts
    assert parts[0].inline_data.mime_type == "application/pdf"
    assert parts[0].inline_data.data == b"%PDF-1.4 fake"
    assert parts[1].text == EXTRACTION_INSTRUCTION
    assert kwargs["config"].response_mime_type == "application/json"
    assert kwargs["config"].response_schema.required == ["title", "type", "questions"]


def test_extract_and_solve_wraps_transport_errors(gateway, client):
    client.models.generate_content.side_effect = ConnectionError("network down")

    with pytest.raises(GatewayError, match="network down"):
        gateway.extract_and_solve(pdf_file_data())


@pytest.mark.parametrize("text", [
    None,
    "",
    "not json at all",
    "[1, 2, 3]",
    json.dumps({"title": "No questions", "type": "theory"}),
    json.dumps({"title": "Bad type", "type": "essay", "questions": []}),
])
def test_malformed_structured_responses_raise_parse_error(gateway, client, text):
    client.models.generate_content.return_value = MagicMock(text=text)

    with pytest.raises(ParseError):
        gateway.extract_and_solve(pdf_file_data())


def test_parse_error_is_a_gateway_error():
    with pytest.raises(GatewayError):
        parse_assignment_json("{")


def test_simulate_execution_returns_model_text(gateway, client):
    client.models.generate_content.return_value = MagicMock(text="Hello\n")

    assert gateway.simulate_execution("print('Hello')", "python") == "Hello\n"

    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == gateway.config.execution_model
    assert "python" in kwargs["contents"]
    assert "print('Hello')" in kwargs["contents"]


def test_simulate_execution_empty_output(gateway, client):
    client.models.generate_content.return_value = MagicMock(text=None)
    assert gateway.simulate_execution("x = 1", "python") == NO_OUTPUT_TEXT


def test_simulate_execution_failure(gateway, client):
    client.models.generate_content.side_effect = RuntimeError("429 RESOURCE_EXHAUSTED")
    with pytest.raises(GatewayError):
        gateway.simulate_execution("x = 1", "python")


def test_start_chat_disables_automatic_function_calling(gateway, client):
    gateway.start_chat("be helpful", [UPDATE_TOOL_DECLARATION])

    kwargs = client.chats.create.call_args.kwargs
    assert kwargs["model"] == gateway.config.chat_model
    config = kwargs["config"]
    assert isinstance(config, types.GenerateContentConfig)
    assert config.system_instruction == "be helpful"
    assert config.automatic_function_calling.disable is True
    assert config.tools[0].function_declarations[0].name == "update_assignment_content"


def test_missing_api_key_surfaces_as_gateway_error(monkeypatch):
    for key in ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY"):
        monkeypatch.delenv(key, raising=False)
    # vertex mode reads project settings instead of an API key
    monkeypatch.delenv("GOOGLE_GENAI_USE_VERTEXAI", raising=False)

    with pytest.raises(GatewayError):
        GeminiGateway(make_config(api_key=""))


def test_start_chat_passes_prior_turns(gateway, client):
    history = [types.Content(role="user", parts=[types.Part(text="Explain Q1")])]
    gateway.start_chat("be helpful", [UPDATE_TOOL_DECLARATION], history=history)
    assert client.chats.create.call_args.kwargs["history"] == history

    gateway.start_chat("be helpful", [UPDATE_TOOL_DECLARATION])
    assert client.chats.create.call_args.kwargs["history"] is None
