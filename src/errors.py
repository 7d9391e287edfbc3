# src/errors.py
"""Exceptions raised by the upload, gateway, pipeline and chat layers."""


class AssignmentError(Exception):
    """Base class for all application errors."""


class UploadReadError(AssignmentError):
    """The uploaded file could not be read or decoded."""


class GatewayError(AssignmentError):
    """A request to the generative AI service failed."""


class ParseError(GatewayError):
    """The structured response was missing or did not match the expected schema."""


class ToolCallError(AssignmentError):
    """The model requested a tool that is not registered."""

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown function: {tool_name}")
        self.tool_name = tool_name


class ChatBusyError(AssignmentError):
    """A chat turn is already in flight for this session."""
