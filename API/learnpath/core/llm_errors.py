"""Failure taxonomy for the LLM request pipeline.

Messages on these exceptions are short and safe to show to a user; diagnostic
payloads (response bodies, normalized text) ride along as attributes and are
only ever written to the log.
"""
from __future__ import annotations


class LLMError(Exception):
    """Base class for failures raised by the bounded request executor."""

    code = "llm_error"


class LLMTimeout(LLMError):
    code = "timeout"

    def __init__(self, timeout_ms: int):
        super().__init__("Request timeout - please try again")
        self.timeout_ms = timeout_ms


class TransportError(LLMError):
    code = "transport_error"

    def __init__(self, status: int, body: str = ""):
        super().__init__(f"AI service request failed with status {status}")
        self.status = status
        self.body = body


class InvalidResponseShape(LLMError):
    code = "invalid_response_shape"

    def __init__(self, message: str = "Invalid response structure from AI"):
        super().__init__(message)


class NotJson(LLMError):
    code = "not_json"

    def __init__(self, text: str = ""):
        super().__init__("Invalid JSON response from AI")
        self.text = text


class ParseError(LLMError):
    code = "parse_error"

    def __init__(self, detail: str, text: str = ""):
        super().__init__("Failed to parse AI response as JSON")
        self.detail = detail
        self.text = text


class GenerationFailed(Exception):
    """Single user-facing failure of a generation use case."""

    code = "generation_failed"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
