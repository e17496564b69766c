"""Shared error codes, user-facing messages and exceptions."""

from __future__ import annotations

from typing import Optional

SELECTION_MISUSE = "SELECTION_MISUSE"
PROMPT_UNSAFE_INPUT = "PROMPT_UNSAFE_INPUT"
TRANSPORT_ERROR = "TRANSPORT_ERROR"
DECODE_ERROR = "DECODE_ERROR"
JOIN_VIOLATION = "JOIN_VIOLATION"
AUTH_FAILED = "AUTH_FAILED"

ERROR_MESSAGES = {
    SELECTION_MISUSE: "Words must be picked in order: who, what, then does.",
    PROMPT_UNSAFE_INPUT: "Some words were removed to keep the picture friendly.",
    TRANSPORT_ERROR: "Could not reach the drawing service, showing a sample picture.",
    DECODE_ERROR: "The drawing service sent an unreadable picture.",
    JOIN_VIOLATION: "A late result from an earlier drawing was ignored.",
    AUTH_FAILED: "API key is invalid.",
}


class WordCanvasError(Exception):
    code = ""

    @property
    def user_message(self) -> str:
        return ERROR_MESSAGES.get(self.code, str(self))


class SelectionMisuseError(WordCanvasError):
    """Raised when words are filled out of sequence or with the wrong kind."""

    code = SELECTION_MISUSE


class TransportError(WordCanvasError):
    """Raised by a transport when the request could not be completed."""

    code = TRANSPORT_ERROR

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
        if status in (401, 403):
            self.code = AUTH_FAILED


class DecodeError(WordCanvasError):
    code = DECODE_ERROR
