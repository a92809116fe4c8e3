# session/exceptions.py
"""Custom exceptions for the session lifecycle."""

from typing import Optional


class SessionError(Exception):
    """Base exception for speaking session errors."""

    def __init__(self, message: str, session_id: Optional[str] = None):
        self.message = message
        self.session_id = session_id
        prefix = f"[Session: {session_id}] " if session_id else ""
        super().__init__(f"{prefix}{message}")


class InvalidTransitionError(SessionError):
    """Raised when an operation is not allowed in the current session state."""
    pass


class RecognitionError(SessionError):
    """Raised when the transcript feed reports a recognizer failure."""
    pass
