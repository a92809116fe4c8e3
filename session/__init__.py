"""
Session package: data model, configuration and lifecycle of a speaking session.

The orchestrator lives in ``session.session_coordinator``; import it from
there (it depends on the audio and analysis packages).
"""

from .exceptions import InvalidTransitionError, RecognitionError, SessionError
from .models import (
    Difficulty,
    FeedbackCategory,
    FeedbackItem,
    FeedbackPriority,
    FeedbackType,
    QuestionCategory,
    SessionResult,
    SessionState,
    SpeakingQuestion,
    SpeechAnalysis,
)

__all__ = [
    "InvalidTransitionError",
    "RecognitionError",
    "SessionError",
    "Difficulty",
    "FeedbackCategory",
    "FeedbackItem",
    "FeedbackPriority",
    "FeedbackType",
    "QuestionCategory",
    "SessionResult",
    "SessionState",
    "SpeakingQuestion",
    "SpeechAnalysis",
]
