"""
Analysis package: session scoring and coaching feedback.
"""

from .feedback_generator import FeedbackGenerator, LiveFeedbackTracker, generate_final_feedback
from .scoring import SessionScorer, compute_overall_score, score_speech

__all__ = [
    "FeedbackGenerator",
    "LiveFeedbackTracker",
    "generate_final_feedback",
    "SessionScorer",
    "compute_overall_score",
    "score_speech",
]
