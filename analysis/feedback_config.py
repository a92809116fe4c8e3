# analysis/feedback_config.py

"""
Centralized thresholds and rule table for the feedback generator.
"""

from session.models import FeedbackCategory, FeedbackPriority, FeedbackType

# --- Final feedback thresholds ---
FINAL_THRESHOLDS = {
    "volume": {
        "unsteady": 70.0,   # consistency below this gets advice
        "erratic": 40.0,    # below this the advice is high priority
    },
    "clarity": {
        "max_fillers": 5,   # more than this is critical
        "fast_wpm": 200,
    },
    "coherence": {
        "relevance": 80.0,
        "structure": 70.0,
    },
    "overall": {
        "excellent": 85,    # strictly above
    },
}

# --- Live feedback thresholds ---
LIVE_THRESHOLDS = {
    "min_transcript_chars": 10,
    "fast_wpm": 200,
    "slow_wpm": 100,
    "structure_min_words": 50,
}

# Rule id -> (type, category, priority). Priority is fixed per rule.
RULES = {
    "volume_unsteady": (FeedbackType.IMPROVEMENT, FeedbackCategory.VOLUME, FeedbackPriority.MEDIUM),
    "volume_erratic": (FeedbackType.IMPROVEMENT, FeedbackCategory.VOLUME, FeedbackPriority.HIGH),
    "filler_overuse": (FeedbackType.CRITICAL, FeedbackCategory.CLARITY, FeedbackPriority.HIGH),
    "rate_fast": (FeedbackType.IMPROVEMENT, FeedbackCategory.CLARITY, FeedbackPriority.MEDIUM),
    "relevance_low": (FeedbackType.IMPROVEMENT, FeedbackCategory.COHERENCE, FeedbackPriority.MEDIUM),
    "structure_low": (FeedbackType.IMPROVEMENT, FeedbackCategory.COHERENCE, FeedbackPriority.MEDIUM),
    "overall_excellent": (FeedbackType.POSITIVE, FeedbackCategory.GENERAL, FeedbackPriority.LOW),
    "live_filler": (FeedbackType.IMPROVEMENT, FeedbackCategory.CLARITY, FeedbackPriority.MEDIUM),
    "live_rate_fast": (FeedbackType.IMPROVEMENT, FeedbackCategory.CLARITY, FeedbackPriority.MEDIUM),
    "live_rate_slow": (FeedbackType.IMPROVEMENT, FeedbackCategory.CLARITY, FeedbackPriority.MEDIUM),
    "live_structure": (FeedbackType.IMPROVEMENT, FeedbackCategory.COHERENCE, FeedbackPriority.MEDIUM),
}


def priority_for(rule: str) -> FeedbackPriority:
    """Fixed priority of a feedback rule; KeyError for an unknown rule."""
    return RULES[rule][2]
