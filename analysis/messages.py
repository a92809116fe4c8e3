"""
Message templates for feedback items, one set per coaching tone.

Tone only changes wording (and, for the executive tone, which dimension an
item is filed under); the rules that fire are the same.
"""

from typing import Dict, Optional, Tuple

from session.models import FeedbackCategory

DEFAULT_TONE = "standard"

# tone -> rule -> (message, suggestion[, category override])
TEMPLATES: Dict[str, Dict[str, tuple]] = {
    "standard": {
        "volume_unsteady": (
            "Volume consistency needs improvement",
            "Try to maintain a steady volume throughout your speech. Practice breathing exercises.",
        ),
        "volume_erratic": (
            "Your volume varies significantly throughout your speech",
            "Breathe from your diaphragm and project evenly so every sentence lands at the same level.",
        ),
        "filler_overuse": (
            "Too many filler words detected ({filler_count})",
            'Practice pausing instead of using "um", "uh", "like". Record yourself and identify patterns.',
        ),
        "rate_fast": (
            "Speaking rate is too fast ({speech_rate} wpm)",
            "Slow down to 150-180 words per minute. Use pauses for emphasis.",
        ),
        "relevance_low": (
            "Stay more focused on the question",
            "Keep your response directly related to the question asked. "
            "Use the STAR method: Situation, Task, Action, Result.",
        ),
        "structure_low": (
            "Improve response structure",
            'Organize your thoughts with clear transitions: "First...", "Next...", "Finally...".',
        ),
        "overall_excellent": (
            "Excellent speaking performance!",
            "Keep up the great work! Your clarity and structure are impressive.",
        ),
        "live_filler": (
            'Filler word detected: "{filler}"',
            "Try pausing instead of using filler words. Take a breath and continue.",
        ),
        "live_rate_fast": (
            "Speaking too fast",
            "Slow down your pace. Aim for 150-180 words per minute for clarity.",
        ),
        "live_rate_slow": (
            "Speaking too slowly",
            "Pick up your pace slightly. Aim for 150-180 words per minute.",
        ),
        "live_structure": (
            "Consider adding structure to your response",
            'Use phrases like "First...", "Second...", "Finally..." to organize your thoughts.',
        ),
    },
    "executive": {
        "volume_unsteady": (
            "Your vocal presence dips in places",
            "Hold an even, projected voice through every point; steadiness reads as authority.",
            FeedbackCategory.PRESENCE,
        ),
        "volume_erratic": (
            "Uneven projection is undercutting your presence",
            "Anchor your breath and deliver each sentence at boardroom volume, start to finish.",
            FeedbackCategory.PRESENCE,
        ),
        "filler_overuse": (
            "Filler words ({filler_count}) are eroding your credibility",
            "Replace fillers with a deliberate pause. Silence signals confidence to senior audiences.",
            FeedbackCategory.CONFIDENCE,
        ),
        "rate_fast": (
            "At {speech_rate} wpm your message is hard to absorb",
            "Slow to 150-180 words per minute and let key numbers breathe.",
        ),
        "relevance_low": (
            "Lead with the answer the audience asked for",
            "Open with your conclusion, then support it: Situation, Task, Action, Result.",
            FeedbackCategory.EXECUTIVE,
        ),
        "structure_low": (
            "Your argument needs a clearer executive structure",
            "Signpost the path: state your three points up front, then walk through them in order.",
            FeedbackCategory.EXECUTIVE,
        ),
        "overall_excellent": (
            "Strong executive delivery",
            "You are communicating at leadership level. Keep refining your storytelling.",
            FeedbackCategory.EXECUTIVE,
        ),
        "live_filler": (
            'Filler word: "{filler}"',
            "Pause instead. A confident silence beats a filler.",
            FeedbackCategory.CONFIDENCE,
        ),
        "live_rate_fast": (
            "Pace is rushing",
            "Slow to 150-180 words per minute; executives expect measured delivery.",
        ),
        "live_rate_slow": (
            "Pace is dragging",
            "Lift the tempo toward 150-180 words per minute to hold attention.",
            FeedbackCategory.PRESENCE,
        ),
        "live_structure": (
            "Signpost your structure",
            'Frame your points with "First...", "Second...", "Finally...".',
            FeedbackCategory.EXECUTIVE,
        ),
    },
}


def available_tones():
    return sorted(TEMPLATES)


def render(rule: str, tone: str = DEFAULT_TONE, **context) -> Tuple[str, str, Optional[FeedbackCategory]]:
    """
    Render the message for a rule in the given tone.

    Returns:
        (message, suggestion, category override or None)

    Raises:
        ValueError: Unknown tone
    """
    if tone not in TEMPLATES:
        raise ValueError(f"Unknown feedback tone '{tone}', expected one of {available_tones()}")

    template = TEMPLATES[tone][rule]
    message, suggestion = template[0].format(**context), template[1].format(**context)
    category = template[2] if len(template) > 2 else None
    return message, suggestion, category
