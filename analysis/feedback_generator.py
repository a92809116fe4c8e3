# analysis/feedback_generator.py

"""
Generates coaching feedback from speech analysis results.

Two modes share one rule table: the final report produced once per session,
and live feedback evaluated on the session's live interval.
"""

import logging
from typing import List, Optional

from audio.text_metrics import SEQUENCE_PATTERN, count_words, has_marker
from session.models import FeedbackItem, SpeechAnalysis

from . import messages
from .feedback_config import FINAL_THRESHOLDS, LIVE_THRESHOLDS, RULES

logger = logging.getLogger(__name__)


class FeedbackGenerator:
    """Encapsulates logic for creating feedback items from analysis metrics."""

    def __init__(self, tone: str = messages.DEFAULT_TONE, thresholds: dict = FINAL_THRESHOLDS):
        if tone not in messages.TEMPLATES:
            raise ValueError(f"Unknown feedback tone '{tone}', expected one of {messages.available_tones()}")
        self.tone = tone
        self.thresholds = thresholds

    def make_item(self, rule: str, **context) -> FeedbackItem:
        """Build the item for a rule; type and priority come from the rule table."""
        feedback_type, category, priority = RULES[rule]
        message, suggestion, override = messages.render(rule, self.tone, **context)
        return FeedbackItem(
            type=feedback_type,
            category=override or category,
            message=message,
            suggestion=suggestion,
            priority=priority,
        )

    def generate_final_feedback(self, analysis: SpeechAnalysis) -> List[FeedbackItem]:
        """
        Generate the end-of-session report.

        Args:
            analysis: Final analysis of the whole answer

        Returns:
            Feedback items in rule order: volume, fillers, pace, relevance,
            structure, overall
        """
        t = self.thresholds
        items: List[FeedbackItem] = []

        consistency = analysis.volume.consistency
        if consistency < t["volume"]["unsteady"]:
            rule = "volume_erratic" if consistency < t["volume"]["erratic"] else "volume_unsteady"
            items.append(self.make_item(rule))

        if analysis.clarity.filler_word_count > t["clarity"]["max_fillers"]:
            items.append(self.make_item("filler_overuse", filler_count=analysis.clarity.filler_word_count))

        if analysis.clarity.speech_rate > t["clarity"]["fast_wpm"]:
            items.append(self.make_item("rate_fast", speech_rate=analysis.clarity.speech_rate))

        if analysis.coherence.relevance_score < t["coherence"]["relevance"]:
            items.append(self.make_item("relevance_low"))

        if analysis.coherence.structure_score < t["coherence"]["structure"]:
            items.append(self.make_item("structure_low"))

        if analysis.overall_score > t["overall"]["excellent"]:
            items.append(self.make_item("overall_excellent"))

        logger.debug(f"Final feedback: {len(items)} items (overall={analysis.overall_score})")
        return items


def generate_final_feedback(analysis: SpeechAnalysis, tone: str = messages.DEFAULT_TONE) -> List[FeedbackItem]:
    return FeedbackGenerator(tone).generate_final_feedback(analysis)


class LiveFeedbackTracker:
    """
    Trend-based feedback during a session.

    Compares each analysis against what was seen on earlier ticks, so advice
    fires when something changes rather than on every tick. ``items`` only
    grows until ``reset``.
    """

    def __init__(self, tone: str = messages.DEFAULT_TONE, thresholds: dict = LIVE_THRESHOLDS):
        self.generator = FeedbackGenerator(tone)
        self.thresholds = thresholds
        self._items: List[FeedbackItem] = []
        self._filler_count = 0
        self._rate_band: Optional[str] = None
        self._structure_hinted = False

    @property
    def items(self) -> List[FeedbackItem]:
        return list(self._items)

    def reset(self) -> None:
        self._items = []
        self._filler_count = 0
        self._rate_band = None
        self._structure_hinted = False

    def _rate_band_for(self, speech_rate: int, word_count: int) -> str:
        if speech_rate > self.thresholds["fast_wpm"]:
            return "fast"
        if word_count > 0 and speech_rate < self.thresholds["slow_wpm"]:
            return "slow"
        return "normal"

    def update(self, analysis: SpeechAnalysis, transcript: str) -> List[FeedbackItem]:
        """
        Evaluate one live tick.

        Args:
            analysis: Analysis of the transcript so far
            transcript: Current transcript

        Returns:
            Items added on this tick (possibly empty)
        """
        if not transcript or len(transcript) < self.thresholds["min_transcript_chars"]:
            return []

        new_items: List[FeedbackItem] = []
        clarity = analysis.clarity
        word_count = count_words(transcript)

        if clarity.filler_word_count > self._filler_count:
            latest = clarity.filler_words[-1] if clarity.filler_words else "filler"
            new_items.append(self.generator.make_item("live_filler", filler=latest))
        self._filler_count = clarity.filler_word_count

        band = self._rate_band_for(clarity.speech_rate, word_count)
        if band != self._rate_band and band != "normal":
            new_items.append(self.generator.make_item(f"live_rate_{band}"))
        self._rate_band = band

        if (
            not self._structure_hinted
            and word_count > self.thresholds["structure_min_words"]
            and not has_marker(transcript, SEQUENCE_PATTERN)
        ):
            new_items.append(self.generator.make_item("live_structure"))
            self._structure_hinted = True

        if new_items:
            logger.debug(f"Live feedback: +{len(new_items)} items")
        self._items.extend(new_items)
        return new_items
