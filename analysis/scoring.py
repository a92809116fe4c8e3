# analysis/scoring.py

"""
Scoring system for speech analysis results.

Combines Volume History statistics with the transcript metrics into one
``SpeechAnalysis`` record.
"""

import logging
from typing import Protocol, Sequence

from audio.metrics import compute_volume_stats
from audio.text_metrics import compute_clarity, compute_coherence, count_words
from session.models import ClarityMetrics, CoherenceMetrics, SpeechAnalysis, VolumeStats
from utils.logging import log_execution_time
from utils.math import clamp, round_half_up

logger = logging.getLogger(__name__)

# Weights sum to 1
SCORE_WEIGHTS = {
    "consistency": 0.25,
    "articulation": 0.35,
    "relevance": 0.40,
}


class VolumeSource(Protocol):
    """Anything holding the Volume History of the current recording span."""

    @property
    def volume_history(self) -> Sequence[float]: ...


def compute_overall_score(
    volume: VolumeStats,
    clarity: ClarityMetrics,
    coherence: CoherenceMetrics,
) -> int:
    """Weighted overall score in [0, 100]."""
    score = (
        volume.consistency * SCORE_WEIGHTS["consistency"]
        + clarity.articulation * SCORE_WEIGHTS["articulation"]
        + coherence.relevance_score * SCORE_WEIGHTS["relevance"]
    )
    return int(clamp(round_half_up(score)))


def score_speech(
    transcript: str,
    volume_history: Sequence[float],
    duration_seconds: float,
) -> SpeechAnalysis:
    """
    Score one answer.

    Args:
        transcript: What was said
        volume_history: Energy readings of the recording span
        duration_seconds: Speaking time

    Returns:
        The complete analysis; identical inputs give an identical result
    """
    transcript = transcript or ""
    volume = compute_volume_stats(volume_history)
    clarity = compute_clarity(transcript, duration_seconds)
    coherence = compute_coherence(transcript, count_words(transcript))

    return SpeechAnalysis(
        volume=volume,
        clarity=clarity,
        coherence=coherence,
        overall_score=compute_overall_score(volume, clarity, coherence),
    )


class SessionScorer:
    """
    Scores answers against the live sampler's Volume History.

    The scorer reads ``volume_source.volume_history`` at call time, so the
    caller must make sure the source still holds the span being analyzed.
    """

    def __init__(self, volume_source: VolumeSource):
        self.volume_source = volume_source

    @log_execution_time(logger, logging.DEBUG)
    def analyze_speech(self, transcript: str, duration_seconds: float) -> SpeechAnalysis:
        history = tuple(self.volume_source.volume_history)
        analysis = score_speech(transcript, history, duration_seconds)
        logger.debug(
            f"Analysis: overall={analysis.overall_score}, samples={len(history)}, "
            f"wpm={analysis.clarity.speech_rate}, fillers={analysis.clarity.filler_word_count}"
        )
        return analysis
