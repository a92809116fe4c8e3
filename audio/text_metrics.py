"""
Text metrics computation for speech analysis.

This module derives clarity and coherence signals from plain transcript text:
filler words, words-per-minute and the lexical structure heuristics. All
functions are pure.
"""

import re
import logging
from typing import List

from session.models import ClarityMetrics, CoherenceMetrics
from utils.math import clamp, round_half_up

from . import constants

logger = logging.getLogger(__name__)

# Scoring constants
ARTICULATION_BASE = 100.0
FILLER_PENALTY = 5.0
RATE_SLOW_WPM = 80
RATE_FAST_WPM = 200
RATE_OPTIMAL_WPM = (120, 160)
RATE_SLOW_PENALTY = 10.0
RATE_FAST_PENALTY = 15.0
RATE_OPTIMAL_BONUS = 5.0

COHERENCE_BASE = 70.0
MARKER_BONUS = 10.0
LENGTH_BONUS = 10.0
SHORT_PENALTY = 20.0
LENGTH_BAND = (30, 200)
SHORT_WORDS = 20


def _phrase_pattern(phrases: List[str]) -> "re.Pattern[str]":
    """Whole-word alternation; longer phrases first, inner spaces match any whitespace."""
    ordered = sorted(phrases, key=len, reverse=True)
    body = "|".join(r"\s+".join(re.escape(part) for part in p.split()) for p in ordered)
    return re.compile(r"\b(?:" + body + r")\b", re.IGNORECASE)


# Markers match in any letter case, so a sentence-initial "Because" or "For example" counts
FILLER_PATTERN = _phrase_pattern(constants.FILLER_WORDS)
CONNECTIVE_PATTERN = _phrase_pattern(constants.CONNECTIVE_MARKERS)
EXEMPLAR_PATTERN = _phrase_pattern(constants.EXEMPLAR_MARKERS)
SEQUENCE_PATTERN = _phrase_pattern(constants.SEQUENCE_MARKERS)


def count_words(transcript: str) -> int:
    """Number of whitespace-separated tokens; 0 for an empty transcript."""
    if not transcript:
        return 0
    return len(transcript.split())


def detect_filler_words(transcript: str) -> List[str]:
    """
    Detect filler words in transcript.

    Args:
        transcript: Transcribed text, any case

    Returns:
        Lower-cased matches in transcript order, one entry per occurrence
        (multi-word fillers normalized to single spaces)
    """
    if not transcript:
        return []

    matches = [" ".join(m.group(0).lower().split()) for m in FILLER_PATTERN.finditer(transcript)]
    logger.debug(f"Filler detection: {len(matches)} fillers")
    return matches


def compute_speech_rate(word_count: int, duration_seconds: float) -> int:
    """
    Compute words-per-minute from word count and speaking duration.
    Returns 0 when the duration or word count is not positive.
    """
    if duration_seconds <= 0 or word_count <= 0:
        return 0
    return round_half_up(word_count / (duration_seconds / 60.0))


def compute_articulation(filler_count: int, speech_rate: float) -> float:
    """Articulation score in [0, 100] from filler usage and speaking pace."""
    articulation = ARTICULATION_BASE - filler_count * FILLER_PENALTY

    if speech_rate < RATE_SLOW_WPM:
        articulation -= RATE_SLOW_PENALTY
    elif speech_rate > RATE_FAST_WPM:
        articulation -= RATE_FAST_PENALTY
    elif RATE_OPTIMAL_WPM[0] <= speech_rate <= RATE_OPTIMAL_WPM[1]:
        articulation += RATE_OPTIMAL_BONUS

    return clamp(articulation)


def has_marker(transcript: str, pattern: "re.Pattern[str]") -> bool:
    return bool(transcript) and pattern.search(transcript) is not None


def compute_coherence(transcript: str, word_count: int) -> CoherenceMetrics:
    """
    Lexical structure heuristic; not semantic understanding.

    Relevance stays at the base score: judging whether an answer addresses the
    question would need NLU.
    """
    relevance = COHERENCE_BASE
    structure = COHERENCE_BASE
    completeness = COHERENCE_BASE

    if has_marker(transcript, CONNECTIVE_PATTERN):
        structure += MARKER_BONUS

    if has_marker(transcript, EXEMPLAR_PATTERN):
        completeness += MARKER_BONUS

    if LENGTH_BAND[0] <= word_count <= LENGTH_BAND[1]:
        completeness += LENGTH_BONUS
    elif word_count < SHORT_WORDS:
        completeness -= SHORT_PENALTY

    return CoherenceMetrics(
        relevance_score=clamp(relevance),
        structure_score=clamp(structure),
        completeness_score=clamp(completeness),
    )


def compute_clarity(transcript: str, duration_seconds: float) -> ClarityMetrics:
    """Filler words, speech rate and articulation for a transcript."""
    fillers = detect_filler_words(transcript)
    speech_rate = compute_speech_rate(count_words(transcript), duration_seconds)
    return ClarityMetrics(
        filler_words=fillers,
        filler_word_count=len(fillers),
        speech_rate=speech_rate,
        articulation=compute_articulation(len(fillers), speech_rate),
    )
