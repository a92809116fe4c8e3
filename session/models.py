"""
Pydantic models for speaking sessions.

Provides type-safe, validated data structures for questions, analysis results,
feedback and progress.
"""

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuestionCategory(str, Enum):
    """Topic area of a speaking question."""
    BUSINESS = "business"
    PERSONAL = "personal"
    ACADEMIC = "academic"
    CREATIVE = "creative"
    CURRENT_EVENTS = "current-events"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class FeedbackType(str, Enum):
    POSITIVE = "positive"
    IMPROVEMENT = "improvement"
    CRITICAL = "critical"


class FeedbackCategory(str, Enum):
    """Dimension a feedback item is about."""
    VOLUME = "volume"
    CLARITY = "clarity"
    COHERENCE = "coherence"
    GENERAL = "general"
    CONFIDENCE = "confidence"
    ACCENT = "accent"
    PRESENCE = "presence"
    EXECUTIVE = "executive"


class FeedbackPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SessionState(str, Enum):
    """Lifecycle state of a speaking session."""
    IDLE = "idle"
    PREPARING = "preparing"
    SPEAKING = "speaking"
    ANALYZING = "analyzing"
    RESULTS = "results"


class SpeakingQuestion(BaseModel):
    """Prompt the user answers during a session."""
    id: str = Field(..., min_length=1)
    category: QuestionCategory
    difficulty: Difficulty
    question: str = Field(..., min_length=1)
    context: Optional[str] = None
    time_limit: int = Field(..., gt=0, description="Suggested answer length in seconds")
    tips: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class VolumeStats(BaseModel):
    """Statistics over the Volume History (0-255 byte scale)."""
    average: float = Field(default=0.0, ge=0.0)
    min: float = Field(default=0.0, ge=0.0)
    max: float = Field(default=0.0, ge=0.0)
    consistency: float = Field(default=0.0, ge=0.0, le=100.0)

    model_config = ConfigDict(frozen=True)


class ClarityMetrics(BaseModel):
    """Filler usage and pacing."""
    filler_words: List[str] = Field(default_factory=list)
    filler_word_count: int = Field(default=0, ge=0)
    speech_rate: int = Field(default=0, ge=0, description="Words per minute")
    articulation: float = Field(default=0.0, ge=0.0, le=100.0)

    model_config = ConfigDict(frozen=True)


class CoherenceMetrics(BaseModel):
    """Lexical structure heuristics."""
    relevance_score: float = Field(default=0.0, ge=0.0, le=100.0)
    structure_score: float = Field(default=0.0, ge=0.0, le=100.0)
    completeness_score: float = Field(default=0.0, ge=0.0, le=100.0)

    model_config = ConfigDict(frozen=True)


class SpeechAnalysis(BaseModel):
    """Multi-dimensional score of one answer."""
    volume: VolumeStats = Field(default_factory=VolumeStats)
    clarity: ClarityMetrics = Field(default_factory=ClarityMetrics)
    coherence: CoherenceMetrics = Field(default_factory=CoherenceMetrics)
    overall_score: int = Field(default=0, ge=0, le=100)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def empty(cls) -> "SpeechAnalysis":
        """All-zero analysis used when scoring fails."""
        return cls()


class FeedbackItem(BaseModel):
    """One piece of coaching advice."""
    type: FeedbackType
    category: FeedbackCategory
    message: str = Field(..., min_length=1)
    suggestion: Optional[str] = None
    priority: FeedbackPriority

    model_config = ConfigDict(frozen=True)


class ProgressUpdate(BaseModel):
    """Hand-off to whatever persists user progress."""
    total_sessions_delta: int = Field(default=1, ge=0)
    overall_score: int = Field(..., ge=0, le=100)
    streak_delta: int = Field(default=1, ge=0)
    category: Optional[QuestionCategory] = None

    model_config = ConfigDict(frozen=True)


class SessionResult(BaseModel):
    """Everything a finished session produced."""
    question: SpeakingQuestion
    transcript: str = ""
    duration_seconds: float = Field(default=0.0, ge=0.0)
    analysis: SpeechAnalysis
    feedback: List[FeedbackItem] = Field(default_factory=list)
    live_feedback: List[FeedbackItem] = Field(default_factory=list)
    degraded: bool = False
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class CategoryProgress(BaseModel):
    sessions: int = Field(default=0, ge=0)
    average_score: float = Field(default=0.0, ge=0.0, le=100.0)
    improvement: float = 0.0
    first_score: Optional[int] = Field(default=None, ge=0, le=100)


class Achievement(BaseModel):
    id: str
    title: str
    description: str
    points: int = Field(ge=0)

    model_config = ConfigDict(frozen=True)


class UserProgress(BaseModel):
    """Aggregate practice history. Mutable: owned by ``ProgressTracker``."""
    total_sessions: int = Field(default=0, ge=0)
    average_score: float = Field(default=0.0, ge=0.0, le=100.0)
    best_score: int = Field(default=0, ge=0, le=100)
    streak: int = Field(default=0, ge=0)
    last_practice_day: Optional[date] = None
    categories: Dict[QuestionCategory, CategoryProgress] = Field(default_factory=dict)
