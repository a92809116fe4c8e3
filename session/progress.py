"""Progress hand-off after each completed session."""

import logging
from datetime import date
from typing import Callable, List, Optional, Tuple

from .models import Achievement, CategoryProgress, ProgressUpdate, UserProgress

logger = logging.getLogger(__name__)


# (achievement, unlock condition), in display order
ACHIEVEMENTS: List[Tuple[Achievement, Callable[[UserProgress], bool]]] = [
    (Achievement(id="first-session", title="First Steps",
                 description="Complete your first speaking session", points=10),
     lambda p: p.total_sessions >= 1),
    (Achievement(id="consistency", title="Consistency King",
                 description="Complete 5 sessions", points=25),
     lambda p: p.total_sessions >= 5),
    (Achievement(id="dedication", title="Dedicated Speaker",
                 description="Complete 10 sessions", points=50),
     lambda p: p.total_sessions >= 10),
    (Achievement(id="excellence", title="Excellence",
                 description="Achieve a score of 90 or higher", points=100),
     lambda p: p.best_score >= 90),
    (Achievement(id="streak-3", title="Getting Started",
                 description="Maintain a 3-day streak", points=30),
     lambda p: p.streak >= 3),
    (Achievement(id="streak-7", title="Week Warrior",
                 description="Maintain a 7-day streak", points=75),
     lambda p: p.streak >= 7),
    (Achievement(id="streak-30", title="Monthly Master",
                 description="Maintain a 30-day streak", points=200),
     lambda p: p.streak >= 30),
    (Achievement(id="improvement", title="Continuous Improvement",
                 description="Reach an average score of 70", points=150),
     lambda p: p.average_score >= 70),
]


def unlocked_achievements(progress: UserProgress) -> List[Achievement]:
    """Achievements the progress record currently qualifies for."""
    return [achievement for achievement, condition in ACHIEVEMENTS if condition(progress)]


def achievement_points(achievements: List[Achievement]) -> int:
    return sum(a.points for a in achievements)


class ProgressSink:
    """Receives one ``ProgressUpdate`` per completed session. Storage is up to the implementation."""

    def record(self, update: ProgressUpdate) -> None:
        raise NotImplementedError


class ProgressTracker(ProgressSink):
    """In-memory progress aggregation."""

    def __init__(self, progress: Optional[UserProgress] = None):
        self.progress = progress or UserProgress()
        # Achievements unlocked by the most recent apply()
        self.newly_unlocked: List[Achievement] = []

    def record(self, update: ProgressUpdate) -> None:
        self.apply(update)

    def apply(self, update: ProgressUpdate, day: Optional[date] = None) -> UserProgress:
        """
        Fold one session into the aggregate.

        Args:
            update: Session outcome
            day: Practice day (defaults to today), used for the streak

        Returns:
            The updated progress record
        """
        day = day or date.today()
        p = self.progress
        before = {a.id for a in unlocked_achievements(p)}

        previous_total = p.total_sessions
        p.total_sessions += update.total_sessions_delta
        if p.total_sessions > 0:
            p.average_score = (
                p.average_score * previous_total + update.overall_score * update.total_sessions_delta
            ) / p.total_sessions
        p.best_score = max(p.best_score, update.overall_score)

        if update.category is not None:
            entry = p.categories.setdefault(update.category, CategoryProgress())
            entry.average_score = (entry.average_score * entry.sessions + update.overall_score) / (entry.sessions + 1)
            entry.sessions += 1
            if entry.first_score is None:
                entry.first_score = update.overall_score
            entry.improvement = float(update.overall_score - entry.first_score)

        self._update_streak(day, update.streak_delta)
        self.newly_unlocked = [a for a in unlocked_achievements(p) if a.id not in before]
        for achievement in self.newly_unlocked:
            logger.info(f"Achievement unlocked: {achievement.title}")
        logger.info(
            f"Progress updated: {p.total_sessions} sessions, "
            f"avg={p.average_score:.1f}, best={p.best_score}, streak={p.streak}"
        )
        return p

    def _update_streak(self, day: date, delta: int) -> None:
        p = self.progress
        last = p.last_practice_day
        if last is None or (day - last).days > 1:
            p.streak = delta
        elif (day - last).days == 1:
            p.streak += delta
        # Same day: streak unchanged
        if last is None or day > last:
            p.last_practice_day = day
