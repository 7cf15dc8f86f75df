"""
Level progression for user statistics
"""

import logging
from datetime import datetime

from .config import Settings
from .core.database.models import UserStats
from .errors import ValidationError

logger = logging.getLogger(__name__)

LEVEL_SIZE = 500

LESSON = "lesson"
QUIZ = "quiz"
GAME = "game"
ACTIVITY_TYPES = (LESSON, QUIZ, GAME)


def level_for_points(total_points: int, level_size: int = LEVEL_SIZE) -> int:
    """Level reached with the given point total (levels start at 1)"""
    return total_points // level_size + 1


def points_to_next_level(total_points: int, level_size: int = LEVEL_SIZE) -> int:
    """Points still missing before the next level"""
    level = level_for_points(total_points, level_size)
    return max(level * level_size - total_points, 0)


def next_streak(streak_days: int, last_activity: datetime | None, now: datetime) -> int:
    """Consecutive-day streak after an activity at ``now``"""
    if last_activity is None:
        return 1
    gap = (now.date() - last_activity.date()).days
    if gap <= 0:
        return max(streak_days, 1)
    if gap == 1:
        return streak_days + 1
    return 1


class LevelingEngine:
    """Applies earned points to user statistics"""

    def __init__(self, settings: Settings | None = None):
        self.level_size = settings.level_size if settings else LEVEL_SIZE

    def default_stats(self, user_id: int, now: datetime | None = None) -> UserStats:
        """Statistics for a user who has not earned anything yet"""
        return {
            "user_id": user_id,
            "total_lectures": 0,
            "completed_lectures": 0,
            "total_points": 0,
            "current_level": 1,
            "points_to_next_level": self.level_size,
            "streak_days": 0,
            "last_activity_date": now or datetime.now(),
        }

    def apply_points(
        self,
        stats: UserStats,
        points_earned: int,
        activity_type: str = GAME,
        now: datetime | None = None,
    ) -> UserStats:
        """
        Return new statistics after earning points

        The input is not modified. Lesson activities also count towards the
        lecture counters.
        """
        if points_earned < 0:
            raise ValidationError(f"Points earned must be non-negative, got {points_earned}")
        if activity_type not in ACTIVITY_TYPES:
            raise ValidationError(f"Unknown activity type: {activity_type}")

        now = now or datetime.now()
        total_points = stats["total_points"] + points_earned
        lecture_increment = 1 if activity_type == LESSON else 0

        updated = dict(stats)
        updated.update(
            total_points=total_points,
            current_level=level_for_points(total_points, self.level_size),
            points_to_next_level=points_to_next_level(total_points, self.level_size),
            total_lectures=stats["total_lectures"] + lecture_increment,
            completed_lectures=stats["completed_lectures"] + lecture_increment,
            streak_days=next_streak(
                stats["streak_days"], stats.get("last_activity_date"), now
            ),
            last_activity_date=now,
        )

        if updated["current_level"] > stats["current_level"]:
            logger.info(
                f"User {stats['user_id']} reached level {updated['current_level']} "
                f"with {total_points} points"
            )

        return updated


# Global instance
_leveling_engine = None


def get_leveling_engine() -> LevelingEngine:
    """Get global leveling engine instance"""
    global _leveling_engine
    if _leveling_engine is None:
        _leveling_engine = LevelingEngine()
    return _leveling_engine
