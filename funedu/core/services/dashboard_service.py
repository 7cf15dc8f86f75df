"""
Dashboard service: user statistics, activity feed and overview
"""

import logging
import sqlite3
from typing import Any

from ...errors import UserNotFoundError
from ...leveling import LevelingEngine, get_leveling_engine
from ...progress import COMPLETE
from ..database.database_manager import DatabaseManager
from ..database.models import Achievement, Activity, UserStats

logger = logging.getLogger(__name__)


class DashboardService:
    """Reads and updates per-user gamification statistics"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        leveling_engine: LevelingEngine | None = None,
    ):
        self.db_manager = db_manager
        self.leveling_engine = leveling_engine or get_leveling_engine()

    def require_user(self, user_id: int) -> None:
        """Raise UserNotFoundError for unknown users"""
        if not self.db_manager.user_repo.get_user_by_telegram_id(user_id):
            raise UserNotFoundError()

    def get_user_stats(self, user_id: int) -> UserStats:
        """Get the user's statistics, creating the default record on first access"""
        self.require_user(user_id)
        return self._get_or_create_stats(user_id)

    def _get_or_create_stats(
        self, user_id: int, conn: sqlite3.Connection | None = None
    ) -> UserStats:
        user_repo = self.db_manager.user_repo
        stats = user_repo.get_user_stats(user_id, conn=conn)
        if stats is None:
            logger.info(f"Creating default statistics for user {user_id}")
            stats = user_repo.create_user_stats(
                self.leveling_engine.default_stats(user_id), conn=conn
            )
        return stats

    def update_user_stats(
        self,
        user_id: int,
        points: int,
        activity_type: str,
        conn: sqlite3.Connection | None = None,
    ) -> UserStats:
        """
        Apply earned points to the user's statistics

        Pass the caller's transaction as ``conn`` so the read-modify-write
        commits together with the activity that earned the points.
        """
        with self.db_manager.db_connection.writing(conn) as c:
            stats = self._get_or_create_stats(user_id, conn=c)
            updated = self.leveling_engine.apply_points(stats, points, activity_type)
            self.db_manager.user_repo.save_user_stats(updated, c)

        logger.debug(
            f"User {user_id} stats: {updated['total_points']} points, "
            f"level {updated['current_level']}"
        )
        return updated

    def get_recent_activities(self, user_id: int, limit: int = 10) -> list[Activity]:
        """Get the user's most recent activities"""
        return self.db_manager.activity_repo.get_recent_activities(user_id, limit)

    def get_user_achievements(self, user_id: int) -> list[Achievement]:
        """Get the user's achievements, newest first"""
        return self.db_manager.user_repo.get_user_achievements(user_id)

    def get_dashboard_overview(self, user_id: int) -> dict[str, Any]:
        """Collect everything the dashboard shows in one call"""
        user_stats = self.get_user_stats(user_id)
        recent_activities = self.get_recent_activities(user_id, 5)
        achievements = self.get_user_achievements(user_id)
        enrollments = self.db_manager.course_repo.get_user_enrollments(user_id)

        total_courses = len(enrollments)
        completed_courses = sum(1 for e in enrollments if e["progress"] >= COMPLETE)

        return {
            "user_stats": user_stats,
            "recent_activities": recent_activities,
            "achievements": achievements,
            "course_stats": {
                "total": total_courses,
                "completed": completed_courses,
                "in_progress": total_courses - completed_courses,
            },
            "enrollments": enrollments[:3],
        }
