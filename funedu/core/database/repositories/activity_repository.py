"""
Activity repository for the append-only activity log
"""

import logging
import sqlite3
from datetime import datetime

from ..connection import DatabaseConnection
from ..models import Activity

logger = logging.getLogger(__name__)

LESSON_ACTIVITY = "LESSON"
ASSIGNMENT_ACTIVITY = "ASSIGNMENT"


class ActivityRepository:
    """Repository for activity log operations"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def has_completed_lesson(
        self, user_id: int, lesson_id: int, conn: sqlite3.Connection | None = None
    ) -> bool:
        """Check whether a lesson completion is already recorded for the user"""
        with self.db_connection.reading(conn) as c:
            cursor = c.execute(
                """
                SELECT 1 FROM activities
                WHERE user_id = ? AND lesson_id = ? AND type = ? AND is_completed = 1
                LIMIT 1
                """,
                (user_id, lesson_id, LESSON_ACTIVITY),
            )
            return cursor.fetchone() is not None

    def create_activity(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        activity_type: str,
        title: str,
        points: int,
        lesson_id: int | None = None,
        description: str | None = None,
        completed_at: datetime | None = None,
    ) -> int:
        """Append a completed activity inside the caller's transaction"""
        now = datetime.now()
        cursor = conn.execute(
            """
            INSERT INTO activities (
                user_id, lesson_id, type, title, description, points,
                is_completed, completed_at, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, 1, ?, ?)
            """,
            (
                user_id,
                lesson_id,
                activity_type,
                title,
                description,
                points,
                completed_at or now,
                now,
            ),
        )
        return cursor.lastrowid

    def count_completed_lessons(
        self, user_id: int, course_id: int, conn: sqlite3.Connection | None = None
    ) -> int:
        """Count distinct published lessons of a course the user has completed"""
        with self.db_connection.reading(conn) as c:
            cursor = c.execute(
                """
                SELECT COUNT(DISTINCT a.lesson_id) AS completed
                FROM activities a
                JOIN lessons l ON a.lesson_id = l.id
                WHERE a.user_id = ?
                  AND a.type = ?
                  AND a.is_completed = 1
                  AND l.course_id = ?
                  AND l.is_published = 1
                """,
                (user_id, LESSON_ACTIVITY, course_id),
            )
            return cursor.fetchone()["completed"]

    def get_recent_activities(self, user_id: int, limit: int = 10) -> list[Activity]:
        """Get the most recent activities for a user"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM activities
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            return [dict(row) for row in cursor.fetchall()]

    def count_activities(self, user_id: int, activity_type: str | None = None) -> int:
        """Count logged activities for a user"""
        with self.db_connection.get_connection() as conn:
            if activity_type:
                cursor = conn.execute(
                    "SELECT COUNT(*) FROM activities WHERE user_id = ? AND type = ?",
                    (user_id, activity_type),
                )
            else:
                cursor = conn.execute(
                    "SELECT COUNT(*) FROM activities WHERE user_id = ?",
                    (user_id,),
                )
            return cursor.fetchone()[0]
