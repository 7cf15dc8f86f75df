"""
User repository for users, statistics and achievements
"""

import logging
import sqlite3
from datetime import datetime

from ..connection import DatabaseConnection
from ..models import Achievement, User, UserStats

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user-related database operations"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def create_user(
        self,
        telegram_id: int,
        first_name: str,
        last_name: str | None = None,
        username: str | None = None,
    ) -> User:
        """Create a new user"""
        with self.db_connection.transaction() as conn:
            conn.execute(
                """
                INSERT INTO users (telegram_id, first_name, last_name, username)
                VALUES (?, ?, ?, ?)
                """,
                (telegram_id, first_name, last_name, username),
            )
            user = self.get_user_by_telegram_id(telegram_id, conn=conn)

        logger.info(f"Created user {telegram_id}")
        return user

    def get_user_by_telegram_id(
        self, telegram_id: int, conn: sqlite3.Connection | None = None
    ) -> User | None:
        """Get user by Telegram ID"""
        with self.db_connection.reading(conn) as c:
            cursor = c.execute(
                "SELECT * FROM users WHERE telegram_id = ?",
                (telegram_id,)
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def update_user(
        self,
        telegram_id: int,
        first_name: str | None = None,
        last_name: str | None = None,
        username: str | None = None,
    ) -> bool:
        """Update user information"""
        updates = []
        params = []

        if first_name is not None:
            updates.append("first_name = ?")
            params.append(first_name)

        if last_name is not None:
            updates.append("last_name = ?")
            params.append(last_name)

        if username is not None:
            updates.append("username = ?")
            params.append(username)

        if not updates:
            return False

        updates.append("updated_at = ?")
        params.append(datetime.now())
        params.append(telegram_id)

        with self.db_connection.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE users SET {', '.join(updates)} WHERE telegram_id = ?",  # noqa: S608
                params
            )
            return cursor.rowcount > 0

    # Statistics

    def get_user_stats(
        self, user_id: int, conn: sqlite3.Connection | None = None
    ) -> UserStats | None:
        """Get the stored statistics row for a user"""
        with self.db_connection.reading(conn) as c:
            cursor = c.execute(
                "SELECT * FROM user_stats WHERE user_id = ?",
                (user_id,)
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def create_user_stats(
        self, stats: UserStats, conn: sqlite3.Connection | None = None
    ) -> UserStats:
        """Insert a statistics row, keeping an existing one if it won the race"""
        with self.db_connection.writing(conn) as c:
            c.execute(
                """
                INSERT OR IGNORE INTO user_stats (
                    user_id, total_lectures, completed_lectures, total_points,
                    current_level, points_to_next_level, streak_days,
                    last_activity_date, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    stats["user_id"],
                    stats["total_lectures"],
                    stats["completed_lectures"],
                    stats["total_points"],
                    stats["current_level"],
                    stats["points_to_next_level"],
                    stats["streak_days"],
                    stats["last_activity_date"],
                    datetime.now(),
                    datetime.now(),
                ),
            )
            return self.get_user_stats(stats["user_id"], conn=c)

    def save_user_stats(self, stats: UserStats, conn: sqlite3.Connection) -> None:
        """Persist an updated statistics row inside the caller's transaction"""
        conn.execute(
            """
            UPDATE user_stats
            SET total_lectures = ?,
                completed_lectures = ?,
                total_points = ?,
                current_level = ?,
                points_to_next_level = ?,
                streak_days = ?,
                last_activity_date = ?,
                updated_at = ?
            WHERE user_id = ?
            """,
            (
                stats["total_lectures"],
                stats["completed_lectures"],
                stats["total_points"],
                stats["current_level"],
                stats["points_to_next_level"],
                stats["streak_days"],
                stats["last_activity_date"],
                datetime.now(),
                stats["user_id"],
            ),
        )

    # Achievements

    def get_user_achievements(self, user_id: int) -> list[Achievement]:
        """Get achievements unlocked by a user, newest first"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM achievements
                WHERE user_id = ?
                ORDER BY unlocked_at DESC, id DESC
                """,
                (user_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    def add_achievement(
        self,
        user_id: int,
        title: str,
        description: str = "",
        icon: str | None = None,
        points: int = 0,
        unlocked_at: datetime | None = None,
    ) -> int:
        """Record an unlocked achievement and return its ID"""
        with self.db_connection.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO achievements (user_id, title, description, icon, points, unlocked_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (user_id, title, description, icon, points, unlocked_at or datetime.now()),
            )
            return cursor.lastrowid
