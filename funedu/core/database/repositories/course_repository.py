"""
Course repository for courses, lessons and enrollments
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any

from ..connection import DatabaseConnection
from ..models import Course, Enrollment, Lesson

logger = logging.getLogger(__name__)


class CourseRepository:
    """Repository for course catalogue and enrollment operations"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    # Catalogue

    def _course_filters(
        self,
        category: str | None,
        difficulty: str | None,
        search: str | None,
    ) -> tuple[str, list[Any]]:
        """Build the WHERE clause shared by course listing and counting"""
        clauses = ["c.is_published = 1"]
        params: list[Any] = []

        if category:
            clauses.append("c.category = ?")
            params.append(category)

        if difficulty:
            clauses.append("c.difficulty = ?")
            params.append(difficulty)

        if search:
            clauses.append("(c.title LIKE ? COLLATE NOCASE OR c.description LIKE ? COLLATE NOCASE)")
            pattern = f"%{search}%"
            params.extend([pattern, pattern])

        return " AND ".join(clauses), params

    def get_courses(
        self,
        offset: int,
        limit: int,
        category: str | None = None,
        difficulty: str | None = None,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        """Get published courses with enrollment counts, newest first"""
        where, params = self._course_filters(category, difficulty, search)
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT c.*,
                       (SELECT COUNT(*) FROM enrollments e WHERE e.course_id = c.id)
                           AS enrollment_count
                FROM courses c
                WHERE {where}
                ORDER BY c.created_at DESC, c.id DESC
                LIMIT ? OFFSET ?
                """,  # noqa: S608  # Safe: where contains only fixed clauses
                (*params, limit, offset),
            )
            return [dict(row) for row in cursor.fetchall()]

    def count_courses(
        self,
        category: str | None = None,
        difficulty: str | None = None,
        search: str | None = None,
    ) -> int:
        """Count published courses matching the filters"""
        where, params = self._course_filters(category, difficulty, search)
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                f"SELECT COUNT(*) FROM courses c WHERE {where}",  # noqa: S608
                params,
            )
            return cursor.fetchone()[0]

    def get_course(
        self, course_id: int, published_only: bool = True
    ) -> Course | None:
        """Get course by ID"""
        with self.db_connection.get_connection() as conn:
            query = "SELECT * FROM courses WHERE id = ?"
            if published_only:
                query += " AND is_published = 1"
            cursor = conn.execute(query, (course_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def create_course(
        self,
        title: str,
        category: str,
        description: str = "",
        difficulty: str = "beginner",
        duration: int = 0,
        thumbnail: str | None = None,
        is_published: bool = False,
    ) -> int:
        """Create a course and return its ID"""
        with self.db_connection.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO courses (
                    title, description, category, difficulty, duration,
                    thumbnail, is_published, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    title,
                    description,
                    category,
                    difficulty,
                    duration,
                    thumbnail,
                    int(is_published),
                    datetime.now(),
                    datetime.now(),
                ),
            )
            return cursor.lastrowid

    def get_categories(self) -> list[dict[str, Any]]:
        """Get published course categories with counts, most popular first"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT category, COUNT(*) AS course_count
                FROM courses
                WHERE is_published = 1
                GROUP BY category
                ORDER BY course_count DESC, category ASC
                """
            )
            return [dict(row) for row in cursor.fetchall()]

    def count_enrollments(self, course_id: int) -> int:
        """Count enrollments in a course"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) FROM enrollments WHERE course_id = ?",
                (course_id,),
            )
            return cursor.fetchone()[0]

    # Lessons

    def create_lesson(
        self,
        course_id: int,
        title: str,
        points: int = 10,
        lesson_order: int = 0,
        content: str = "",
        video_url: str | None = None,
        duration: int = 0,
        is_published: bool = True,
    ) -> int:
        """Create a lesson and return its ID"""
        with self.db_connection.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO lessons (
                    course_id, title, content, video_url, duration, points,
                    lesson_order, is_published, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    course_id,
                    title,
                    content,
                    video_url,
                    duration,
                    points,
                    lesson_order,
                    int(is_published),
                    datetime.now(),
                ),
            )
            return cursor.lastrowid

    def set_lesson_published(self, lesson_id: int, is_published: bool) -> bool:
        """Publish or unpublish a lesson"""
        with self.db_connection.transaction() as conn:
            cursor = conn.execute(
                "UPDATE lessons SET is_published = ? WHERE id = ?",
                (int(is_published), lesson_id),
            )
            return cursor.rowcount > 0

    def get_course_lessons(
        self, course_id: int, published_only: bool = True
    ) -> list[Lesson]:
        """Get lessons of a course in display order"""
        with self.db_connection.get_connection() as conn:
            query = "SELECT * FROM lessons WHERE course_id = ?"
            if published_only:
                query += " AND is_published = 1"
            query += " ORDER BY lesson_order ASC, id ASC"
            cursor = conn.execute(query, (course_id,))
            return [dict(row) for row in cursor.fetchall()]

    def get_lesson(
        self, lesson_id: int, course_id: int, conn: sqlite3.Connection | None = None
    ) -> Lesson | None:
        """Get a lesson that belongs to the given course"""
        with self.db_connection.reading(conn) as c:
            cursor = c.execute(
                "SELECT * FROM lessons WHERE id = ? AND course_id = ?",
                (lesson_id, course_id),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def count_published_lessons(
        self, course_id: int, conn: sqlite3.Connection | None = None
    ) -> int:
        """Count published lessons in a course"""
        with self.db_connection.reading(conn) as c:
            cursor = c.execute(
                "SELECT COUNT(*) FROM lessons WHERE course_id = ? AND is_published = 1",
                (course_id,),
            )
            return cursor.fetchone()[0]

    # Enrollments

    def get_enrollment(
        self, user_id: int, course_id: int, conn: sqlite3.Connection | None = None
    ) -> Enrollment | None:
        """Get a user's enrollment in a course"""
        with self.db_connection.reading(conn) as c:
            cursor = c.execute(
                "SELECT * FROM enrollments WHERE user_id = ? AND course_id = ?",
                (user_id, course_id),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def create_enrollment(
        self, user_id: int, course_id: int, conn: sqlite3.Connection | None = None
    ) -> Enrollment:
        """Create an enrollment; the (user, course) pair is unique"""
        now = datetime.now()
        with self.db_connection.writing(conn) as c:
            c.execute(
                """
                INSERT INTO enrollments (user_id, course_id, progress, enrolled_at, last_accessed)
                VALUES (?, ?, 0, ?, ?)
                """,
                (user_id, course_id, now, now),
            )
            return self.get_enrollment(user_id, course_id, conn=c)

    def update_enrollment_progress(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        course_id: int,
        progress: float,
        completed_at: datetime | None,
    ) -> None:
        """Store recomputed progress inside the caller's transaction"""
        conn.execute(
            """
            UPDATE enrollments
            SET progress = ?, completed_at = ?, last_accessed = ?
            WHERE user_id = ? AND course_id = ?
            """,
            (progress, completed_at, datetime.now(), user_id, course_id),
        )

    def get_user_enrollments(
        self, user_id: int, offset: int = 0, limit: int | None = None
    ) -> list[dict[str, Any]]:
        """Get a user's enrollments with course details, newest first"""
        with self.db_connection.get_connection() as conn:
            query = """
                SELECT e.*,
                       c.title AS course_title,
                       c.description AS course_description,
                       c.thumbnail AS course_thumbnail,
                       c.category AS course_category,
                       c.difficulty AS course_difficulty,
                       c.duration AS course_duration
                FROM enrollments e
                JOIN courses c ON e.course_id = c.id
                WHERE e.user_id = ?
                ORDER BY e.enrolled_at DESC, e.id DESC
            """
            params: list[Any] = [user_id]
            if limit is not None:
                query += " LIMIT ? OFFSET ?"
                params.extend([limit, offset])
            cursor = conn.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def count_user_enrollments(self, user_id: int) -> int:
        """Count a user's enrollments"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) FROM enrollments WHERE user_id = ?",
                (user_id,),
            )
            return cursor.fetchone()[0]
