"""
Course service: catalogue, enrollments and lesson completion
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any

from ...config import Settings, get_settings
from ...errors import (
    AlreadyEnrolledError,
    CourseNotFoundError,
    LessonNotFoundError,
    NotEnrolledError,
)
from ...leveling import LESSON
from ...progress import ProgressResult, calculate_progress, next_enrollment_state
from ...utils import get_pagination_meta, get_skip, log_execution_time, validate_pagination
from ..database.database_manager import DatabaseManager
from ..database.models import Enrollment
from ..database.repositories.activity_repository import LESSON_ACTIVITY
from ..locks.user_lock_manager import UserLockManager
from .dashboard_service import DashboardService

logger = logging.getLogger(__name__)


class CourseService:
    """Course catalogue browsing, enrollment and progress tracking"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        dashboard_service: DashboardService,
        lock_manager: UserLockManager | None = None,
        settings: Settings | None = None,
    ):
        self.db_manager = db_manager
        self.dashboard_service = dashboard_service
        self.settings = settings or get_settings()
        self.lock_manager = lock_manager or UserLockManager(
            self.settings.lock_idle_timeout_minutes
        )

    def get_courses(
        self,
        page: int | None = 1,
        limit: int | None = None,
        category: str | None = None,
        difficulty: str | None = None,
        search: str | None = None,
    ) -> dict[str, Any]:
        """
        List published courses with their published lessons

        Returns:
            Dict with ``courses`` and ``pagination`` metadata
        """
        page, limit = validate_pagination(
            page, limit, self.settings.default_page_size, self.settings.max_page_size
        )
        course_repo = self.db_manager.course_repo

        courses = course_repo.get_courses(
            get_skip(page, limit), limit, category, difficulty, search
        )
        total = course_repo.count_courses(category, difficulty, search)

        for course in courses:
            course["lessons"] = [
                {
                    "id": lesson["id"],
                    "title": lesson["title"],
                    "duration": lesson["duration"],
                    "points": lesson["points"],
                }
                for lesson in course_repo.get_course_lessons(course["id"])
            ]

        return {"courses": courses, "pagination": get_pagination_meta(page, limit, total)}

    def get_course(self, course_id: int, user_id: int | None = None) -> dict[str, Any]:
        """Get a published course with lessons and, if given, the user's enrollment"""
        course_repo = self.db_manager.course_repo
        course = course_repo.get_course(course_id)
        if not course:
            raise CourseNotFoundError()

        course["lessons"] = course_repo.get_course_lessons(course_id)
        course["enrollment_count"] = course_repo.count_enrollments(course_id)

        enrollment = None
        if user_id is not None:
            enrollment = course_repo.get_enrollment(user_id, course_id)

        return {"course": course, "enrollment": enrollment}

    def enroll(self, user_id: int, course_id: int) -> Enrollment:
        """Enroll a user in a published course"""
        self.dashboard_service.require_user(user_id)
        course_repo = self.db_manager.course_repo

        if not course_repo.get_course(course_id):
            raise CourseNotFoundError()

        if course_repo.get_enrollment(user_id, course_id):
            raise AlreadyEnrolledError()

        try:
            enrollment = course_repo.create_enrollment(user_id, course_id)
        except sqlite3.IntegrityError as e:
            # A concurrent request inserted the same (user, course) pair first
            raise AlreadyEnrolledError() from e

        logger.info(f"User {user_id} enrolled in course {course_id}")
        return enrollment

    def get_user_enrollments(
        self, user_id: int, page: int | None = 1, limit: int | None = None
    ) -> dict[str, Any]:
        """List the user's enrollments with course details"""
        page, limit = validate_pagination(
            page, limit, self.settings.default_page_size, self.settings.max_page_size
        )
        course_repo = self.db_manager.course_repo
        enrollments = course_repo.get_user_enrollments(
            user_id, offset=get_skip(page, limit), limit=limit
        )
        total = course_repo.count_user_enrollments(user_id)
        return {
            "enrollments": enrollments,
            "pagination": get_pagination_meta(page, limit, total),
        }

    def get_categories(self) -> list[dict[str, Any]]:
        """Categories of published courses with their course counts"""
        return self.db_manager.course_repo.get_categories()

    @log_execution_time
    async def complete_lesson(
        self, user_id: int, course_id: int, lesson_id: int
    ) -> ProgressResult:
        """
        Record a lesson completion and recompute course progress

        Points for a lesson are awarded at most once per user. Repeated
        completions only refresh the enrollment's progress.

        Args:
            user_id: Telegram user ID
            course_id: Course the lesson belongs to
            lesson_id: Lesson to mark as completed

        Returns:
            ProgressResult with the new progress and awarded points
        """
        course_repo = self.db_manager.course_repo
        activity_repo = self.db_manager.activity_repo

        async with self.lock_manager.user_lock(user_id, "complete_lesson"):
            with self.db_manager.transaction() as conn:
                enrollment = course_repo.get_enrollment(user_id, course_id, conn=conn)
                if not enrollment:
                    raise NotEnrolledError()

                lesson = course_repo.get_lesson(lesson_id, course_id, conn=conn)
                if not lesson:
                    raise LessonNotFoundError()

                already_completed = activity_repo.has_completed_lesson(
                    user_id, lesson_id, conn=conn
                )
                points_awarded = 0
                if not already_completed:
                    activity_repo.create_activity(
                        conn,
                        user_id,
                        LESSON_ACTIVITY,
                        f"Completed: {lesson['title']}",
                        lesson["points"],
                        lesson_id=lesson_id,
                    )
                    self.dashboard_service.update_user_stats(
                        user_id, lesson["points"], LESSON, conn=conn
                    )
                    points_awarded = lesson["points"]

                completed = activity_repo.count_completed_lessons(
                    user_id, course_id, conn=conn
                )
                published = course_repo.count_published_lessons(course_id, conn=conn)
                progress, completed_at = next_enrollment_state(
                    enrollment["progress"],
                    enrollment["completed_at"],
                    calculate_progress(completed, published),
                    datetime.now(),
                )
                course_repo.update_enrollment_progress(
                    conn, user_id, course_id, progress, completed_at
                )

        if already_completed:
            logger.debug(f"User {user_id} repeated lesson {lesson_id}")
        else:
            logger.info(
                f"User {user_id} completed lesson {lesson_id} in course {course_id}: "
                f"+{points_awarded} points, progress {progress:.1f}%"
            )

        return ProgressResult(
            progress=progress,
            is_completed=completed_at is not None,
            points_awarded=points_awarded,
            already_completed=already_completed,
        )
