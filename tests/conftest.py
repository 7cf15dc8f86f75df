"""
Shared fixtures for the FunEdu test suite
"""

import os

import pytest

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "test_token")

from funedu.config import Settings  # noqa: E402
from funedu.core.database.database_manager import DatabaseManager  # noqa: E402
from funedu.core.locks.user_lock_manager import UserLockManager  # noqa: E402
from funedu.core.services.course_service import CourseService  # noqa: E402
from funedu.core.services.dashboard_service import DashboardService  # noqa: E402
from funedu.core.services.game_service import GameService  # noqa: E402
from funedu.leveling import LevelingEngine  # noqa: E402
from funedu.scoring import ScoringEngine  # noqa: E402


@pytest.fixture
def settings():
    """Settings with defaults and no allowed users"""
    return Settings(telegram_bot_token="test_token")


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh database file"""
    return str(tmp_path / "funedu_test.db")


@pytest.fixture
def db_manager(db_path):
    """Initialized database manager on a temporary file"""
    manager = DatabaseManager(db_path)
    manager.init_database()
    return manager


@pytest.fixture
def lock_manager():
    return UserLockManager(idle_timeout_minutes=5)


@pytest.fixture
def dashboard_service(db_manager, settings):
    return DashboardService(db_manager, LevelingEngine(settings))


@pytest.fixture
def course_service(db_manager, dashboard_service, lock_manager, settings):
    return CourseService(db_manager, dashboard_service, lock_manager, settings)


@pytest.fixture
def game_service(db_manager, dashboard_service, lock_manager, settings):
    return GameService(
        db_manager,
        dashboard_service,
        lock_manager,
        scoring_engine=ScoringEngine(settings),
        settings=settings,
    )


@pytest.fixture
def user(db_manager):
    """Registered test user"""
    return db_manager.create_user(
        telegram_id=321, first_name="Test", last_name="User", username="testuser"
    )


@pytest.fixture
def course_with_lessons(db_manager):
    """Published course with three published lessons worth 10, 15 and 20 points"""
    course_id = db_manager.course_repo.create_course(
        title="Introduction to Mathematics",
        category="Mathematics",
        description="Numbers, fractions and algebra",
        is_published=True,
    )
    lesson_ids = [
        db_manager.course_repo.create_lesson(course_id, title, points=points, lesson_order=order)
        for order, (title, points) in enumerate(
            [("Numbers", 10), ("Fractions", 15), ("Algebra", 20)], start=1
        )
    ]
    return course_id, lesson_ids
