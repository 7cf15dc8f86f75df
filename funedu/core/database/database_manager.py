"""
Unified database manager that coordinates all repositories
"""

import logging

from .connection import DatabaseConnection
from .models import User
from .repositories.activity_repository import ActivityRepository
from .repositories.course_repository import CourseRepository
from .repositories.game_repository import GameRepository
from .repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Unified database manager that coordinates all repositories"""

    def __init__(self, db_path: str | None = None):
        self.db_connection = DatabaseConnection(db_path)
        self.user_repo = UserRepository(self.db_connection)
        self.course_repo = CourseRepository(self.db_connection)
        self.activity_repo = ActivityRepository(self.db_connection)
        self.game_repo = GameRepository(self.db_connection)

    def init_database(self) -> None:
        """Initialize database tables and indexes"""
        self.db_connection.init_database()

    def transaction(self):
        """Open a single all-or-nothing write transaction"""
        return self.db_connection.transaction()

    def get_connection(self):
        """Get database connection for direct SQL access in tests"""
        return self.db_connection.get_connection()

    # User methods
    def create_user(
        self,
        telegram_id: int,
        first_name: str,
        last_name: str | None = None,
        username: str | None = None,
    ) -> User:
        """Create a new user"""
        return self.user_repo.create_user(telegram_id, first_name, last_name, username)

    def get_user_by_telegram_id(self, telegram_id: int) -> User | None:
        """Get user by Telegram ID"""
        return self.user_repo.get_user_by_telegram_id(telegram_id)

    def get_or_create_user(
        self,
        telegram_id: int,
        first_name: str,
        last_name: str | None = None,
        username: str | None = None,
    ) -> User:
        """Return the stored user, registering it on first contact"""
        user = self.user_repo.get_user_by_telegram_id(telegram_id)
        if user:
            return user
        return self.user_repo.create_user(telegram_id, first_name, last_name, username)


# Global instance
_db_manager = None


def get_db_manager(db_path: str | None = None) -> DatabaseManager:
    """Get global database manager instance"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(db_path)
    return _db_manager
