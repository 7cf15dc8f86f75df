"""
Database connection manager for the FunEdu Learning Bot
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path

from ...config import get_database_path

logger = logging.getLogger(__name__)

BUSY_TIMEOUT_SECONDS = 30


def _adapt_date(val):
    return val.isoformat()


def _adapt_datetime(val):
    return val.isoformat()


def _convert_date(val):
    try:
        return date.fromisoformat(val.decode())
    except ValueError:
        # Try alternative formats
        date_str = val.decode()
        for fmt in ["%Y-%m-%d", "%Y-%m-%d %H:%M:%S"]:
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                continue
        raise ValueError(f"Invalid date format: {date_str}") from None


def _convert_datetime(val):
    try:
        return datetime.fromisoformat(val.decode())
    except ValueError:
        datetime_str = val.decode()
        for fmt in ["%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d"]:
            try:
                return datetime.strptime(datetime_str, fmt)
            except ValueError:
                continue
        raise ValueError(f"Invalid datetime format: {datetime_str}") from None


sqlite3.register_adapter(date, _adapt_date)
sqlite3.register_adapter(datetime, _adapt_datetime)
sqlite3.register_converter("date", _convert_date)
sqlite3.register_converter("datetime", _convert_datetime)
sqlite3.register_converter("timestamp", _convert_datetime)


class DatabaseConnection:
    """Manages SQLite database connections and transactions"""

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or get_database_path()
        self._ensure_database_directory()
        self._init_connection_settings()

    def _ensure_database_directory(self) -> None:
        """Ensure the database directory exists"""
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

    def _init_connection_settings(self) -> None:
        """Initialize persistent database settings"""
        with self.get_connection() as conn:
            # WAL lets readers proceed while a writer holds the lock
            conn.execute("PRAGMA journal_mode=WAL")

    @contextmanager
    def get_connection(self):
        """Get database connection with proper cleanup"""
        conn = None
        try:
            conn = sqlite3.connect(
                self.db_path,
                detect_types=sqlite3.PARSE_DECLTYPES,
                timeout=BUSY_TIMEOUT_SECONDS,
            )
            conn.row_factory = sqlite3.Row  # Enable dict-like access
            conn.execute("PRAGMA foreign_keys=ON")
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            # Closing without commit discards any open transaction
            if conn:
                conn.close()

    @contextmanager
    def transaction(self):
        """Run a block inside one write transaction.

        BEGIN IMMEDIATE takes SQLite's write lock up front, so concurrent
        check-then-write sequences are serialized across connections and
        processes. The block either commits as a whole or rolls back,
        including when the awaiting task is cancelled.
        """
        with self.get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()

    @contextmanager
    def writing(self, conn: sqlite3.Connection | None = None):
        """Join the caller's transaction, or open a new one"""
        if conn is not None:
            yield conn
            return
        with self.transaction() as new_conn:
            yield new_conn

    @contextmanager
    def reading(self, conn: sqlite3.Connection | None = None):
        """Reuse the caller's connection, or open a short-lived one"""
        if conn is not None:
            yield conn
            return
        with self.get_connection() as new_conn:
            yield new_conn

    def init_database(self) -> None:
        """Initialize database tables"""
        with self.get_connection() as conn:
            self._create_tables(conn)
            self._run_migrations(conn)
            self._create_indexes(conn)
            conn.commit()

    def _create_tables(self, conn: sqlite3.Connection) -> None:
        """Create database tables"""
        tables = [
            """
            CREATE TABLE IF NOT EXISTS users (
                telegram_id INTEGER PRIMARY KEY,
                first_name TEXT NOT NULL,
                last_name TEXT,
                username TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                is_active BOOLEAN DEFAULT 1
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS user_stats (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL UNIQUE,
                total_lectures INTEGER NOT NULL DEFAULT 0,
                completed_lectures INTEGER NOT NULL DEFAULT 0,
                total_points INTEGER NOT NULL DEFAULT 0 CHECK (total_points >= 0),
                current_level INTEGER NOT NULL DEFAULT 1 CHECK (current_level >= 1),
                points_to_next_level INTEGER NOT NULL DEFAULT 500
                    CHECK (points_to_next_level >= 0),
                streak_days INTEGER NOT NULL DEFAULT 0,
                last_activity_date TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(telegram_id) ON DELETE CASCADE
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS courses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                category TEXT NOT NULL,
                difficulty TEXT NOT NULL DEFAULT 'beginner',
                duration INTEGER NOT NULL DEFAULT 0,
                thumbnail TEXT,
                is_published BOOLEAN DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS lessons (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                course_id INTEGER NOT NULL,
                title TEXT NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                video_url TEXT,
                duration INTEGER NOT NULL DEFAULT 0,
                points INTEGER NOT NULL DEFAULT 10 CHECK (points >= 0),
                lesson_order INTEGER NOT NULL DEFAULT 0,
                is_published BOOLEAN DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (course_id) REFERENCES courses(id) ON DELETE CASCADE
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS enrollments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                course_id INTEGER NOT NULL,
                progress REAL NOT NULL DEFAULT 0,
                completed_at TIMESTAMP,
                enrolled_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                last_accessed TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(telegram_id) ON DELETE CASCADE,
                FOREIGN KEY (course_id) REFERENCES courses(id) ON DELETE CASCADE,
                UNIQUE(user_id, course_id)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS activities (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                lesson_id INTEGER,
                type TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT,
                points INTEGER NOT NULL DEFAULT 0,
                is_completed BOOLEAN DEFAULT 0,
                completed_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(telegram_id) ON DELETE CASCADE,
                FOREIGN KEY (lesson_id) REFERENCES lessons(id) ON DELETE SET NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS games (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                icon TEXT,
                difficulty TEXT NOT NULL
                    CHECK (difficulty IN ('easy', 'medium', 'hard')),
                max_points INTEGER NOT NULL CHECK (max_points > 0),
                is_active BOOLEAN DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS game_scores (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                game_id INTEGER NOT NULL,
                score INTEGER NOT NULL CHECK (score >= 0),
                points INTEGER NOT NULL CHECK (points >= 0),
                played_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(telegram_id) ON DELETE CASCADE,
                FOREIGN KEY (game_id) REFERENCES games(id) ON DELETE CASCADE
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS achievements (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                icon TEXT,
                points INTEGER NOT NULL DEFAULT 0,
                unlocked_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(telegram_id) ON DELETE CASCADE
            )
            """,
        ]

        for table_sql in tables:
            conn.execute(table_sql)

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        """Create database indexes"""
        indexes = [
            # A lesson's completion is recorded at most once per user
            (
                "CREATE UNIQUE INDEX IF NOT EXISTS idx_activities_lesson_completion "
                "ON activities(user_id, lesson_id) "
                "WHERE type = 'LESSON' AND is_completed = 1"
            ),
            "CREATE INDEX IF NOT EXISTS idx_activities_user ON activities(user_id, created_at)",
            "CREATE INDEX IF NOT EXISTS idx_lessons_course ON lessons(course_id, lesson_order)",
            "CREATE INDEX IF NOT EXISTS idx_enrollments_user ON enrollments(user_id)",
            "CREATE INDEX IF NOT EXISTS idx_game_scores_game ON game_scores(game_id, score)",
            "CREATE INDEX IF NOT EXISTS idx_game_scores_user ON game_scores(user_id)",
            "CREATE INDEX IF NOT EXISTS idx_courses_category ON courses(category)",
        ]

        for index_sql in indexes:
            try:
                conn.execute(index_sql)
            except sqlite3.OperationalError as e:
                logger.warning(f"Failed to create index: {index_sql}, error: {e}")

    def _run_migrations(self, conn: sqlite3.Connection) -> None:
        """Add columns introduced after the first schema release"""
        cursor = conn.execute("PRAGMA table_info(user_stats)")
        columns = {row[1] for row in cursor.fetchall()}

        if "streak_days" not in columns:
            logger.info("Adding missing streak_days column to user_stats table")
            conn.execute(
                "ALTER TABLE user_stats ADD COLUMN streak_days INTEGER NOT NULL DEFAULT 0"
            )

        cursor = conn.execute("PRAGMA table_info(enrollments)")
        columns = {row[1] for row in cursor.fetchall()}

        if "last_accessed" not in columns:
            logger.info("Adding missing last_accessed column to enrollments table")
            conn.execute("ALTER TABLE enrollments ADD COLUMN last_accessed TIMESTAMP")
