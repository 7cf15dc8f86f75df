"""
Game repository for games and the game score log
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any

from ..connection import DatabaseConnection
from ..models import Game, GameScore

logger = logging.getLogger(__name__)


class GameRepository:
    """Repository for games, scores and score aggregates"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def get_active_games(self) -> list[Game]:
        """Get all active games, newest first"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM games WHERE is_active = 1 ORDER BY created_at DESC, id DESC"
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_game(self, game_id: int) -> Game | None:
        """Get game by ID, active or not"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute("SELECT * FROM games WHERE id = ?", (game_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def count_games(self) -> int:
        """Count all games"""
        with self.db_connection.get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM games").fetchone()[0]

    def create_games(self, games: list[dict[str, Any]]) -> int:
        """Insert several games in one transaction"""
        now = datetime.now()
        with self.db_connection.transaction() as conn:
            conn.executemany(
                """
                INSERT INTO games (title, description, icon, difficulty, max_points, is_active, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        game["title"],
                        game.get("description", ""),
                        game.get("icon"),
                        game["difficulty"],
                        game["max_points"],
                        int(game.get("is_active", True)),
                        now,
                    )
                    for game in games
                ],
            )
        return len(games)

    def set_game_active(self, game_id: int, is_active: bool) -> bool:
        """Activate or deactivate a game"""
        with self.db_connection.transaction() as conn:
            cursor = conn.execute(
                "UPDATE games SET is_active = ? WHERE id = ?",
                (int(is_active), game_id),
            )
            return cursor.rowcount > 0

    # Score log

    def create_game_score(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        game_id: int,
        score: int,
        points: int,
        played_at: datetime | None = None,
    ) -> GameScore:
        """Append a score to the log inside the caller's transaction"""
        cursor = conn.execute(
            """
            INSERT INTO game_scores (user_id, game_id, score, points, played_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (user_id, game_id, score, points, played_at or datetime.now()),
        )
        row = conn.execute(
            "SELECT * FROM game_scores WHERE id = ?", (cursor.lastrowid,)
        ).fetchone()
        return dict(row)

    def get_game_scores(self, game_id: int) -> list[dict[str, Any]]:
        """Get the full score log of a game with player names"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT gs.id, gs.user_id, gs.game_id, gs.score, gs.points, gs.played_at,
                       u.first_name, u.username
                FROM game_scores gs
                JOIN users u ON gs.user_id = u.telegram_id
                WHERE gs.game_id = ?
                """,
                (game_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_user_best_score(self, user_id: int, game_id: int) -> GameScore | None:
        """Get a user's best score in a game, earliest first on ties"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM game_scores
                WHERE user_id = ? AND game_id = ?
                ORDER BY score DESC, played_at ASC, id ASC
                LIMIT 1
                """,
                (user_id, game_id),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def count_players_with_higher_score(self, game_id: int, score: int) -> int:
        """Count distinct players who beat the given score in a game"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(DISTINCT user_id) FROM game_scores
                WHERE game_id = ? AND score > ?
                """,
                (game_id, score),
            )
            return cursor.fetchone()[0]

    def get_user_game_stats(self, user_id: int) -> list[dict[str, Any]]:
        """Per-game aggregates of a user's plays"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT g.id AS game_id, g.title, g.icon, g.difficulty,
                       COUNT(gs.id) AS games_played,
                       MAX(gs.score) AS best_score,
                       SUM(gs.points) AS total_points_earned
                FROM game_scores gs
                JOIN games g ON gs.game_id = g.id
                WHERE gs.user_id = ?
                GROUP BY g.id
                ORDER BY games_played DESC, g.id ASC
                """,
                (user_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_user_game_totals(self, user_id: int) -> dict[str, int]:
        """Totals across all of a user's plays"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(id) AS total_games_played,
                       COALESCE(SUM(points), 0) AS total_points_from_games
                FROM game_scores
                WHERE user_id = ?
                """,
                (user_id,),
            )
            return dict(cursor.fetchone())
