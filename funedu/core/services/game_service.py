"""
Game service: games, score submission and leaderboards
"""

import logging
from typing import Any

from ...config import Settings, get_settings
from ...errors import GameInactiveError, GameNotFoundError, InvalidScoreError
from ...leaderboard import rank_scores
from ...leveling import GAME
from ...scoring import ScoringEngine, get_scoring_engine
from ...utils import log_execution_time
from ..database.database_manager import DatabaseManager
from ..database.models import Game, LeaderboardEntry
from ..database.repositories.activity_repository import ASSIGNMENT_ACTIVITY
from ..locks.user_lock_manager import UserLockManager
from .dashboard_service import DashboardService

logger = logging.getLogger(__name__)

INITIAL_GAMES = [
    {
        "title": "Math Quiz",
        "description": "Test your math skills with fun challenges",
        "icon": "🧮",
        "difficulty": "easy",
        "max_points": 50,
    },
    {
        "title": "Word Puzzle",
        "description": "Find hidden words and expand your vocabulary",
        "icon": "🧩",
        "difficulty": "medium",
        "max_points": 75,
    },
    {
        "title": "Science Challenge",
        "description": "Answer tricky science questions",
        "icon": "🔬",
        "difficulty": "hard",
        "max_points": 100,
    },
    {
        "title": "Geography Explorer",
        "description": "Travel the world and learn about countries",
        "icon": "🌍",
        "difficulty": "medium",
        "max_points": 80,
    },
    {
        "title": "History Timeline",
        "description": "Put historical events in the right order",
        "icon": "📜",
        "difficulty": "hard",
        "max_points": 90,
    },
]


class GameService:
    """Games, score submission and leaderboards"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        dashboard_service: DashboardService,
        lock_manager: UserLockManager | None = None,
        scoring_engine: ScoringEngine | None = None,
        settings: Settings | None = None,
    ):
        self.db_manager = db_manager
        self.dashboard_service = dashboard_service
        self.settings = settings or get_settings()
        self.lock_manager = lock_manager or UserLockManager(
            self.settings.lock_idle_timeout_minutes
        )
        if scoring_engine is None:
            scoring_engine = ScoringEngine(settings) if settings else get_scoring_engine()
        self.scoring_engine = scoring_engine

    def get_all_games(self) -> list[Game]:
        """Active games, newest first"""
        return self.db_manager.game_repo.get_active_games()

    def get_game(self, game_id: int) -> Game:
        """Get an active game"""
        game = self._find_game(game_id)
        if not game["is_active"]:
            raise GameInactiveError()
        return game

    def _find_game(self, game_id: int) -> Game:
        game = self.db_manager.game_repo.get_game(game_id)
        if not game:
            raise GameNotFoundError()
        return game

    @log_execution_time
    async def submit_score(self, user_id: int, game_id: int, raw_score: int) -> dict[str, Any]:
        """
        Record a game result and award points

        The score row, the statistics update and the activity entry are
        written in one transaction.

        Args:
            user_id: Telegram user ID
            game_id: Played game
            raw_score: Non-negative score reported by the game

        Returns:
            Dict with ``game_score``, ``points_earned`` and ``new_score``
        """
        if isinstance(raw_score, bool) or not isinstance(raw_score, int) or raw_score < 0:
            raise InvalidScoreError()

        self.dashboard_service.require_user(user_id)
        game = self.get_game(game_id)
        result = self.scoring_engine.score(raw_score, game["difficulty"], game["max_points"])

        async with self.lock_manager.user_lock(user_id, "submit_score"):
            with self.db_manager.transaction() as conn:
                game_score = self.db_manager.game_repo.create_game_score(
                    conn, user_id, game_id, raw_score, result.points
                )
                self.dashboard_service.update_user_stats(
                    user_id, result.points, GAME, conn=conn
                )
                self.db_manager.activity_repo.create_activity(
                    conn,
                    user_id,
                    ASSIGNMENT_ACTIVITY,
                    f"Played: {game['title']}",
                    result.points,
                    description=f"Score: {raw_score}, Points earned: {result.points}",
                )

        logger.info(
            f"User {user_id} scored {raw_score} in game {game_id}: "
            f"+{result.points} points{' (capped)' if result.capped else ''}"
        )
        return {
            "game_score": game_score,
            "points_earned": result.points,
            "new_score": raw_score,
        }

    def get_leaderboard(self, game_id: int, limit: int | None = None) -> list[LeaderboardEntry]:
        """Rank players of a game by their best score"""
        self._find_game(game_id)
        limit = min(
            self.settings.max_leaderboard_limit,
            max(1, limit or self.settings.default_leaderboard_limit),
        )
        return rank_scores(self.db_manager.game_repo.get_game_scores(game_id), limit)

    def get_user_rank(self, user_id: int, game_id: int) -> dict[str, Any] | None:
        """User's competition rank in a game, or None if they never played it"""
        self._find_game(game_id)
        game_repo = self.db_manager.game_repo

        best = game_repo.get_user_best_score(user_id, game_id)
        if not best:
            return None

        higher = game_repo.count_players_with_higher_score(game_id, best["score"])
        return {"rank": higher + 1, "score": best["score"], "points": best["points"]}

    def get_user_game_stats(self, user_id: int) -> dict[str, Any]:
        """Per-game aggregates of the user's plays plus overall totals"""
        game_repo = self.db_manager.game_repo
        totals = game_repo.get_user_game_totals(user_id)
        return {
            "games": game_repo.get_user_game_stats(user_id),
            "total_games_played": totals["total_games_played"],
            "total_points_from_games": totals["total_points_from_games"],
        }

    def create_initial_games(self) -> int:
        """Seed the default games into an empty catalogue"""
        game_repo = self.db_manager.game_repo
        if game_repo.count_games() > 0:
            logger.info("Games already exist, skipping seed")
            return 0

        created = game_repo.create_games(INITIAL_GAMES)
        logger.info(f"Created {created} initial games")
        return created
