"""
Tests for games, score submission and leaderboards
"""

import pytest

from funedu.errors import (
    GameInactiveError,
    GameNotFoundError,
    InvalidScoreError,
    UserNotFoundError,
)


@pytest.fixture
def games(game_service, db_manager):
    """Seeded default games keyed by title"""
    game_service.create_initial_games()
    return {game["title"]: game for game in db_manager.game_repo.get_active_games()}


class TestGameCatalogue:
    """Test game listing and lookup"""

    def test_initial_games(self, game_service, games):
        assert len(games) == 5
        assert games["Math Quiz"]["difficulty"] == "easy"
        assert games["Math Quiz"]["max_points"] == 50
        assert games["Science Challenge"]["max_points"] == 100

    def test_seed_runs_once(self, game_service, games):
        assert game_service.create_initial_games() == 0
        assert len(game_service.get_all_games()) == 5

    def test_inactive_games_hidden(self, db_manager, game_service, games):
        db_manager.game_repo.set_game_active(games["Word Puzzle"]["id"], False)
        titles = [game["title"] for game in game_service.get_all_games()]
        assert "Word Puzzle" not in titles
        assert len(titles) == 4

    def test_get_missing_game(self, game_service):
        with pytest.raises(GameNotFoundError):
            game_service.get_game(999)

    def test_get_inactive_game(self, db_manager, game_service, games):
        game_id = games["Word Puzzle"]["id"]
        db_manager.game_repo.set_game_active(game_id, False)
        with pytest.raises(GameInactiveError):
            game_service.get_game(game_id)


class TestSubmitScore:
    """Test score submission"""

    @pytest.mark.asyncio
    async def test_easy_example(self, game_service, dashboard_service, user, games):
        result = await game_service.submit_score(
            user["telegram_id"], games["Math Quiz"]["id"], 85
        )

        assert result["points_earned"] == 8
        assert result["new_score"] == 85
        assert result["game_score"]["score"] == 85
        assert result["game_score"]["points"] == 8

        stats = dashboard_service.get_user_stats(user["telegram_id"])
        assert stats["total_points"] == 8
        assert stats["completed_lectures"] == 0

    @pytest.mark.asyncio
    async def test_hard_example(self, game_service, user, games):
        result = await game_service.submit_score(
            user["telegram_id"], games["Science Challenge"]["id"], 85
        )
        assert result["points_earned"] == 16

    @pytest.mark.asyncio
    async def test_capped(self, game_service, user, games):
        result = await game_service.submit_score(
            user["telegram_id"], games["Math Quiz"]["id"], 100_000
        )
        assert result["points_earned"] == 50

    @pytest.mark.asyncio
    async def test_activity_logged(self, game_service, dashboard_service, user, games):
        await game_service.submit_score(user["telegram_id"], games["Word Puzzle"]["id"], 95)

        activity = dashboard_service.get_recent_activities(user["telegram_id"])[0]
        assert activity["type"] == "ASSIGNMENT"
        assert activity["title"] == "Played: Word Puzzle"
        assert activity["description"] == "Score: 95, Points earned: 13"
        assert activity["points"] == 13

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", [-1, 1.5, "100", True, None])
    async def test_invalid_scores(self, game_service, user, games, score):
        with pytest.raises(InvalidScoreError):
            await game_service.submit_score(user["telegram_id"], games["Math Quiz"]["id"], score)

    @pytest.mark.asyncio
    async def test_unknown_user(self, game_service, games):
        with pytest.raises(UserNotFoundError):
            await game_service.submit_score(999, games["Math Quiz"]["id"], 10)

    @pytest.mark.asyncio
    async def test_inactive_game(self, db_manager, game_service, user, games):
        game_id = games["Math Quiz"]["id"]
        db_manager.game_repo.set_game_active(game_id, False)

        with pytest.raises(GameInactiveError):
            await game_service.submit_score(user["telegram_id"], game_id, 10)
        assert db_manager.activity_repo.count_activities(user["telegram_id"]) == 0


class TestLeaderboard:
    """Test leaderboards and ranks"""

    @pytest.fixture
    def players(self, db_manager):
        for telegram_id, name in [(1, "Anna"), (2, "Ben"), (3, "Cleo")]:
            db_manager.create_user(telegram_id=telegram_id, first_name=name)
        return [1, 2, 3]

    @pytest.mark.asyncio
    async def test_best_score_per_player(self, game_service, games, players):
        game_id = games["Math Quiz"]["id"]
        await game_service.submit_score(1, game_id, 50)
        await game_service.submit_score(2, game_id, 80)
        await game_service.submit_score(1, game_id, 95)
        await game_service.submit_score(3, game_id, 60)

        board = game_service.get_leaderboard(game_id)
        assert [(e["rank"], e["user_id"], e["score"]) for e in board] == [
            (1, 1, 95),
            (2, 2, 80),
            (3, 3, 60),
        ]
        assert board[0]["first_name"] == "Anna"

    @pytest.mark.asyncio
    async def test_limit_clamped(self, game_service, games, players):
        game_id = games["Math Quiz"]["id"]
        for player in players:
            await game_service.submit_score(player, game_id, player * 10)

        assert len(game_service.get_leaderboard(game_id, limit=2)) == 2
        assert len(game_service.get_leaderboard(game_id, limit=0)) == 3
        assert len(game_service.get_leaderboard(game_id, limit=-5)) == 1
        assert len(game_service.get_leaderboard(game_id, limit=10_000)) == 3

    def test_empty_leaderboard(self, game_service, games):
        assert game_service.get_leaderboard(games["Math Quiz"]["id"]) == []

    def test_missing_game(self, game_service):
        with pytest.raises(GameNotFoundError):
            game_service.get_leaderboard(999)

    @pytest.mark.asyncio
    async def test_inactive_game_still_ranked(self, db_manager, game_service, games, players):
        game_id = games["Math Quiz"]["id"]
        await game_service.submit_score(1, game_id, 70)
        db_manager.game_repo.set_game_active(game_id, False)

        assert len(game_service.get_leaderboard(game_id)) == 1

    @pytest.mark.asyncio
    async def test_user_rank(self, game_service, games, players):
        game_id = games["Math Quiz"]["id"]
        await game_service.submit_score(1, game_id, 90)
        await game_service.submit_score(2, game_id, 90)
        await game_service.submit_score(3, game_id, 40)
        await game_service.submit_score(3, game_id, 20)

        assert game_service.get_user_rank(1, game_id)["rank"] == 1
        assert game_service.get_user_rank(2, game_id)["rank"] == 1
        assert game_service.get_user_rank(3, game_id) == {"rank": 3, "score": 40, "points": 4}

    def test_user_rank_never_played(self, game_service, games, players):
        assert game_service.get_user_rank(1, games["Math Quiz"]["id"]) is None


class TestUserGameStats:
    """Test per-user game aggregates"""

    @pytest.mark.asyncio
    async def test_stats(self, game_service, user, games):
        math_id = games["Math Quiz"]["id"]
        puzzle_id = games["Word Puzzle"]["id"]
        await game_service.submit_score(user["telegram_id"], math_id, 85)
        await game_service.submit_score(user["telegram_id"], math_id, 120)
        await game_service.submit_score(user["telegram_id"], puzzle_id, 95)

        stats = game_service.get_user_game_stats(user["telegram_id"])
        assert stats["total_games_played"] == 3
        assert stats["total_points_from_games"] == 8 + 12 + 13

        math_stats = stats["games"][0]
        assert math_stats["game_id"] == math_id
        assert math_stats["games_played"] == 2
        assert math_stats["best_score"] == 120
        assert math_stats["total_points_earned"] == 20

    def test_no_plays(self, game_service, user):
        stats = game_service.get_user_game_stats(user["telegram_id"])
        assert stats == {"games": [], "total_games_played": 0, "total_points_from_games": 0}
