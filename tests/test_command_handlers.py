"""
Tests for bot command handlers
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram import Update, User

from funedu.core.handlers.command_handlers import CommandHandlers


@pytest.fixture
def safe_reply():
    return AsyncMock()


@pytest.fixture
def handlers(db_manager, dashboard_service, course_service, game_service, safe_reply):
    game_service.create_initial_games()
    return CommandHandlers(
        db_manager=db_manager,
        dashboard_service=dashboard_service,
        course_service=course_service,
        game_service=game_service,
        safe_reply_callback=safe_reply,
    )


def make_update(user_id=321, first_name="Test", username=None):
    update = MagicMock(spec=Update)
    update.effective_user = User(
        id=user_id, is_bot=False, first_name=first_name, username=username
    )
    return update


def make_context(*args):
    context = MagicMock()
    context.args = [str(arg) for arg in args]
    return context


def reply_text(safe_reply) -> str:
    return safe_reply.call_args[0][1]


class TestCommandHandlers:
    """Test command handler replies"""

    @pytest.mark.asyncio
    async def test_start_registers_user(self, handlers, db_manager, safe_reply):
        await handlers.start_command(make_update(555, "Ada"), make_context())

        assert db_manager.get_user_by_telegram_id(555)["first_name"] == "Ada"
        assert "Ada" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_start_twice(self, handlers, db_manager, safe_reply):
        await handlers.start_command(make_update(555), make_context())
        await handlers.start_command(make_update(555), make_context())
        assert safe_reply.call_count == 2

    @pytest.mark.asyncio
    async def test_start_refreshes_profile(self, handlers, db_manager, safe_reply):
        await handlers.start_command(make_update(555, "Ada"), make_context())

        await handlers.start_command(make_update(555, "Augusta", "countess"), make_context())

        stored = db_manager.get_user_by_telegram_id(555)
        assert stored["first_name"] == "Augusta"
        assert stored["username"] == "countess"
        assert "Augusta" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_help(self, handlers, safe_reply):
        await handlers.help_command(make_update(), make_context())
        assert "/leaderboard" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_stats_unknown_user(self, handlers, safe_reply):
        await handlers.stats_command(make_update(999), make_context())
        assert "User not found" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_stats(self, handlers, user, safe_reply):
        await handlers.stats_command(make_update(), make_context())
        assert "Level: <b>1</b>" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_enroll_and_complete(self, handlers, user, course_with_lessons, safe_reply):
        course_id, lesson_ids = course_with_lessons

        await handlers.enroll_command(make_update(), make_context(course_id))
        assert "Enrolled" in reply_text(safe_reply)

        await handlers.complete_command(make_update(), make_context(course_id, lesson_ids[0]))
        text = reply_text(safe_reply)
        assert "+10 points" in text
        assert "33.3%" in text

        await handlers.complete_command(make_update(), make_context(course_id, lesson_ids[0]))
        assert "already completed" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_enroll_twice_reports_conflict(
        self, handlers, user, course_with_lessons, safe_reply
    ):
        course_id, _ = course_with_lessons
        await handlers.enroll_command(make_update(), make_context(course_id))
        await handlers.enroll_command(make_update(), make_context(course_id))
        assert "Already enrolled" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_complete_without_enrollment(self, handlers, user, course_with_lessons, safe_reply):
        course_id, lesson_ids = course_with_lessons
        await handlers.complete_command(make_update(), make_context(course_id, lesson_ids[0]))
        assert "not enrolled" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_complete_usage(self, handlers, user, safe_reply):
        await handlers.complete_command(make_update(), make_context("abc"))
        assert "Usage" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_courses_and_course(self, handlers, course_with_lessons, safe_reply):
        course_id, _ = course_with_lessons

        await handlers.courses_command(make_update(), make_context())
        assert "Introduction to Mathematics" in reply_text(safe_reply)

        await handlers.course_command(make_update(), make_context(course_id))
        assert "Fractions" in reply_text(safe_reply)

        await handlers.course_command(make_update(), make_context(999))
        assert "Course not found" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_play_and_leaderboard(self, handlers, game_service, user, safe_reply):
        game = next(g for g in game_service.get_all_games() if g["title"] == "Math Quiz")

        await handlers.play_command(make_update(), make_context(game["id"], 85))
        assert "Points earned: <b>8</b>" in reply_text(safe_reply)

        await handlers.leaderboard_command(make_update(), make_context(game["id"]))
        assert "@testuser" in reply_text(safe_reply)

        await handlers.rank_command(make_update(), make_context(game["id"]))
        assert "#1" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_play_reports_score_when_game_deactivated_meanwhile(
        self, handlers, db_manager, game_service, user, safe_reply
    ):
        game = next(g for g in game_service.get_all_games() if g["title"] == "Math Quiz")
        submit_score = game_service.submit_score

        async def submit_then_deactivate(*args, **kwargs):
            result = await submit_score(*args, **kwargs)
            db_manager.game_repo.set_game_active(game["id"], False)
            return result

        game_service.submit_score = submit_then_deactivate

        await handlers.play_command(make_update(), make_context(game["id"], 85))

        text = reply_text(safe_reply)
        assert "Math Quiz" in text
        assert "Points earned: <b>8</b>" in text
        assert "not active" not in text

    @pytest.mark.asyncio
    async def test_play_negative_score(self, handlers, game_service, user, safe_reply):
        game = game_service.get_all_games()[0]
        await handlers.play_command(make_update(), make_context(game["id"], -5))
        assert "non-negative" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_play_unknown_game(self, handlers, user, safe_reply):
        await handlers.play_command(make_update(), make_context(999, 10))
        assert "Game not found" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_rank_never_played(self, handlers, game_service, user, safe_reply):
        game = game_service.get_all_games()[0]
        await handlers.rank_command(make_update(), make_context(game["id"]))
        assert "not played" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_dashboard_and_mygames(self, handlers, user, safe_reply):
        await handlers.dashboard_command(make_update(), make_context())
        assert "Courses: 0 total" in reply_text(safe_reply)

        await handlers.mygames_command(make_update(), make_context())
        assert "not played any games" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_unexpected_error_answered_generically(self, handlers, user, safe_reply):
        handlers.dashboard_service.get_user_stats = MagicMock(side_effect=RuntimeError("boom"))

        await handlers.stats_command(make_update(), make_context())
        assert "Something went wrong" in reply_text(safe_reply)

    @pytest.mark.asyncio
    async def test_ignores_updates_without_user(self, handlers, safe_reply):
        update = MagicMock(spec=Update)
        update.effective_user = None
        await handlers.stats_command(update, make_context())
        safe_reply.assert_not_called()
