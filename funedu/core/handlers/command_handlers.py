"""
Command handlers for the FunEdu Learning Bot
"""

import html
import logging
from functools import wraps

from telegram import Update
from telegram.ext import ContextTypes

from ...database import DatabaseManager
from ...errors import LearningPlatformError
from ...utils import (
    format_activities,
    format_categories,
    format_course_details,
    format_course_list,
    format_dashboard,
    format_enrollments,
    format_game_list,
    format_leaderboard,
    format_progress_result,
    format_score_result,
    format_user_game_stats,
    format_user_stats,
    safe_int,
)
from ..services.course_service import CourseService
from ..services.dashboard_service import DashboardService
from ..services.game_service import GameService

logger = logging.getLogger(__name__)


def reply_on_error(func):
    """Answer domain failures with their message and log anything else"""

    @wraps(func)
    async def wrapper(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not update.effective_user:
            return
        try:
            return await func(self, update, context)
        except LearningPlatformError as e:
            logger.warning(
                f"{func.__name__} failed for user {update.effective_user.id}: {e.message}"
            )
            await self._safe_reply(update, f"❌ {html.escape(e.message)}", parse_mode="HTML")
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            await self._safe_reply(update, "❌ Something went wrong. Please try again later.")

    return wrapper


class CommandHandlers:
    """Handles all bot commands"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        dashboard_service: DashboardService,
        course_service: CourseService,
        game_service: GameService,
        safe_reply_callback,
    ):
        self.db_manager = db_manager
        self.dashboard_service = dashboard_service
        self.course_service = course_service
        self.game_service = game_service
        self._safe_reply = safe_reply_callback

    async def _usage(self, update: Update, usage: str):
        await self._safe_reply(update, f"ℹ️ Usage: {usage}", parse_mode="HTML")

    @reply_on_error
    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /start command"""
        user = update.effective_user

        stored = self.db_manager.get_or_create_user(
            telegram_id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            username=user.username,
        )

        profile = (user.first_name, user.last_name, user.username)
        if (stored["first_name"], stored["last_name"], stored["username"]) != profile:
            self.db_manager.user_repo.update_user(
                user.id,
                first_name=user.first_name,
                last_name=user.last_name,
                username=user.username,
            )
            logger.info(f"Refreshed profile for user {user.id}")

        welcome_message = f"""🎉 Hi, {html.escape(user.first_name)}!

Welcome to FunEdu! 🎓

Learn with courses, earn points in games and level up as you go.

📚 <b>Getting started:</b>
1. Browse courses with /courses
2. Enroll with /enroll &lt;course&gt;
3. Play a game with /games

Use /help to see all commands."""

        await self._safe_reply(update, welcome_message, parse_mode="HTML")

    @reply_on_error
    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /help command"""
        help_message = """📖 <b>FunEdu commands</b>

📚 <b>Courses:</b>
/courses [page] - Browse the catalogue
/categories - Course categories
/course &lt;id&gt; - Course details and lessons
/enroll &lt;id&gt; - Enroll in a course
/mycourses - Your courses and progress
/complete &lt;course&gt; &lt;lesson&gt; - Mark a lesson as completed

🎮 <b>Games:</b>
/games - Available games
/play &lt;game&gt; &lt;score&gt; - Submit a game score
/leaderboard &lt;game&gt; [limit] - Top players
/rank &lt;game&gt; - Your rank in a game
/mygames - Your game statistics

📊 <b>Progress:</b>
/stats - Level, points and streak
/dashboard - Overview of everything
/activities - Recent activity

⭐ Every 500 points is a new level!"""

        await self._safe_reply(update, help_message, parse_mode="HTML")

    @reply_on_error
    async def stats_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /stats command"""
        stats = self.dashboard_service.get_user_stats(update.effective_user.id)
        await self._safe_reply(update, format_user_stats(stats), parse_mode="HTML")

    @reply_on_error
    async def dashboard_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /dashboard command"""
        overview = self.dashboard_service.get_dashboard_overview(update.effective_user.id)
        await self._safe_reply(update, format_dashboard(overview), parse_mode="HTML")

    @reply_on_error
    async def activities_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /activities command"""
        user_id = update.effective_user.id
        self.dashboard_service.require_user(user_id)
        activities = self.dashboard_service.get_recent_activities(user_id)
        await self._safe_reply(update, format_activities(activities), parse_mode="HTML")

    @reply_on_error
    async def courses_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /courses [page] command"""
        page = safe_int(context.args[0], 1) if context.args else 1
        result = self.course_service.get_courses(page=page)
        await self._safe_reply(
            update,
            format_course_list(result["courses"], result["pagination"]),
            parse_mode="HTML",
        )

    @reply_on_error
    async def categories_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /categories command"""
        categories = self.course_service.get_categories()
        await self._safe_reply(update, format_categories(categories), parse_mode="HTML")

    @reply_on_error
    async def course_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /course <id> command"""
        course_id = safe_int(context.args[0]) if context.args else None
        if course_id is None:
            await self._usage(update, "/course &lt;id&gt;")
            return

        result = self.course_service.get_course(course_id, update.effective_user.id)
        await self._safe_reply(
            update,
            format_course_details(result["course"], result["enrollment"]),
            parse_mode="HTML",
        )

    @reply_on_error
    async def enroll_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /enroll <id> command"""
        course_id = safe_int(context.args[0]) if context.args else None
        if course_id is None:
            await self._usage(update, "/enroll &lt;id&gt;")
            return

        self.course_service.enroll(update.effective_user.id, course_id)
        await self._safe_reply(
            update,
            f"✅ Enrolled! See the lessons with /course {course_id}",
        )

    @reply_on_error
    async def mycourses_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /mycourses command"""
        result = self.course_service.get_user_enrollments(update.effective_user.id)
        await self._safe_reply(
            update, format_enrollments(result["enrollments"]), parse_mode="HTML"
        )

    @reply_on_error
    async def complete_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /complete <course> <lesson> command"""
        args = context.args or []
        course_id = safe_int(args[0]) if len(args) > 0 else None
        lesson_id = safe_int(args[1]) if len(args) > 1 else None
        if course_id is None or lesson_id is None:
            await self._usage(update, "/complete &lt;course&gt; &lt;lesson&gt;")
            return

        result = await self.course_service.complete_lesson(
            update.effective_user.id, course_id, lesson_id
        )
        await self._safe_reply(update, format_progress_result(result), parse_mode="HTML")

    @reply_on_error
    async def games_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /games command"""
        games = self.game_service.get_all_games()
        await self._safe_reply(update, format_game_list(games), parse_mode="HTML")

    @reply_on_error
    async def play_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /play <game> <score> command"""
        args = context.args or []
        game_id = safe_int(args[0]) if len(args) > 0 else None
        score = safe_int(args[1]) if len(args) > 1 else None
        if game_id is None or score is None:
            await self._usage(update, "/play &lt;game&gt; &lt;score&gt;")
            return

        result = await self.game_service.submit_score(
            update.effective_user.id, game_id, score
        )
        # Already committed; the game may have been deactivated since
        game = self.db_manager.game_repo.get_game(game_id)
        await self._safe_reply(update, format_score_result(result, game), parse_mode="HTML")

    @reply_on_error
    async def leaderboard_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /leaderboard <game> [limit] command"""
        args = context.args or []
        game_id = safe_int(args[0]) if len(args) > 0 else None
        if game_id is None:
            await self._usage(update, "/leaderboard &lt;game&gt; [limit]")
            return
        limit = safe_int(args[1]) if len(args) > 1 else None

        entries = self.game_service.get_leaderboard(game_id, limit)
        game = self.db_manager.game_repo.get_game(game_id)
        await self._safe_reply(update, format_leaderboard(game, entries), parse_mode="HTML")

    @reply_on_error
    async def rank_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /rank <game> command"""
        game_id = safe_int(context.args[0]) if context.args else None
        if game_id is None:
            await self._usage(update, "/rank &lt;game&gt;")
            return

        rank = self.game_service.get_user_rank(update.effective_user.id, game_id)
        if rank is None:
            await self._safe_reply(update, "🎮 You have not played this game yet.")
            return

        await self._safe_reply(
            update,
            f"🏆 Your rank: <b>#{rank['rank']}</b>\n"
            f"🏁 Best score: <b>{rank['score']}</b> ({rank['points']} pts)",
            parse_mode="HTML",
        )

    @reply_on_error
    async def mygames_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /mygames command"""
        user_id = update.effective_user.id
        self.dashboard_service.require_user(user_id)
        stats = self.game_service.get_user_game_stats(user_id)
        await self._safe_reply(update, format_user_game_stats(stats), parse_mode="HTML")
