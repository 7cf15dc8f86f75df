"""
Telegram bot handler wiring services to commands
"""

import asyncio
import logging
from functools import wraps

from telegram import BotCommand, Update
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes

from .config import get_settings
from .core.database.database_manager import DatabaseManager, get_db_manager
from .core.handlers.command_handlers import CommandHandlers
from .core.locks.user_lock_manager import UserLockManager
from .core.services.course_service import CourseService
from .core.services.dashboard_service import DashboardService
from .core.services.game_service import GameService
from .leveling import LevelingEngine

logger = logging.getLogger(__name__)

COMMANDS = [
    ("start", "🚀 Register and get started"),
    ("help", "❓ Command reference"),
    ("stats", "📊 Level, points and streak"),
    ("dashboard", "🗂️ Progress overview"),
    ("activities", "🕒 Recent activity"),
    ("courses", "📚 Browse courses"),
    ("categories", "🏷️ Course categories"),
    ("course", "📘 Course details"),
    ("enroll", "✍️ Enroll in a course"),
    ("mycourses", "🎓 Your courses"),
    ("complete", "✅ Complete a lesson"),
    ("games", "🎮 Available games"),
    ("play", "🏁 Submit a game score"),
    ("leaderboard", "🏆 Game leaderboard"),
    ("rank", "🥇 Your rank in a game"),
    ("mygames", "🕹️ Your game statistics"),
]


class BotHandler:
    """Main Telegram bot handler"""

    def __init__(self, settings=None, db_manager: DatabaseManager | None = None):
        self.settings = settings or get_settings()
        self.db_manager = db_manager or get_db_manager()
        self.lock_manager = UserLockManager(
            idle_timeout_minutes=self.settings.lock_idle_timeout_minutes
        )

        self.application = None

        self.dashboard_service = DashboardService(
            self.db_manager, LevelingEngine(self.settings)
        )
        self.course_service = CourseService(
            self.db_manager,
            self.dashboard_service,
            lock_manager=self.lock_manager,
            settings=self.settings,
        )
        self.game_service = GameService(
            self.db_manager,
            self.dashboard_service,
            lock_manager=self.lock_manager,
            settings=self.settings,
        )

        self.command_handlers = CommandHandlers(
            db_manager=self.db_manager,
            dashboard_service=self.dashboard_service,
            course_service=self.course_service,
            game_service=self.game_service,
            safe_reply_callback=self._safe_reply,
        )

    def _is_user_authorized(self, user_id: int) -> bool:
        """Check if user is authorized to use the bot"""
        if not self.settings.allowed_users_list:
            return False
        return user_id in self.settings.allowed_users_list

    async def _check_authorization(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> bool:
        """Check if user is authorized and send unauthorized message if not"""
        user_id = update.effective_user.id

        if not self._is_user_authorized(user_id):
            await self._safe_reply(
                update,
                "❌ You do not have access to this bot. Please contact the administrator.",
            )
            logger.warning(f"Unauthorized access attempt from user {user_id}")
            return False

        return True

    def require_authorization(self, func):
        """Decorator to require authorization for handler functions"""

        @wraps(func)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE):
            if not await self._check_authorization(update, context):
                return
            return await func(update, context)

        return wrapper

    async def start(self):
        """Start the bot"""
        logger.info("Starting FunEdu Learning Bot...")

        self.db_manager.init_database()
        self.game_service.create_initial_games()

        await self.lock_manager.start()

        try:
            self.application = (
                Application.builder()
                .token(self.settings.telegram_bot_token)
                .read_timeout(30)
                .write_timeout(30)
                .connect_timeout(30)
                .pool_timeout(30)
                .post_init(self.setup_bot_menu)
                .build()
            )

            self._add_handlers()

            # run_polling() owns the event loop, so drive the updater by hand
            async with self.application:
                await self.application.start()
                await self.application.updater.start_polling(
                    poll_interval=self.settings.polling_interval,
                    timeout=10,
                    bootstrap_retries=3,
                )
                logger.info("Bot started successfully!")
                try:
                    await asyncio.Event().wait()
                finally:
                    await self.application.updater.stop()
                    await self.application.stop()
        finally:
            await self.lock_manager.stop()

    def _add_handlers(self):
        """Register command handlers behind the allow-list"""
        app = self.application

        for command, _ in COMMANDS:
            callback = getattr(self.command_handlers, f"{command}_command")
            app.add_handler(CommandHandler(command, self.require_authorization(callback)))

        app.add_error_handler(self.error_handler)

    async def setup_bot_menu(self, application):
        """Setup bot menu with commands for better UX"""
        commands = [BotCommand(command, description) for command, description in COMMANDS]

        try:
            await application.bot.set_my_commands(commands)
            logger.info("Bot menu commands set successfully")
        except TelegramError as e:
            logger.error(f"Failed to set bot menu commands: {e}")

    async def _safe_reply(self, update_or_message, text: str, **kwargs):
        """Safely send a reply message"""
        try:
            logger.debug(f"_safe_reply called with text: {text[:50]}...")

            if hasattr(update_or_message, "message"):
                # It's an Update object
                message = await update_or_message.message.reply_text(text, **kwargs)
            else:
                # It's a Message object
                message = await update_or_message.reply_text(text, **kwargs)

            if message is None:
                logger.warning("Telegram API returned None message")

            return message
        except TelegramError as e:
            logger.error(f"Error sending reply: {e}")
            logger.error(f"Failed text: {text[:100]}...")
            return None

    async def error_handler(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        """Handle errors"""
        logger.error(f"Update {update} caused error {context.error}")


def get_bot_handler(settings=None) -> BotHandler:
    """Get bot handler instance"""
    return BotHandler(settings)
