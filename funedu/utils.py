"""
Utility functions for the FunEdu Learning Bot
"""

import html
import inspect
import logging
import math
import time
from datetime import datetime
from functools import wraps
from typing import Any

from .progress import ProgressResult

logger = logging.getLogger(__name__)

DIFFICULTY_EMOJIS = {"easy": "🟢", "medium": "🟡", "hard": "🔴"}
RANK_MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


# Pagination

def validate_pagination(
    page: int | None,
    limit: int | None,
    default_limit: int = 10,
    max_limit: int = 100,
) -> tuple[int, int]:
    """Clamp page to >= 1 and limit to [1, max_limit]"""
    valid_page = max(1, page or 1)
    valid_limit = min(max_limit, max(1, limit or default_limit))
    return valid_page, valid_limit


def get_skip(page: int, limit: int) -> int:
    """Row offset for a page"""
    return (page - 1) * limit


def get_pagination_meta(page: int, limit: int, total: int) -> dict[str, Any]:
    """Pagination metadata for a listing"""
    pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": pages,
        "has_next": page < pages,
        "has_prev": page > 1,
    }


# Parsing

def safe_int(value: Any, default: int | None = None) -> int | None:
    """Safely convert value to integer"""
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to maximum length"""
    if not text or len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix


def format_duration(minutes: int) -> str:
    """Format a duration given in minutes"""
    if minutes < 60:
        return f"{minutes} min"
    hours, rest = divmod(minutes, 60)
    return f"{hours} h {rest} min" if rest else f"{hours} h"


def display_name(row: dict[str, Any]) -> str:
    """Name to show for a user row"""
    if row.get("username"):
        return f"@{row['username']}"
    return row.get("first_name") or f"Player {row.get('user_id', '?')}"


# Message formatting (Telegram HTML)

def format_user_stats(stats: dict[str, Any]) -> str:
    """Format user statistics"""
    result = "📊 <b>Your progress</b>\n\n"
    result += f"⭐ Level: <b>{stats['current_level']}</b>\n"
    result += f"💎 Points: <b>{stats['total_points']}</b>\n"
    result += f"🎯 To next level: <b>{stats['points_to_next_level']}</b>\n"
    result += f"📚 Lessons completed: <b>{stats['completed_lectures']}</b>\n"
    result += f"🔥 Streak: <b>{stats['streak_days']}</b> days\n"
    return result


def format_progress_result(result: ProgressResult) -> str:
    """Format the outcome of a lesson completion"""
    lines = []
    if result.already_completed:
        lines.append("↩️ Lesson already completed, no new points.")
    else:
        lines.append(f"✅ Lesson completed! +{result.points_awarded} points")

    lines.append(f"📈 Course progress: <b>{result.progress:.1f}%</b>")
    if result.is_completed:
        lines.append("🎓 Course completed. Well done!")
    return "\n".join(lines)


def format_score_result(result: dict[str, Any], game: dict[str, Any]) -> str:
    """Format the outcome of a game score submission"""
    return (
        f"{game.get('icon') or '🎮'} <b>{html.escape(game['title'])}</b>\n\n"
        f"🏁 Score: <b>{result['new_score']}</b>\n"
        f"💎 Points earned: <b>{result['points_earned']}</b>"
    )


def format_leaderboard(game: dict[str, Any], entries: list[dict[str, Any]]) -> str:
    """Format a game leaderboard"""
    title = f"🏆 <b>{html.escape(game['title'])}</b> leaderboard\n\n"
    if not entries:
        return title + "No scores yet. Be the first with /play!"

    lines = []
    for entry in entries:
        marker = RANK_MEDALS.get(entry["rank"], f"{entry['rank']}.")
        lines.append(
            f"{marker} {html.escape(display_name(entry))}: "
            f"<b>{entry['score']}</b> ({entry['points']} pts)"
        )
    return title + "\n".join(lines)


def format_game_list(games: list[dict[str, Any]]) -> str:
    """Format the list of active games"""
    if not games:
        return "🎮 No games available right now."

    lines = ["🎮 <b>Games</b>\n"]
    for game in games:
        difficulty = DIFFICULTY_EMOJIS.get(game["difficulty"], "⚪")
        lines.append(
            f"{game.get('icon') or '🎮'} <b>{game['id']}</b>. {html.escape(game['title'])} "
            f"{difficulty} {game['difficulty']}, up to {game['max_points']} pts"
        )
    lines.append("\nPlay with /play &lt;game&gt; &lt;score&gt;")
    return "\n".join(lines)


def format_user_game_stats(stats: dict[str, Any]) -> str:
    """Format per-game statistics for a user"""
    if not stats["games"]:
        return "🎮 You have not played any games yet."

    lines = ["🎮 <b>Your games</b>\n"]
    for game in stats["games"]:
        lines.append(
            f"{game.get('icon') or '🎮'} {html.escape(game['title'])}: "
            f"{game['games_played']} plays, best {game['best_score']}, "
            f"{game['total_points_earned']} pts"
        )
    lines.append(
        f"\nTotal: {stats['total_games_played']} plays, "
        f"{stats['total_points_from_games']} pts"
    )
    return "\n".join(lines)


def format_course_list(courses: list[dict[str, Any]], pagination: dict[str, Any]) -> str:
    """Format a page of the course catalogue"""
    if not courses:
        return "📚 No courses found."

    lines = [f"📚 <b>Courses</b> (page {pagination['page']}/{max(pagination['pages'], 1)})\n"]
    for course in courses:
        lines.append(
            f"<b>{course['id']}</b>. {html.escape(course['title'])} "
            f"[{html.escape(course['category'])}, {course['difficulty']}] "
            f"{len(course.get('lessons', []))} lessons, "
            f"{course.get('enrollment_count', 0)} enrolled"
        )
    if pagination["has_next"]:
        lines.append(f"\nNext page: /courses {pagination['page'] + 1}")
    return "\n".join(lines)


def format_course_details(course: dict[str, Any], enrollment: dict[str, Any] | None) -> str:
    """Format a course with its lessons"""
    lines = [
        f"📘 <b>{html.escape(course['title'])}</b>",
        truncate_text(html.escape(course.get("description") or ""), 300),
        f"🏷️ {html.escape(course['category'])} · {course['difficulty']} · "
        f"{format_duration(course.get('duration') or 0)}",
        "",
    ]
    for lesson in course.get("lessons", []):
        lines.append(
            f"• <b>{lesson['id']}</b>. {html.escape(lesson['title'])} ({lesson['points']} pts)"
        )

    if enrollment:
        lines.append(f"\n📈 Your progress: <b>{enrollment['progress']:.1f}%</b>")
        lines.append(f"Complete a lesson with /complete {course['id']} &lt;lesson&gt;")
    else:
        lines.append(f"\nEnroll with /enroll {course['id']}")
    return "\n".join(lines)


def format_enrollments(enrollments: list[dict[str, Any]]) -> str:
    """Format the user's enrollments"""
    if not enrollments:
        return "📚 You are not enrolled in any course yet. See /courses"

    lines = ["📚 <b>Your courses</b>\n"]
    for enrollment in enrollments:
        status = "🎓" if enrollment.get("completed_at") else "📖"
        lines.append(
            f"{status} <b>{enrollment['course_id']}</b>. "
            f"{html.escape(enrollment['course_title'])}: {enrollment['progress']:.1f}%"
        )
    return "\n".join(lines)


def format_categories(categories: list[dict[str, Any]]) -> str:
    """Format course categories"""
    if not categories:
        return "🏷️ No categories yet."
    lines = ["🏷️ <b>Categories</b>\n"]
    for category in categories:
        lines.append(f"• {html.escape(category['category'])} ({category['course_count']})")
    return "\n".join(lines)


def format_activities(activities: list[dict[str, Any]]) -> str:
    """Format recent activities"""
    if not activities:
        return "🕒 No activity yet."
    lines = ["🕒 <b>Recent activity</b>\n"]
    for activity in activities:
        when = activity.get("completed_at") or activity.get("created_at")
        stamp = when.strftime("%d.%m %H:%M") if isinstance(when, datetime) else ""
        lines.append(
            f"• {html.escape(activity['title'])} +{activity['points']} pts {stamp}".rstrip()
        )
    return "\n".join(lines)


def format_dashboard(overview: dict[str, Any]) -> str:
    """Format the dashboard overview"""
    course_stats = overview["course_stats"]
    result = format_user_stats(overview["user_stats"])
    result += (
        f"\n🎓 Courses: {course_stats['total']} total, "
        f"{course_stats['completed']} completed, "
        f"{course_stats['in_progress']} in progress\n"
    )

    if overview["achievements"]:
        result += "\n🏅 <b>Achievements</b>\n"
        for achievement in overview["achievements"]:
            result += f"{achievement.get('icon') or '🏅'} {html.escape(achievement['title'])}\n"

    if overview["recent_activities"]:
        result += "\n" + format_activities(overview["recent_activities"])

    return result


class Timer:
    """Simple timer for measuring duration"""

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def start(self):
        """Start the timer"""
        self.start_time = time.time()
        self.end_time = None

    def stop(self):
        """Stop the timer"""
        if self.start_time is not None:
            self.end_time = time.time()

    def elapsed(self) -> float | None:
        """Get elapsed time in seconds"""
        if self.start_time is None:
            return None

        end = self.end_time or time.time()
        return end - self.start_time


def log_execution_time(func):
    """Decorator to log function execution time"""

    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        timer = Timer()
        timer.start()
        try:
            result = await func(*args, **kwargs)
            timer.stop()
            logger.debug(f"{func.__name__} executed in {timer.elapsed():.3f}s")
            return result
        except Exception as e:
            timer.stop()
            logger.debug(f"{func.__name__} failed after {timer.elapsed():.3f}s: {e}")
            raise

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        timer = Timer()
        timer.start()
        try:
            result = func(*args, **kwargs)
            timer.stop()
            logger.debug(f"{func.__name__} executed in {timer.elapsed():.3f}s")
            return result
        except Exception as e:
            timer.stop()
            logger.debug(f"{func.__name__} failed after {timer.elapsed():.3f}s: {e}")
            raise

    if inspect.iscoroutinefunction(func):
        return async_wrapper
    else:
        return sync_wrapper
