"""
Database models for the FunEdu Learning Bot
"""

from datetime import datetime
from typing import TypedDict


class User(TypedDict):
    """User model"""
    telegram_id: int
    first_name: str
    last_name: str | None
    username: str | None
    created_at: datetime
    updated_at: datetime
    is_active: bool


class UserStats(TypedDict):
    """Per-user gamification statistics"""
    id: int
    user_id: int
    total_lectures: int
    completed_lectures: int
    total_points: int
    current_level: int
    points_to_next_level: int
    streak_days: int
    last_activity_date: datetime | None
    created_at: datetime
    updated_at: datetime


class Course(TypedDict):
    """Course model"""
    id: int
    title: str
    description: str
    category: str
    difficulty: str
    duration: int
    thumbnail: str | None
    is_published: bool
    created_at: datetime
    updated_at: datetime


class Lesson(TypedDict):
    """Lesson model"""
    id: int
    course_id: int
    title: str
    content: str
    video_url: str | None
    duration: int
    points: int
    lesson_order: int
    is_published: bool
    created_at: datetime


class Enrollment(TypedDict):
    """Enrollment model"""
    id: int
    user_id: int
    course_id: int
    progress: float
    completed_at: datetime | None
    enrolled_at: datetime
    last_accessed: datetime


class Activity(TypedDict):
    """Activity log entry"""
    id: int
    user_id: int
    lesson_id: int | None
    type: str
    title: str
    description: str | None
    points: int
    is_completed: bool
    completed_at: datetime | None
    created_at: datetime


class Game(TypedDict):
    """Game model"""
    id: int
    title: str
    description: str
    icon: str | None
    difficulty: str
    max_points: int
    is_active: bool
    created_at: datetime


class GameScore(TypedDict):
    """Game score log entry"""
    id: int
    user_id: int
    game_id: int
    score: int
    points: int
    played_at: datetime


class Achievement(TypedDict):
    """Achievement model"""
    id: int
    user_id: int
    title: str
    description: str
    icon: str | None
    points: int
    unlocked_at: datetime


class LeaderboardEntry(TypedDict):
    """Ranked leaderboard row"""
    rank: int
    user_id: int
    first_name: str | None
    username: str | None
    score: int
    points: int
    played_at: datetime
