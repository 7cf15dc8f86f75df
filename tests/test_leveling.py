"""
Tests for level progression and streaks
"""

from datetime import datetime, timedelta

import pytest

from funedu import leveling
from funedu.config import Settings, get_settings
from funedu.errors import ValidationError
from funedu.leveling import (
    GAME,
    LESSON,
    LEVEL_SIZE,
    LevelingEngine,
    get_leveling_engine,
    level_for_points,
    next_streak,
    points_to_next_level,
)


class TestLevelFunctions:
    """Test level arithmetic"""

    def test_level_boundaries(self):
        assert level_for_points(0) == 1
        assert level_for_points(499) == 1
        assert level_for_points(500) == 2
        assert level_for_points(1234) == 3

    def test_points_to_next_level(self):
        assert points_to_next_level(0) == 500
        assert points_to_next_level(45) == 455
        assert points_to_next_level(500) == 500
        assert points_to_next_level(505) == 495


class TestStreak:
    """Test consecutive-day streak updates"""

    def test_first_activity(self):
        assert next_streak(0, None, datetime(2024, 3, 1, 10)) == 1

    def test_same_day_keeps_streak(self):
        assert next_streak(4, datetime(2024, 3, 1, 8), datetime(2024, 3, 1, 22)) == 4

    def test_same_day_starts_at_one(self):
        assert next_streak(0, datetime(2024, 3, 1, 8), datetime(2024, 3, 1, 9)) == 1

    def test_next_day_extends(self):
        assert next_streak(4, datetime(2024, 3, 1, 23), datetime(2024, 3, 2, 0, 30)) == 5

    def test_gap_resets(self):
        assert next_streak(4, datetime(2024, 3, 1), datetime(2024, 3, 4)) == 1


class TestLevelingEngine:
    """Test LevelingEngine class"""

    @pytest.fixture
    def engine(self):
        return LevelingEngine(Settings(telegram_bot_token="test_token"))

    def test_default_stats(self, engine):
        stats = engine.default_stats(321)
        assert stats["user_id"] == 321
        assert stats["total_points"] == 0
        assert stats["current_level"] == 1
        assert stats["points_to_next_level"] == 500

    def test_worked_example(self, engine):
        """45 points then 460 more: level 1 / 455 to go, then level 2 / 495 to go"""
        now = datetime(2024, 3, 1, 12)
        stats = engine.apply_points(engine.default_stats(321, now), 45, GAME, now)
        assert stats["current_level"] == 1
        assert stats["points_to_next_level"] == 455

        stats = engine.apply_points(stats, 460, GAME, now)
        assert stats["total_points"] == 505
        assert stats["current_level"] == 2
        assert stats["points_to_next_level"] == 495

    def test_input_not_modified(self, engine):
        original = engine.default_stats(321)
        engine.apply_points(original, 100, GAME)
        assert original["total_points"] == 0

    def test_lesson_increments_lecture_counters(self, engine):
        stats = engine.apply_points(engine.default_stats(321), 10, LESSON)
        assert stats["completed_lectures"] == 1
        assert stats["total_lectures"] == 1

    def test_game_does_not_increment_lecture_counters(self, engine):
        stats = engine.apply_points(engine.default_stats(321), 10, GAME)
        assert stats["completed_lectures"] == 0

    def test_level_never_decreases(self, engine):
        stats = engine.default_stats(321)
        previous_level = stats["current_level"]
        for points in [0, 7, 499, 1, 250, 1000, 3]:
            stats = engine.apply_points(stats, points, GAME)
            assert stats["current_level"] >= previous_level
            assert stats["points_to_next_level"] >= 0
            previous_level = stats["current_level"]

    def test_streak_tracked_across_days(self, engine):
        day = datetime(2024, 3, 1, 9)
        stats = engine.apply_points(engine.default_stats(321, day), 5, GAME, day)
        assert stats["streak_days"] == 1
        stats = engine.apply_points(stats, 5, GAME, day + timedelta(days=1))
        assert stats["streak_days"] == 2
        stats = engine.apply_points(stats, 5, GAME, day + timedelta(days=5))
        assert stats["streak_days"] == 1

    def test_negative_points_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.apply_points(engine.default_stats(321), -1, GAME)

    def test_unknown_activity_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.apply_points(engine.default_stats(321), 1, "homework")

    def test_custom_level_size(self):
        engine = LevelingEngine(Settings(telegram_bot_token="test_token", level_size=100))
        stats = engine.apply_points(engine.default_stats(321), 250, GAME)
        assert stats["current_level"] == 3
        assert stats["points_to_next_level"] == 50

    def test_default_engine_without_bot_token(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(leveling, "_leveling_engine", None)
        get_settings.cache_clear()
        try:
            engine = get_leveling_engine()
            stats = engine.apply_points(engine.default_stats(321), 510, GAME)
        finally:
            get_settings.cache_clear()

        assert engine.level_size == LEVEL_SIZE
        assert stats["current_level"] == 2
        assert stats["points_to_next_level"] == 490
