"""
Tests for game score to points conversion
"""

import pytest

from funedu.config import Settings
from funedu import scoring
from funedu.config import get_settings
from funedu.scoring import Difficulty, ScoringEngine, compute_points


class TestScoringEngine:
    """Test ScoringEngine class"""

    @pytest.fixture
    def engine(self):
        return ScoringEngine(Settings(telegram_bot_token="test_token"))

    def test_easy_example(self, engine):
        """85 on an easy game: floor(8.5) * 1.0 = 8"""
        assert engine.compute_points(85, "easy", 50) == 8

    def test_hard_example(self, engine):
        """85 on a hard game: floor(8.5) = 8, * 2.0 = 16"""
        assert engine.compute_points(85, "hard", 100) == 16

    def test_medium_truncates_after_multiplier(self, engine):
        """95 on medium: floor(9.5) = 9, 9 * 1.5 = 13.5 -> 13"""
        assert engine.compute_points(95, Difficulty.MEDIUM, 75) == 13

    def test_zero_score(self, engine):
        assert engine.compute_points(0, "hard", 100) == 0

    def test_small_scores_round_to_zero(self, engine):
        assert engine.compute_points(9, "hard", 100) == 0

    def test_cap_applies(self, engine):
        result = engine.score(10_000, "hard", 100)
        assert result.points == 100
        assert result.capped is True
        assert result.base_points == 1000
        assert result.multiplier == 2.0

    def test_not_capped_below_max(self, engine):
        result = engine.score(100, "easy", 50)
        assert result.points == 10
        assert result.capped is False

    def test_unknown_difficulty_rejected(self, engine):
        with pytest.raises(ValueError):
            engine.compute_points(100, "legendary", 50)

    @pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
    def test_monotonic_and_bounded(self, engine, difficulty):
        """Points never decrease with score and stay within [0, max_points]"""
        previous = 0
        for score in range(0, 2000, 7):
            points = engine.compute_points(score, difficulty, 90)
            assert 0 <= points <= 90
            assert points >= previous
            previous = points

    @pytest.mark.parametrize(
        "difficulty,multiplier", [("easy", 1.0), ("medium", 1.5), ("hard", 2.0)]
    )
    def test_matches_closed_form(self, engine, difficulty, multiplier):
        for score in [0, 1, 10, 33, 85, 99, 250, 999]:
            expected = min(75, int((score // 10) * multiplier))
            assert engine.compute_points(score, difficulty, 75) == expected

    def test_custom_base_ratio(self):
        engine = ScoringEngine(Settings(telegram_bot_token="test_token", base_score_ratio=0.5))
        assert engine.compute_points(85, "easy", 100) == 42


class TestDefaultScoring:
    """Test module-level scoring without any configuration"""

    @pytest.fixture
    def no_bot_token(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(scoring, "_scoring_engine", None)
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_compute_points_without_bot_token(self, no_bot_token):
        assert compute_points(85, "easy", 50) == 8
        assert compute_points(85, "hard", 100) == 16

    def test_default_engine_uses_base_ratio(self, no_bot_token):
        assert ScoringEngine().base_ratio == scoring.BASE_SCORE_RATIO == 0.1
