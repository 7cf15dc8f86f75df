"""
Game scoring: converts a raw game score into awarded points
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from .config import Settings

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    """Game difficulty tiers"""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


BASE_SCORE_RATIO = 0.1

DIFFICULTY_MULTIPLIERS = {
    Difficulty.EASY: 1.0,
    Difficulty.MEDIUM: 1.5,
    Difficulty.HARD: 2.0,
}


@dataclass
class ScoreResult:
    """Breakdown of the points awarded for one play"""

    raw_score: int
    base_points: int
    multiplier: float
    points: int
    capped: bool = False


class ScoringEngine:
    """Difficulty-weighted score to points conversion"""

    def __init__(self, settings: Settings | None = None):
        self.base_ratio = settings.base_score_ratio if settings else BASE_SCORE_RATIO

    def score(
        self, raw_score: int, difficulty: Difficulty | str, max_points: int
    ) -> ScoreResult:
        """
        Calculate the points for a raw score

        Args:
            raw_score: Non-negative score reported by the game
            difficulty: Game difficulty tier
            max_points: Per-game cap on awarded points

        Returns:
            ScoreResult with the intermediate values
        """
        multiplier = DIFFICULTY_MULTIPLIERS[Difficulty(difficulty)]

        # Truncate after each step; inputs are non-negative so floor == trunc
        base_points = math.floor(raw_score * self.base_ratio)
        weighted = math.floor(base_points * multiplier)
        points = max(0, min(weighted, max_points))

        return ScoreResult(
            raw_score=raw_score,
            base_points=base_points,
            multiplier=multiplier,
            points=points,
            capped=weighted > max_points,
        )

    def compute_points(
        self, raw_score: int, difficulty: Difficulty | str, max_points: int
    ) -> int:
        """Points awarded for a raw score, clamped to [0, max_points]"""
        return self.score(raw_score, difficulty, max_points).points


# Global instance
_scoring_engine = None


def get_scoring_engine() -> ScoringEngine:
    """Get global scoring engine instance"""
    global _scoring_engine
    if _scoring_engine is None:
        _scoring_engine = ScoringEngine()
    return _scoring_engine


def compute_points(
    raw_score: int, difficulty: Difficulty | str, max_points: int
) -> int:
    """Convenience function to compute points with the default ratio"""
    return get_scoring_engine().compute_points(raw_score, difficulty, max_points)
