"""
Leaderboard ranking over a game's score log
"""

from datetime import datetime
from typing import Any, Iterable

from .core.database.models import LeaderboardEntry

DEFAULT_LIMIT = 10


def _best_row_key(row: dict[str, Any]) -> tuple:
    # Higher score wins; among equal scores the earliest play, then lowest id
    return (-row["score"], row["played_at"] or datetime.max, row.get("id", 0))


def best_scores_per_user(rows: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Reduce a score log to each user's best row"""
    best: dict[int, dict[str, Any]] = {}
    for row in rows:
        current = best.get(row["user_id"])
        if current is None or _best_row_key(row) < _best_row_key(current):
            best[row["user_id"]] = row
    return list(best.values())


def rank_scores(
    rows: Iterable[dict[str, Any]], limit: int = DEFAULT_LIMIT
) -> list[LeaderboardEntry]:
    """
    Rank players by their best score

    Ranks are positional: players tied on score still get consecutive
    ranks, ordered by who reached the score first, then by user ID.
    """
    if limit <= 0:
        return []

    ordered = sorted(
        best_scores_per_user(rows),
        key=lambda row: (
            -row["score"],
            row["played_at"] or datetime.max,
            row["user_id"],
        ),
    )

    return [
        {
            "rank": position,
            "user_id": row["user_id"],
            "first_name": row.get("first_name"),
            "username": row.get("username"),
            "score": row["score"],
            "points": row["points"],
            "played_at": row["played_at"],
        }
        for position, row in enumerate(ordered[:limit], start=1)
    ]
