"""
Course progress calculation
"""

from dataclasses import dataclass
from datetime import datetime

COMPLETE = 100.0


@dataclass
class ProgressResult:
    """Outcome of recording a lesson completion"""

    progress: float
    is_completed: bool
    points_awarded: int = 0
    already_completed: bool = False

    def as_dict(self) -> dict:
        return {"progress": self.progress, "is_completed": self.is_completed}


def calculate_progress(completed_lessons: int, published_lessons: int) -> float:
    """Percentage of published lessons completed; 0 for an empty course"""
    if published_lessons <= 0:
        return 0.0
    return min(COMPLETE, completed_lessons / published_lessons * 100)


def next_enrollment_state(
    previous_progress: float,
    previous_completed_at: datetime | None,
    computed_progress: float,
    now: datetime,
) -> tuple[float, datetime | None]:
    """
    Progress and completion stamp to store after a recompute

    Progress never goes down and a completed enrollment stays completed,
    even if lessons were unpublished or added since.
    """
    progress = max(previous_progress or 0.0, computed_progress)
    if previous_completed_at is not None:
        return max(progress, COMPLETE), previous_completed_at
    if progress >= COMPLETE:
        return COMPLETE, now
    return progress, None
