"""Challenge progress module.

Derives progress statistics and the 200-day grid from a challenge, its
deposits and the current date.
"""

from .calculator import build_day_grid, compute_progress, round2
from .schemas import DayCell, ProgressSnapshot

__all__ = [
    "build_day_grid",
    "compute_progress",
    "round2",
    "DayCell",
    "ProgressSnapshot",
]
