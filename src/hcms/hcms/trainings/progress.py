from __future__ import annotations

from datetime import date
from typing import Optional

from ..common.datetime_utils import now_local, round_half_up
from .model import TrainingAssignment, TrainingProgram


def calculate_auto_progress(
    assignment: TrainingAssignment,
    program: Optional[TrainingProgram],
    *,
    today: Optional[date] = None,
) -> int:
    """Progress derived from how far today is into the program's date window.

    Completed assignments are always 100. Outside the window (or without one)
    the stored `progress_percentage` is used, except before the start (0).
    The current day counts as passed.
    """
    if assignment.is_completed:
        return 100
    if program is None or not program.has_window:
        return assignment.progress_percentage

    today = today or now_local().date()
    if today < program.start_date:
        return 0
    if today >= program.end_date:
        return assignment.progress_percentage

    total_days = (program.end_date - program.start_date).days
    days_passed = (today - program.start_date).days + 1
    progress = round_half_up(days_passed / total_days * 100)
    return min(100, max(0, progress))
