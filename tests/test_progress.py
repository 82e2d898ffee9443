from __future__ import annotations

from datetime import date

import pytest

from hcms.trainings.model import TrainingAssignment, TrainingProgram
from hcms.trainings.progress import calculate_auto_progress

PROGRAM = TrainingProgram(id="p1", title="Literacy", start_date=date(2025, 3, 1), end_date=date(2025, 3, 11))


def _assignment(status: str = "in_progress", progress: int = 40) -> TrainingAssignment:
    return TrainingAssignment(id="a1", training_program_id="p1", teacher_id="t1", status=status, progress_percentage=progress)


def test_completed_is_always_full():
    assert calculate_auto_progress(_assignment(status="completed", progress=10), PROGRAM, today=date(2025, 2, 1)) == 100


def test_without_window_uses_stored_progress():
    assert calculate_auto_progress(_assignment(progress=35), None) == 35
    no_dates = TrainingProgram(id="p2", title="Open")
    assert calculate_auto_progress(_assignment(progress=35), no_dates) == 35


def test_before_start_is_zero():
    assert calculate_auto_progress(_assignment(), PROGRAM, today=date(2025, 2, 28)) == 0


def test_after_end_uses_stored_progress():
    assert calculate_auto_progress(_assignment(progress=40), PROGRAM, today=date(2025, 3, 11)) == 40
    assert calculate_auto_progress(_assignment(progress=40), PROGRAM, today=date(2025, 4, 1)) == 40


@pytest.mark.parametrize(
    "today, expected",
    [
        (date(2025, 3, 1), 10),  # first day counts
        (date(2025, 3, 5), 50),
        (date(2025, 3, 10), 100),
    ],
)
def test_inside_window_is_time_based(today, expected):
    assert calculate_auto_progress(_assignment(), PROGRAM, today=today) == expected


def test_rounds_half_up():
    program = TrainingProgram(id="p", title="x", start_date=date(2025, 1, 1), end_date=date(2025, 1, 9))
    # 1 of 8 days -> 12.5
    assert calculate_auto_progress(_assignment(), program, today=date(2025, 1, 1)) == 13


def test_uses_local_today_by_default(fixed_now):
    # fixed_now is 2025-03-10
    assert calculate_auto_progress(_assignment(), PROGRAM) == 100
