from types import SimpleNamespace

import pytest

from academic_control.core.aggregation import (
    attendance_breakdown,
    attendance_rate,
    grade_percentage,
    overall_mean,
    weighted_average,
)
from academic_control.core.enums import AttendanceStatus


def _grade(value, max_value=100.0, weight=1.0):
    return SimpleNamespace(grade_value=value, max_value=max_value, weight=weight)


def _att(status):
    return SimpleNamespace(status=status)


def test_percentage():
    assert grade_percentage(_grade(45, 50)) == pytest.approx(90.0)


def test_weighted_average_of_percentages():
    grades = [_grade(45, 50, 0.5), _grade(80, 100, 0.5)]
    assert weighted_average(grades) == pytest.approx(85.0)


def test_weighted_average_respects_weights():
    grades = [_grade(100, 100, 0.75), _grade(0, 100, 0.25)]
    assert weighted_average(grades) == pytest.approx(75.0)


def test_weighted_average_empty_and_zero_weight():
    assert weighted_average([]) == 0.0
    assert weighted_average([_grade(90, 100, 0.0), _grade(10, 100, 0.0)]) == 0.0


def test_weighted_average_stays_in_range():
    grades = [_grade(0, 10, 0.2), _grade(10, 10, 1.0), _grade(3, 7, 0.4)]
    assert 0.0 <= weighted_average(grades) <= 100.0


def test_attendance_rate_counts_only_present():
    records = [_att("present"), _att("late"), _att("absent"), _att("excused")]
    assert attendance_rate(records) == pytest.approx(25.0)


def test_attendance_rate_accepts_enum_status():
    records = [_att(AttendanceStatus.PRESENT), _att(AttendanceStatus.ABSENT)]
    assert attendance_rate(records) == pytest.approx(50.0)


def test_attendance_rate_empty():
    assert attendance_rate([]) == 0.0


def test_attendance_breakdown_has_every_status():
    counts = attendance_breakdown([_att("present"), _att("present"), _att("late")])
    assert counts == {"present": 2, "absent": 0, "late": 1, "excused": 0}


def test_overall_mean():
    assert overall_mean([]) == 0.0
    assert overall_mean([80.0, 90.0, 100.0]) == pytest.approx(90.0)
