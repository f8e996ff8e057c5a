from datetime import date

from academic_control.core.academic_term import current_term
from academic_control.core.enums import Semester


def test_spring_through_july():
    assert current_term(date(2025, 1, 10)).semester == Semester.SPRING
    assert current_term(date(2025, 7, 31)).semester == Semester.SPRING


def test_fall_from_august():
    term = current_term(date(2025, 8, 1))
    assert term.semester == Semester.FALL
    assert term.academic_year == "2025"
    assert current_term(date(2025, 12, 31)).semester == Semester.FALL


def test_academic_year_is_calendar_year():
    assert current_term(date(2026, 3, 15)).academic_year == "2026"
