from dataclasses import dataclass
from datetime import date
from typing import Optional

from academic_control.core.enums import Semester

# Zero-indexed month from which a date belongs to the Fall semester (7 = August)
FALL_START_MONTH_INDEX = 7


@dataclass(frozen=True)
class AcademicTerm:
    academic_year: str
    semester: Semester


def current_term(today: Optional[date] = None) -> AcademicTerm:
    """Term for a wall-clock date: calendar year, Fall from August onward, else Spring."""
    today = today or date.today()
    month_index = today.month - 1
    semester = Semester.FALL if month_index >= FALL_START_MONTH_INDEX else Semester.SPRING
    return AcademicTerm(academic_year=str(today.year), semester=semester)
