"""
Grade and attendance aggregates.

weighted_average is a weighted mean of per-entry percentages, not a pooled
points ratio: a 45/50 quiz and an 80/100 exam with equal weight average to 85.
attendance_rate counts only the exact "present" status; late and excused
count the same as absent.
"""

from typing import Dict, Iterable, Sequence

from academic_control.core.enums import AttendanceStatus


def grade_percentage(grade) -> float:
    return (grade.grade_value / grade.max_value) * 100


def weighted_average(grades: Sequence) -> float:
    if not grades:
        return 0.0
    total_weight = sum(g.weight for g in grades)
    if total_weight == 0:
        return 0.0
    weighted_sum = sum(grade_percentage(g) * g.weight for g in grades)
    return weighted_sum / total_weight


def _status_value(record) -> str:
    status = record.status
    return status.value if isinstance(status, AttendanceStatus) else status


def attendance_rate(records: Sequence) -> float:
    if not records:
        return 0.0
    present = sum(1 for r in records if _status_value(r) == AttendanceStatus.PRESENT.value)
    return present / len(records) * 100


def attendance_breakdown(records: Iterable) -> Dict[str, int]:
    counts = {s.value: 0 for s in AttendanceStatus}
    for r in records:
        status = _status_value(r)
        counts[status] = counts.get(status, 0) + 1
    return counts


def overall_mean(values: Sequence[float]) -> float:
    """Unweighted mean across enrollments; 0 when there are none."""
    if not values:
        return 0.0
    return sum(values) / len(values)
