from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class GradeType(str, Enum):
    EXAM = "exam"
    QUIZ = "quiz"
    ASSIGNMENT = "assignment"
    PROJECT = "project"
    MIDTERM = "midterm"
    FINAL = "final"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class Semester(str, Enum):
    SPRING = "Spring"
    FALL = "Fall"


class ReportType(str, Enum):
    STUDENT_GRADES = "student_grades"
    ATTENDANCE_SUMMARY = "attendance_summary"
    CLASS_PERFORMANCE = "class_performance"


class EnrollmentState(str, Enum):
    """Lifecycle of a (student, class) pair in the join-by-code flow."""

    NOT_ENROLLED = "NOT_ENROLLED"
    PENDING = "PENDING"  # code validated, enrollment not yet written
    ENROLLED = "ENROLLED"
    LEFT = "LEFT"
