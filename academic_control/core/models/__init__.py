from academic_control.auth.models import Account, Profile
from academic_control.core.models.attendance import Attendance
from academic_control.core.models.class_model import SchoolClass
from academic_control.core.models.enrollment import Enrollment
from academic_control.core.models.grade import Grade
from academic_control.core.models.report import Report

__all__ = [
    "Account",
    "Attendance",
    "Enrollment",
    "Grade",
    "Profile",
    "Report",
    "SchoolClass",
]
