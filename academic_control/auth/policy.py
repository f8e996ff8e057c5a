"""
Row-level authorization.

Every (resource, action) pair has its own tuple of rules; a request is allowed
when any rule holds and denied otherwise. Rules are pure predicates over the
acting user and a PolicyContext describing the target row. The actor's role
is resolved before evaluation (see auth.dependencies.get_current_user) and is
never looked up from inside a rule.

Listing endpoints use the readable_*_filter helpers, which encode the same
select rules as SQL predicates.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, exists, or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.models import Profile
from academic_control.auth.schemas import CurrentUser
from academic_control.core.config import settings
from academic_control.core.enums import Role
from academic_control.core.exceptions import Forbidden
from academic_control.core.models import Attendance, Enrollment, Grade, Report, SchoolClass

logger = logging.getLogger(__name__)


class Action(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class Resource(str, Enum):
    PROFILE = "profile"
    CLASS = "class"
    ENROLLMENT = "enrollment"
    GRADE = "grade"
    ATTENDANCE = "attendance"
    REPORT = "report"


@dataclass
class PolicyContext:
    """Facts about the target row. Unset fields never satisfy a rule."""

    profile_id: Optional[UUID] = None
    profile_role: Optional[str] = None
    class_teacher_id: Optional[UUID] = None
    class_is_active: Optional[bool] = None
    # Enrolled student, or the student a report is about
    student_id: Optional[UUID] = None
    generated_by: Optional[UUID] = None
    # Target student is enrolled in one of the actor's classes
    taught_by_actor: bool = False
    open_directory: bool = False


Rule = Callable[[CurrentUser, PolicyContext], bool]


# ----- Rules -----
def is_admin(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return actor.role == Role.ADMIN


def is_self(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return ctx.profile_id is not None and ctx.profile_id == actor.id


def registers_self_as_student(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return is_self(actor, ctx) and ctx.profile_role == Role.STUDENT.value


def teaches_target_student(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return actor.role == Role.TEACHER and ctx.profile_role == Role.STUDENT.value and ctx.taught_by_actor


def directory_is_open(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return ctx.open_directory


def owns_class(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return ctx.class_teacher_id is not None and ctx.class_teacher_id == actor.id


def class_is_active(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return ctx.class_is_active is True


def teacher_creates_own_class(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return actor.role == Role.TEACHER and owns_class(actor, ctx)


def is_enrolled_student(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return ctx.student_id is not None and ctx.student_id == actor.id


def student_joins_active_class(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return actor.role == Role.STUDENT and is_enrolled_student(actor, ctx) and class_is_active(actor, ctx)


def teacher_owns_enrollment_class(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return actor.role == Role.TEACHER and owns_class(actor, ctx)


def is_report_author(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return ctx.generated_by is not None and ctx.generated_by == actor.id


def staff_authors_report(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return actor.role == Role.TEACHER and is_report_author(actor, ctx)


def student_authors_own_report(actor: CurrentUser, ctx: PolicyContext) -> bool:
    return actor.role == Role.STUDENT and is_report_author(actor, ctx) and is_enrolled_student(actor, ctx)


_LEDGER_READ: Tuple[Rule, ...] = (is_enrolled_student, teacher_owns_enrollment_class, is_admin)
_LEDGER_WRITE: Tuple[Rule, ...] = (teacher_owns_enrollment_class,)

RULES: Dict[Tuple[Resource, Action], Tuple[Rule, ...]] = {
    (Resource.PROFILE, Action.SELECT): (is_self, is_admin, teaches_target_student, directory_is_open),
    (Resource.PROFILE, Action.INSERT): (registers_self_as_student, is_admin),
    (Resource.PROFILE, Action.UPDATE): (is_self, is_admin),
    (Resource.PROFILE, Action.DELETE): (is_admin,),
    (Resource.CLASS, Action.SELECT): (owns_class, is_admin, class_is_active),
    (Resource.CLASS, Action.INSERT): (teacher_creates_own_class, is_admin),
    (Resource.CLASS, Action.UPDATE): (owns_class, is_admin),
    (Resource.CLASS, Action.DELETE): (owns_class, is_admin),
    (Resource.ENROLLMENT, Action.SELECT): (is_enrolled_student, teacher_owns_enrollment_class, is_admin),
    (Resource.ENROLLMENT, Action.INSERT): (student_joins_active_class, is_admin),
    (Resource.ENROLLMENT, Action.DELETE): (is_enrolled_student, teacher_owns_enrollment_class, is_admin),
    (Resource.GRADE, Action.SELECT): _LEDGER_READ,
    (Resource.GRADE, Action.INSERT): _LEDGER_WRITE,
    (Resource.GRADE, Action.UPDATE): _LEDGER_WRITE,
    (Resource.GRADE, Action.DELETE): _LEDGER_WRITE,
    (Resource.ATTENDANCE, Action.SELECT): _LEDGER_READ,
    (Resource.ATTENDANCE, Action.INSERT): _LEDGER_WRITE,
    (Resource.ATTENDANCE, Action.UPDATE): _LEDGER_WRITE,
    (Resource.ATTENDANCE, Action.DELETE): _LEDGER_WRITE,
    (Resource.REPORT, Action.SELECT): (is_report_author, is_enrolled_student, is_admin),
    (Resource.REPORT, Action.INSERT): (is_admin, staff_authors_report, student_authors_own_report),
    (Resource.REPORT, Action.DELETE): (is_report_author, is_admin),
}


def evaluate(actor: CurrentUser, resource: Resource, action: Action, ctx: PolicyContext) -> bool:
    """OR across the registered rules, stopping at the first match. No rules means deny."""
    return any(rule(actor, ctx) for rule in RULES.get((resource, action), ()))


class PolicyEngine:
    """Builds a PolicyContext for a target row from the injected session and evaluates RULES."""

    def __init__(self, db: AsyncSession, open_profile_directory: Optional[bool] = None) -> None:
        self.db = db
        if open_profile_directory is None:
            open_profile_directory = settings.open_profile_directory
        self.open_profile_directory = open_profile_directory

    async def _teacher_has_student(self, teacher_id: UUID, student_id: UUID) -> bool:
        stmt = select(
            exists().where(
                Enrollment.student_id == student_id,
                Enrollment.class_id == SchoolClass.id,
                SchoolClass.teacher_id == teacher_id,
            )
        )
        return bool((await self.db.execute(stmt)).scalar())

    async def class_context(self, class_id: UUID) -> PolicyContext:
        school_class = await self.db.get(SchoolClass, class_id)
        if school_class is None:
            return PolicyContext()
        return PolicyContext(class_teacher_id=school_class.teacher_id, class_is_active=school_class.is_active)

    async def enrollment_context(self, enrollment: Enrollment) -> PolicyContext:
        ctx = await self.class_context(enrollment.class_id)
        ctx.student_id = enrollment.student_id
        return ctx

    async def context_for(self, actor: CurrentUser, action: Action, target) -> PolicyContext:
        if isinstance(target, Profile):
            ctx = PolicyContext(
                profile_id=target.id,
                profile_role=target.role,
                open_directory=self.open_profile_directory,
            )
            # Only the teacher profile-read rule needs the roster lookup
            if action == Action.SELECT and actor.role == Role.TEACHER and target.role == Role.STUDENT.value:
                ctx.taught_by_actor = await self._teacher_has_student(actor.id, target.id)
            return ctx
        if isinstance(target, SchoolClass):
            return PolicyContext(class_teacher_id=target.teacher_id, class_is_active=target.is_active)
        if isinstance(target, Enrollment):
            return await self.enrollment_context(target)
        if isinstance(target, (Grade, Attendance)):
            enrollment = await self.db.get(Enrollment, target.enrollment_id)
            if enrollment is None:
                return PolicyContext()
            return await self.enrollment_context(enrollment)
        if isinstance(target, Report):
            return PolicyContext(generated_by=target.generated_by, student_id=target.student_id)
        raise TypeError(f"No policy context for {type(target).__name__}")

    def check(self, actor: CurrentUser, resource: Resource, action: Action, ctx: PolicyContext) -> None:
        if not evaluate(actor, resource, action, ctx):
            logger.debug(
                "Denied %s on %s for user %s (role=%s)",
                action.value,
                resource.value,
                actor.id,
                actor.role.value,
            )
            raise Forbidden()

    async def can(self, actor: CurrentUser, resource: Resource, action: Action, target) -> bool:
        ctx = await self.context_for(actor, action, target)
        return evaluate(actor, resource, action, ctx)

    async def authorize(self, actor: CurrentUser, resource: Resource, action: Action, target) -> None:
        """Raise Forbidden unless some rule for (resource, action) allows actor on target."""
        ctx = await self.context_for(actor, action, target)
        self.check(actor, resource, action, ctx)


# ----- Select filters for list endpoints -----
def _owned_class_ids(actor: CurrentUser):
    return select(SchoolClass.id).where(SchoolClass.teacher_id == actor.id)


def readable_profile_filter(actor: CurrentUser, open_directory: Optional[bool] = None):
    if open_directory is None:
        open_directory = settings.open_profile_directory
    if actor.role == Role.ADMIN or open_directory:
        return true()
    if actor.role == Role.TEACHER:
        taught = (
            select(Enrollment.student_id)
            .join(SchoolClass, SchoolClass.id == Enrollment.class_id)
            .where(SchoolClass.teacher_id == actor.id)
        )
        return or_(
            Profile.id == actor.id,
            and_(Profile.role == Role.STUDENT.value, Profile.id.in_(taught)),
        )
    return Profile.id == actor.id


def readable_class_filter(actor: CurrentUser):
    if actor.role == Role.ADMIN:
        return true()
    return or_(SchoolClass.teacher_id == actor.id, SchoolClass.is_active.is_(True))


def readable_enrollment_filter(actor: CurrentUser):
    if actor.role == Role.ADMIN:
        return true()
    if actor.role == Role.TEACHER:
        return or_(Enrollment.student_id == actor.id, Enrollment.class_id.in_(_owned_class_ids(actor)))
    return Enrollment.student_id == actor.id


def readable_report_filter(actor: CurrentUser):
    if actor.role == Role.ADMIN:
        return true()
    return or_(Report.generated_by == actor.id, Report.student_id == actor.id)
