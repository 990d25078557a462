"""
Read access rules for approvals and course history.

A user can see an approval if they are its reviewer, the course instructor,
or an active admin/owner of the institution that owns the course.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from ...models.db_models import ApprovalHistoryDB, CourseApprovalDB, CourseDB, MemberRole
from .errors import NotFoundError, PermissionDeniedError
from .membership import MembershipDirectory
from .records import ApprovalRecordStore


ADMIN_ROLES = (MemberRole.OWNER, MemberRole.INSTITUTION_ADMIN)


class ApprovalAccessService:
    """Visibility checks and read helpers used by the HTTP layer."""

    def __init__(self, db_session: Session, membership: Optional[MembershipDirectory] = None):
        self.db = db_session
        self.membership = membership or MembershipDirectory(db_session)
        self.records = ApprovalRecordStore(db_session)

    def _is_institution_admin(self, user_id: str, course: CourseDB) -> bool:
        institution_id = course.faculty.school.institution_id
        return self.membership.has_role(user_id, institution_id, ADMIN_ROLES)

    def get_visible_approval(self, approval_id: str, user_id: str) -> CourseApprovalDB:
        approval = self.records.get(approval_id)
        if approval is None or approval.course is None or approval.course.is_deleted:
            raise NotFoundError("Course approval not found")

        course = approval.course
        if approval.reviewer_id == user_id or course.instructor_id == user_id:
            return approval
        if self._is_institution_admin(user_id, course):
            return approval
        raise PermissionDeniedError("Access denied")

    def get_visible_history(self, course_id: str, user_id: str) -> List[ApprovalHistoryDB]:
        course = self.db.query(CourseDB).filter(
            CourseDB.id == course_id,
            CourseDB.is_deleted.is_(False),
        ).first()
        if course is None:
            raise NotFoundError("Course not found")

        allowed = (
            course.instructor_id == user_id
            or self.records.is_reviewer_of_course(user_id, course.id)
            or self._is_institution_admin(user_id, course)
        )
        if not allowed:
            raise PermissionDeniedError("Access denied")
        return list(course.approval_history)
