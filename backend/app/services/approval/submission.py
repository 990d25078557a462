"""
Submission Initiator

Moves a course from DRAFT / REJECTED / NEEDS_REVISION into review by
creating its level-1 approval record for a new review cycle.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.approval_models import AuditRecord, NotificationRequest, WorkflowResult
from ...models.db_models import AuditAction, CourseDB, CourseStatus, MemberRole, NotificationType
from .approver_resolver import ApproverResolver, level_name
from .decision_engine import course_snapshot
from .errors import ConflictError, InternalError, NotFoundError, PermissionDeniedError, ValidationError
from .membership import MembershipDirectory
from .notifications import AuditService, NotificationService, dispatch_side_effects
from .records import ApprovalRecordStore
from .state_machine import CourseApprovalStateMachine

logger = logging.getLogger(__name__)

FIRST_LEVEL = 1


class SubmissionService:
    """Submit courses for approval."""

    def __init__(
        self,
        db_session: Session,
        membership: Optional[MembershipDirectory] = None,
        resolver: Optional[ApproverResolver] = None,
        notifier=None,
        auditor=None,
    ):
        self.db = db_session
        self.membership = membership or MembershipDirectory(db_session)
        self.resolver = resolver or ApproverResolver(self.membership)
        self.records = ApprovalRecordStore(db_session)
        self.notifier = notifier or NotificationService(db_session)
        self.auditor = auditor or AuditService(db_session)
        self.state_machine = CourseApprovalStateMachine()

    def submit_for_approval(self, course_id: str, submitting_user_id: str) -> WorkflowResult:
        """
        Submit a course for its first-level review.

        Raises:
            NotFoundError: course missing or soft-deleted, or no eligible reviewer
            PermissionDeniedError: submitter is not the instructor or not an
                active member of the course's faculty
            ConflictError: the course already has an active review
            ValidationError: the course status does not allow submission
            InternalError: the transaction failed and was rolled back
        """
        course = self.db.query(CourseDB).filter(
            CourseDB.id == course_id,
            CourseDB.is_deleted.is_(False),
        ).with_for_update().first()
        if course is None:
            raise NotFoundError("Course not found")

        school = course.faculty.school
        institution_id = school.institution_id

        if course.instructor_id != submitting_user_id:
            raise PermissionDeniedError("Only the course instructor can submit this course for approval")

        if not self.membership.has_role(
            submitting_user_id,
            institution_id,
            MemberRole.FACULTY_MEMBER,
            faculty_id=course.faculty_id,
        ):
            raise PermissionDeniedError("You must be an active member of the course's faculty to submit it")

        if self.records.get_active_for_course(course.id) is not None:
            raise ConflictError("Course is already under review")

        if not self.state_machine.can_submit(course.status):
            raise ValidationError(
                "Only draft, rejected, or courses needing revision can be submitted for approval",
                details={"status": course.status.value},
            )

        reviewer_id = self.resolver.resolve_submission_reviewer(institution_id)
        if reviewer_id is None:
            raise NotFoundError(
                "No institution administrator available to review this course. "
                "Please contact your institution administrator."
            )

        before = course_snapshot(course)

        try:
            course.review_cycle = (course.review_cycle or 0) + 1
            approval = self.records.create_pending(course, FIRST_LEVEL, reviewer_id)
            course.status = CourseStatus.UNDER_REVIEW
            course.current_approval_level = FIRST_LEVEL
            course.revision_deadline = None
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Concurrent submission of course {course_id} rejected: {e}")
            raise ConflictError("Course is already under review")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Submission of course {course_id} failed, transaction rolled back: {e}")
            raise InternalError("Failed to submit the course for approval")

        logger.info(
            f"Course {course.id} submitted by {submitting_user_id}, "
            f"cycle {course.review_cycle} assigned to {reviewer_id}"
        )

        result = WorkflowResult(course=course, approval=approval)
        result.notifications = [NotificationRequest(
            recipient_id=reviewer_id,
            issuer_id=submitting_user_id,
            type=NotificationType.COURSE_APPROVAL_REQUEST,
            title="Course approval requested",
            message=f'"{course.title}" is awaiting your {level_name(FIRST_LEVEL)} review',
            course_id=course.id,
        )]
        result.audit = AuditRecord(
            action=AuditAction.SUBMIT_APPROVAL,
            entity_id=course.id,
            user_id=submitting_user_id,
            before=before,
            after=course_snapshot(course),
            metadata={
                "approval_id": approval.id,
                "reviewer_id": reviewer_id,
                "review_cycle": course.review_cycle,
            },
        )

        dispatch_side_effects(self.notifier, self.auditor, result.notifications, result.audit)
        return result
