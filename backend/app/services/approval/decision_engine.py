"""
Decision Engine

Applies a reviewer's verdict to a pending approval and moves the course
through the review chain.

TRANSACTION BOUNDARY:
- Every precondition (input validation, authorization, pending status, next
  reviewer resolution) is checked before the first mutation.
- Deciding the record, appending the history entry, creating the next-level
  record and updating the course commit together or not at all.
- Notifications and the audit record are delivered after commit and are
  best-effort; their failure never rolls back the decision.

CONCURRENCY:
- The approval row is read FOR UPDATE where the database supports it.
- CourseApprovalDB carries a version column, so a second session deciding
  the same record fails its flush and surfaces as ConflictError.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ...config import WorkflowSettings
from ...models.approval_models import AuditRecord, NotificationRequest, ScoreCard, WorkflowResult
from ...models.db_models import (
    ApprovalHistoryDB, ApprovalStatus, CourseApprovalDB, CourseDB, CourseStatus,
    Decision, NotificationType,
)
from .approver_resolver import ApproverResolver, level_name
from .errors import (
    ConflictError, InternalError, NotFoundError, PermissionDeniedError, ValidationError,
)
from .membership import MembershipDirectory
from .notifications import AuditService, NotificationService, dispatch_side_effects
from .records import ApprovalRecordStore
from .scoring import aggregate_scores, validate_scores
from .state_machine import CourseApprovalStateMachine, parse_decision

logger = logging.getLogger(__name__)


def course_snapshot(course: CourseDB) -> Dict[str, Any]:
    """Audit view of the workflow-owned course fields."""
    return {
        "status": course.status.value if course.status else None,
        "current_approval_level": course.current_approval_level,
        "review_cycle": course.review_cycle,
        "rejection_reason": course.rejection_reason,
        "revision_notes": course.revision_notes,
    }


class DecisionEngine:
    """
    State machine driver for reviewer decisions.

    Collaborators are injectable; by default everything is backed by the
    given session.
    """

    def __init__(
        self,
        db_session: Session,
        settings: Optional[WorkflowSettings] = None,
        resolver: Optional[ApproverResolver] = None,
        notifier=None,
        auditor=None,
    ):
        self.db = db_session
        self.settings = settings or WorkflowSettings.from_env()
        self.records = ApprovalRecordStore(db_session)
        self.resolver = resolver or ApproverResolver(MembershipDirectory(db_session))
        self.notifier = notifier or NotificationService(db_session)
        self.auditor = auditor or AuditService(db_session)
        self.state_machine = CourseApprovalStateMachine()

    # =========================================================================
    # DECIDE
    # =========================================================================

    def decide(
        self,
        approval_id: str,
        reviewer_id: str,
        decision,
        scores: Optional[ScoreCard] = None,
        comments: Optional[str] = None,
        required_changes: Optional[List[str]] = None,
        suggested_changes: Optional[List[str]] = None,
        revision_deadline: Optional[date] = None,
    ) -> WorkflowResult:
        """
        Record a decision on a pending approval.

        Raises:
            ValidationError: unknown decision or scores out of range
            NotFoundError: approval missing, course soft-deleted, or (when
                auto-approval is disabled) no next-level reviewer
            PermissionDeniedError: caller is not the assigned reviewer
            ConflictError: approval already decided
            InternalError: the transaction failed and was rolled back
        """
        try:
            decision = parse_decision(decision)
        except ValueError as e:
            raise ValidationError(str(e), details={"decision": "must be approve, reject or request_revision"})

        scores = scores or ScoreCard()
        validate_scores(scores.as_dict(), self.settings.score_min, self.settings.score_max)

        try:
            approval = self.records.get(approval_id, for_update=True)
        except StaleDataError:
            raise ConflictError("This approval has already been processed")
        if approval is None:
            raise NotFoundError("Course approval not found")

        course = approval.course
        if course is None or course.is_deleted:
            raise NotFoundError("Course approval not found")

        if approval.reviewer_id != reviewer_id:
            raise PermissionDeniedError("Only the assigned reviewer can make approval decisions")

        if approval.status != ApprovalStatus.PENDING or approval.reviewed_at is not None:
            raise ConflictError("This approval has already been processed")

        if not approval.is_active or course.status != CourseStatus.UNDER_REVIEW:
            raise ConflictError("This approval is no longer the active review for the course")

        outcome = self.state_machine.outcome_for(decision)
        overall_score = aggregate_scores(
            scores.content_score,
            scores.academic_rigor,
            scores.resource_score,
            scores.innovation_score,
        )

        # Resolve the next reviewer up front so a failure leaves nothing behind
        next_level, next_reviewer_id, auto_approved = self._plan_advance(course, approval, decision)

        if next_level is not None:
            new_status = CourseStatus.UNDER_REVIEW
        else:
            new_status = outcome.terminal_status

        allowed, reason = self.state_machine.can_transition(course.status, new_status)
        if not allowed:
            raise ConflictError(reason)

        before = course_snapshot(course)
        now = datetime.utcnow()
        next_approval = None

        try:
            # 1. Decide the current record; it is immutable from here on
            approval.status = outcome.approval_status
            approval.reviewed_at = now
            approval.is_active = False
            approval.content_score = scores.content_score
            approval.academic_rigor = scores.academic_rigor
            approval.resource_score = scores.resource_score
            approval.innovation_score = scores.innovation_score
            approval.overall_score = overall_score
            approval.comments = comments or ""
            approval.required_changes = list(required_changes or [])
            approval.suggested_changes = list(suggested_changes or [])
            self.db.flush()

            # 2. Append the history entry
            course.approval_history.append(ApprovalHistoryDB(
                id=str(uuid4()),
                course_id=course.id,
                approval_id=approval.id,
                sequence=len(course.approval_history) + 1,
                action=decision,
                resulting_status=new_status,
                actor_id=reviewer_id,
                level=approval.level,
                comments=comments,
                overall_score=overall_score,
                auto_approved=auto_approved,
                created_at=now,
            ))

            # 3. Advance or terminate
            if next_level is not None:
                next_approval = self.records.create_pending(course, next_level, next_reviewer_id)
                course.current_approval_level = next_level
            else:
                course.current_approval_level = 0
                if decision is Decision.REJECT:
                    course.rejection_reason = comments
                elif decision is Decision.REQUEST_REVISION:
                    course.revision_notes = comments
                    course.revision_deadline = revision_deadline
            course.status = new_status
            course.updated_at = now

            self.db.commit()
        except (StaleDataError, IntegrityError) as e:
            self.db.rollback()
            logger.info(f"Concurrent decision on approval {approval_id} lost the race: {e}")
            raise ConflictError("This approval has already been processed")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Decision on approval {approval_id} failed, transaction rolled back: {e}")
            raise InternalError("Failed to record the approval decision")

        logger.info(
            f"Course {course.id} level {approval.level} {decision.value} by {reviewer_id}: "
            f"status={new_status.value} level={course.current_approval_level}"
        )

        result = WorkflowResult(
            course=course,
            approval=approval,
            next_approval=next_approval,
            auto_approved=auto_approved,
        )
        result.notifications = self._build_notifications(result, decision, reviewer_id, comments)
        result.audit = AuditRecord(
            action=outcome.audit_action,
            entity_id=course.id,
            user_id=reviewer_id,
            before=before,
            after=course_snapshot(course),
            note=comments,
            metadata={
                "approval_id": approval.id,
                "level": approval.level,
                "decision": decision.value,
                "overall_score": overall_score,
                "next_approval_id": next_approval.id if next_approval else None,
                "auto_approved": auto_approved,
            },
        )

        dispatch_side_effects(self.notifier, self.auditor, result.notifications, result.audit)
        return result

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _plan_advance(self, course: CourseDB, approval: CourseApprovalDB, decision: Decision):
        """
        Work out where an approval leads.

        Returns (next_level, next_reviewer_id, auto_approved). next_level is
        None when the workflow terminates.
        """
        if decision is not Decision.APPROVE:
            return None, None, False

        candidate = self.state_machine.next_level(approval.level, self.settings.max_level)
        if candidate is None:
            return None, None, False

        school = course.faculty.school
        reviewer_id = self.resolver.resolve(
            candidate,
            institution_id=school.institution_id,
            faculty_id=course.faculty_id,
            school_id=school.id,
        )
        if reviewer_id is not None:
            return candidate, reviewer_id, False

        if not self.settings.auto_approve_on_missing_reviewer:
            raise NotFoundError(
                f"No {level_name(candidate)} reviewer available for this course. "
                "Manual assignment is required.",
                details={"level": candidate},
            )

        logger.warning(
            f"No {level_name(candidate)} reviewer for course {course.id}; "
            f"auto-approving after level {approval.level}"
        )
        return None, None, True

    def _build_notifications(
        self,
        result: WorkflowResult,
        decision: Decision,
        reviewer_id: str,
        comments: Optional[str],
    ) -> List[NotificationRequest]:
        course = result.course

        if result.next_approval is not None:
            level = result.next_approval.level
            return [NotificationRequest(
                recipient_id=result.next_approval.reviewer_id,
                issuer_id=reviewer_id,
                type=NotificationType.COURSE_APPROVAL_REQUEST,
                title="Course approval requested",
                message=f'"{course.title}" is awaiting your {level_name(level)} review',
                course_id=course.id,
            )]

        verb = self.state_machine.outcome_for(decision).verb
        message = f'Your course "{course.title}" has been {verb}'
        if decision is not Decision.APPROVE and comments:
            message = f"{message}: {comments}"
        return [NotificationRequest(
            recipient_id=course.instructor_id,
            issuer_id=reviewer_id,
            type=NotificationType.COURSE_APPROVAL_RESULT,
            title=f"Course {verb}",
            message=message,
            course_id=course.id,
        )]
