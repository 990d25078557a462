"""
Approval Record Store

Queries and constructors for CourseApprovalDB rows. Records are created
PENDING and active, decided exactly once, and superseded rather than deleted.
"""
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.orm import Session

from ...models.db_models import ApprovalStatus, CourseApprovalDB, CourseDB


class ApprovalRecordStore:
    """Persistence helpers for approval records."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get(self, approval_id: str, for_update: bool = False) -> Optional[CourseApprovalDB]:
        """
        Fetch one approval.

        With for_update the row is locked until commit and any copy already
        in the session is overwritten with the stored state.
        """
        query = self.db.query(CourseApprovalDB).filter(CourseApprovalDB.id == approval_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_active_for_course(self, course_id: str) -> Optional[CourseApprovalDB]:
        return self.db.query(CourseApprovalDB).filter(
            CourseApprovalDB.course_id == course_id,
            CourseApprovalDB.is_active.is_(True),
        ).first()

    def list_for_course(self, course_id: str) -> List[CourseApprovalDB]:
        return self.db.query(CourseApprovalDB).filter(
            CourseApprovalDB.course_id == course_id,
        ).order_by(
            CourseApprovalDB.review_cycle.asc(),
            CourseApprovalDB.level.asc(),
        ).all()

    def is_reviewer_of_course(self, user_id: str, course_id: str) -> bool:
        return self.db.query(CourseApprovalDB.id).filter(
            CourseApprovalDB.course_id == course_id,
            CourseApprovalDB.reviewer_id == user_id,
        ).first() is not None

    def list_for_reviewer(
        self,
        reviewer_id: str,
        status: Optional[ApprovalStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[CourseApprovalDB], int]:
        """
        Approvals assigned to a reviewer, oldest submission first.

        Soft-deleted courses are excluded. Returns (page_items, total).
        """
        query = self.db.query(CourseApprovalDB).join(
            CourseDB, CourseDB.id == CourseApprovalDB.course_id
        ).filter(
            CourseApprovalDB.reviewer_id == reviewer_id,
            CourseDB.is_deleted.is_(False),
        )
        if status is not None:
            query = query.filter(CourseApprovalDB.status == status)

        total = query.count()
        items = query.order_by(
            CourseApprovalDB.submitted_at.asc(),
            CourseApprovalDB.id.asc(),
        ).offset((page - 1) * limit).limit(limit).all()
        return items, total

    def create_pending(
        self,
        course: CourseDB,
        level: int,
        reviewer_id: str,
    ) -> CourseApprovalDB:
        """Add a new active PENDING record for the course's current review cycle."""
        approval = CourseApprovalDB(
            id=str(uuid4()),
            course_id=course.id,
            review_cycle=course.review_cycle,
            level=level,
            reviewer_id=reviewer_id,
            status=ApprovalStatus.PENDING,
            is_active=True,
            required_changes=[],
            suggested_changes=[],
            submitted_at=datetime.utcnow(),
        )
        self.db.add(approval)
        return approval
