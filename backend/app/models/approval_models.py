"""
Course Approval Engine - Workflow Value Objects

Plain dataclasses passed between the workflow services. Notification and
audit payloads are built inside the transaction and dispatched after commit.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .db_models import AuditAction, CourseApprovalDB, CourseDB, NotificationType


@dataclass(frozen=True)
class ScoreCard:
    """Rubric scores supplied with a review decision."""
    content_score: Optional[int] = None
    academic_rigor: Optional[int] = None
    resource_score: Optional[int] = None
    innovation_score: Optional[int] = None

    def as_dict(self) -> Dict[str, Optional[int]]:
        return asdict(self)


@dataclass
class NotificationRequest:
    recipient_id: str
    issuer_id: Optional[str]
    type: NotificationType
    title: str
    message: str
    course_id: Optional[str] = None


@dataclass
class AuditRecord:
    action: AuditAction
    entity_id: str
    user_id: Optional[str] = None
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    note: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WorkflowResult:
    """
    Outcome of a submission or decision.

    approval is the record that was created (submission) or decided
    (decision); next_approval is set when the course advanced a level.
    """
    course: CourseDB
    approval: CourseApprovalDB
    next_approval: Optional[CourseApprovalDB] = None
    auto_approved: bool = False
    notifications: List[NotificationRequest] = field(default_factory=list)
    audit: Optional[AuditRecord] = None
