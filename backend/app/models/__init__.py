"""Course Approval Engine - Data Models"""
from .db_models import (
    # Enums
    UserStatus, MemberRole, CourseStatus, ApprovalStatus, Decision,
    NotificationType, AuditAction,
    # Organization
    UserDB, InstitutionDB, SchoolDB, FacultyDB, MemberDB,
    # Workflow
    CourseDB, CourseApprovalDB, ApprovalHistoryDB,
    # Sinks
    NotificationDB, AuditLogDB,
)
from .approval_models import ScoreCard, NotificationRequest, AuditRecord, WorkflowResult

__all__ = [
    "UserStatus", "MemberRole", "CourseStatus", "ApprovalStatus", "Decision",
    "NotificationType", "AuditAction",
    "UserDB", "InstitutionDB", "SchoolDB", "FacultyDB", "MemberDB",
    "CourseDB", "CourseApprovalDB", "ApprovalHistoryDB",
    "NotificationDB", "AuditLogDB",
    "ScoreCard", "NotificationRequest", "AuditRecord", "WorkflowResult",
]
