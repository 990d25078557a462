"""
Course Approval Workflow Services

Multi-level review pipeline: Faculty -> School -> Institution.

- SubmissionService: DRAFT/REJECTED/NEEDS_REVISION -> UNDER_REVIEW (level 1)
- DecisionEngine: reviewer verdicts, level advancement and terminal states
- ApproverResolver: reviewer lookup per level
- ApprovalRecordStore: approval record queries
- aggregate_scores: rubric score aggregation
"""

from .errors import (
    ApprovalWorkflowError,
    ValidationError,
    PermissionDeniedError,
    NotFoundError,
    ConflictError,
    InternalError,
)
from .scoring import aggregate_scores, validate_scores
from .membership import MembershipDirectory
from .approver_resolver import ApproverResolver, level_name
from .records import ApprovalRecordStore
from .state_machine import CourseApprovalStateMachine, parse_decision
from .notifications import NotificationService, AuditService
from .decision_engine import DecisionEngine
from .submission import SubmissionService
from .access import ApprovalAccessService

__all__ = [
    'ApprovalWorkflowError',
    'ValidationError',
    'PermissionDeniedError',
    'NotFoundError',
    'ConflictError',
    'InternalError',
    'aggregate_scores',
    'validate_scores',
    'MembershipDirectory',
    'ApproverResolver',
    'level_name',
    'ApprovalRecordStore',
    'CourseApprovalStateMachine',
    'parse_decision',
    'NotificationService',
    'AuditService',
    'DecisionEngine',
    'SubmissionService',
    'ApprovalAccessService',
]
