"""
Course Approval State Machine

Deterministic transition table for course status plus the mapping from a
reviewer Decision to its effects on the approval record and the course.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ...models.db_models import ApprovalStatus, AuditAction, CourseStatus, Decision


# =============================================================================
# STATE CONFIGURATION
# =============================================================================

STATE_CONFIG = {
    CourseStatus.DRAFT: {
        "description": "Course being authored by its instructor",
        "allowed_transitions": [CourseStatus.UNDER_REVIEW],
        "instructor_editable": True,
    },
    CourseStatus.UNDER_REVIEW: {
        "description": "Awaiting a reviewer decision at the current level",
        "allowed_transitions": [
            CourseStatus.UNDER_REVIEW,  # advanced to the next level
            CourseStatus.APPROVED,
            CourseStatus.REJECTED,
            CourseStatus.NEEDS_REVISION,
        ],
        "instructor_editable": False,
    },
    CourseStatus.NEEDS_REVISION: {
        "description": "Reviewer asked for changes",
        "allowed_transitions": [CourseStatus.UNDER_REVIEW],
        "instructor_editable": True,
    },
    CourseStatus.REJECTED: {
        "description": "Reviewer rejected the course",
        "allowed_transitions": [CourseStatus.UNDER_REVIEW],
        "instructor_editable": True,
    },
    CourseStatus.APPROVED: {
        "description": "Approved at every level and published",
        "allowed_transitions": [],  # Terminal state
        "instructor_editable": False,
    },
}


@dataclass(frozen=True)
class DecisionOutcome:
    """What a decision does to the record, the course and the audit trail."""
    approval_status: ApprovalStatus
    terminal_status: CourseStatus
    audit_action: AuditAction
    verb: str


# One entry per Decision member; completeness is checked at import time
DECISION_OUTCOMES = {
    Decision.APPROVE: DecisionOutcome(
        approval_status=ApprovalStatus.APPROVED,
        terminal_status=CourseStatus.APPROVED,
        audit_action=AuditAction.APPROVE,
        verb="approved",
    ),
    Decision.REJECT: DecisionOutcome(
        approval_status=ApprovalStatus.REJECTED,
        terminal_status=CourseStatus.REJECTED,
        audit_action=AuditAction.REJECT,
        verb="rejected",
    ),
    Decision.REQUEST_REVISION: DecisionOutcome(
        approval_status=ApprovalStatus.NEEDS_REVISION,
        terminal_status=CourseStatus.NEEDS_REVISION,
        audit_action=AuditAction.REQUEST_REVISION,
        verb="returned for revision",
    ),
}

_missing = set(Decision) - set(DECISION_OUTCOMES)
if _missing:
    raise RuntimeError(f"DECISION_OUTCOMES is missing decisions: {sorted(d.value for d in _missing)}")


# Legacy decision literals accepted at the API boundary
DECISION_ALIASES = {
    "approve": Decision.APPROVE,
    "approved": Decision.APPROVE,
    "published": Decision.APPROVE,
    "reject": Decision.REJECT,
    "rejected": Decision.REJECT,
    "request_revision": Decision.REQUEST_REVISION,
    "needs_revision": Decision.REQUEST_REVISION,
}


def parse_decision(value: Any) -> Decision:
    """Normalize a decision literal. Raises ValueError when unknown."""
    if isinstance(value, Decision):
        return value
    decision = DECISION_ALIASES.get(str(value).strip().lower())
    if decision is None:
        raise ValueError(f"Unknown decision: {value!r}")
    return decision


# =============================================================================
# STATE MACHINE
# =============================================================================

class CourseApprovalStateMachine:
    """Transition rules for course status during review."""

    SUBMITTABLE_STATES = (
        CourseStatus.DRAFT,
        CourseStatus.REJECTED,
        CourseStatus.NEEDS_REVISION,
    )

    def get_state_config(self, state: CourseStatus) -> Dict[str, Any]:
        return STATE_CONFIG.get(state, {})

    def can_transition(
        self,
        from_state: CourseStatus,
        to_state: CourseStatus,
    ) -> Tuple[bool, str]:
        """
        Check if a course status transition is allowed.

        Returns (allowed, reason)
        """
        config = self.get_state_config(from_state)
        if to_state in config.get("allowed_transitions", []):
            return True, "Transition allowed"
        return False, f"Cannot transition from {from_state.value} to {to_state.value}"

    def can_submit(self, state: CourseStatus) -> bool:
        return state in self.SUBMITTABLE_STATES

    def is_terminal_state(self, state: CourseStatus) -> bool:
        return len(self.get_state_config(state).get("allowed_transitions", [])) == 0

    def get_next_states(self, state: CourseStatus) -> List[CourseStatus]:
        return self.get_state_config(state).get("allowed_transitions", [])

    def outcome_for(self, decision: Decision) -> DecisionOutcome:
        return DECISION_OUTCOMES[decision]

    def next_level(self, level: int, max_level: int) -> Optional[int]:
        """Level to advance to on approval, or None when the chain is complete."""
        if level + 1 <= max_level:
            return level + 1
        return None
