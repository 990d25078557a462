"""
Approval workflow error taxonomy.

Every failure carries a stable kind, an HTTP status and a human-readable
message. Services raise these before mutating anything; routers translate
them into HTTPException responses.
"""
from typing import Any, Dict, Optional


class ApprovalWorkflowError(Exception):
    """Base class for all approval workflow failures."""

    kind = "approval_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload = {"error": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(ApprovalWorkflowError):
    """Malformed input, e.g. scores out of the configured range."""
    kind = "validation_error"
    status_code = 400


class PermissionDeniedError(ApprovalWorkflowError):
    """Caller is not allowed to perform the action (wrong reviewer, wrong role)."""
    kind = "permission_denied"
    status_code = 403


class NotFoundError(ApprovalWorkflowError):
    """Missing course, approval or reviewer."""
    kind = "not_found"
    status_code = 404


class ConflictError(ApprovalWorkflowError):
    """Already-decided approval or a duplicate pending review."""
    kind = "conflict"
    status_code = 409


class InternalError(ApprovalWorkflowError):
    """Store or transaction failure. No partial mutation survives."""
    kind = "internal_error"
    status_code = 500
