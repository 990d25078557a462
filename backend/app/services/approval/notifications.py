"""
Notification and Audit Sinks

Both sinks run after the workflow transaction has committed. Each write is
its own commit; a failure is logged and rolled back without touching the
already-committed course/approval state.
"""
import logging
from typing import Any, Dict, Iterable, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.approval_models import AuditRecord, NotificationRequest
from ...models.db_models import AuditAction, AuditLogDB, NotificationDB, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    """Notification collaborator writing in-app notifications."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def notify(
        self,
        recipient_id: str,
        issuer_id: Optional[str],
        type: NotificationType,
        title: str,
        message: str,
        course_id: Optional[str] = None,
    ) -> bool:
        notification = NotificationDB(
            id=str(uuid4()),
            recipient_id=recipient_id,
            issuer_id=issuer_id,
            type=type,
            title=title,
            message=message,
            course_id=course_id,
        )
        try:
            self.db.add(notification)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to deliver {type.value} notification to {recipient_id}: {e}")
            return False
        return True


class AuditService:
    """Audit collaborator writing the compliance trail."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def record_audit(
        self,
        action: AuditAction,
        entity_id: str,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        note: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
    ) -> bool:
        entry = AuditLogDB(
            id=str(uuid4()),
            action=action,
            entity_type="Course",
            entity_id=entity_id,
            user_id=user_id,
            previous_data=before,
            new_data=after,
            reason=note,
            event_metadata=metadata or {},
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to record {action.value} audit for course {entity_id}: {e}")
            return False
        return True


def dispatch_side_effects(
    notifier,
    auditor,
    notifications: Iterable[NotificationRequest],
    audit: Optional[AuditRecord],
) -> None:
    """
    Deliver queued notifications and the audit record.

    Never raises: the workflow state is already committed when this runs.
    """
    for request in notifications:
        try:
            notifier.notify(
                recipient_id=request.recipient_id,
                issuer_id=request.issuer_id,
                type=request.type,
                title=request.title,
                message=request.message,
                course_id=request.course_id,
            )
        except Exception:
            logger.exception(f"Notification sink failed for recipient {request.recipient_id}")

    if audit is None:
        return
    try:
        auditor.record_audit(
            action=audit.action,
            entity_id=audit.entity_id,
            before=audit.before,
            after=audit.after,
            note=audit.note,
            metadata=audit.metadata,
            user_id=audit.user_id,
        )
    except Exception:
        logger.exception(f"Audit sink failed for course {audit.entity_id}")
