"""
Course Approval API Routes

Thin HTTP wrapper around the approval workflow services.
Handles submission, reviewer queues, single-approval reads, decisions and
course approval history.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import WorkflowSettings, get_settings
from ..database import get_db
from ..models.approval_models import ScoreCard
from ..models.db_models import ApprovalHistoryDB, ApprovalStatus, CourseApprovalDB, CourseDB, UserDB
from ..services.approval import (
    ApprovalAccessService,
    ApprovalRecordStore,
    ApprovalWorkflowError,
    DecisionEngine,
    SubmissionService,
    level_name,
)


router = APIRouter(prefix="/course-approvals", tags=["course-approvals"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class SubmitCourseRequest(BaseModel):
    """Request to submit a course for approval."""
    model_config = ConfigDict(populate_by_name=True)

    course_id: str = Field(..., alias="courseId", min_length=1, description="Course to submit")


class ReviewDecisionRequest(BaseModel):
    """Reviewer decision on a pending approval."""
    model_config = ConfigDict(populate_by_name=True)

    decision: str = Field(..., description="approve | reject | request_revision")
    comments: Optional[str] = Field(None, description="Reviewer comments")
    content_score: Optional[int] = Field(None, alias="contentScore")
    academic_rigor: Optional[int] = Field(None, alias="academicRigor")
    resource_score: Optional[int] = Field(None, alias="resourceScore")
    innovation_score: Optional[int] = Field(None, alias="innovationScore")
    required_changes: Optional[List[str]] = Field(None, alias="requiredChanges")
    suggested_changes: Optional[List[str]] = Field(None, alias="suggestedChanges")
    revision_deadline: Optional[date] = Field(None, alias="revisionDeadline")


# =============================================================================
# SERIALIZERS
# =============================================================================

def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_course(course: CourseDB) -> dict:
    return {
        "id": course.id,
        "title": course.title,
        "code": course.code,
        "instructorId": course.instructor_id,
        "facultyId": course.faculty_id,
        "status": course.status.value,
        "currentApprovalLevel": course.current_approval_level,
        "reviewCycle": course.review_cycle,
        "rejectionReason": course.rejection_reason,
        "revisionNotes": course.revision_notes,
        "revisionDeadline": _iso(course.revision_deadline),
    }


def serialize_approval(approval: CourseApprovalDB) -> dict:
    return {
        "id": approval.id,
        "courseId": approval.course_id,
        "reviewCycle": approval.review_cycle,
        "approvalLevel": approval.level,
        "levelName": level_name(approval.level),
        "reviewerId": approval.reviewer_id,
        "status": approval.status.value,
        "isActive": approval.is_active,
        "contentScore": approval.content_score,
        "academicRigor": approval.academic_rigor,
        "resourceScore": approval.resource_score,
        "innovationScore": approval.innovation_score,
        "overallScore": approval.overall_score,
        "comments": approval.comments,
        "requiredChanges": approval.required_changes or [],
        "suggestedChanges": approval.suggested_changes or [],
        "submittedAt": _iso(approval.submitted_at),
        "reviewedAt": _iso(approval.reviewed_at),
        "course": serialize_course(approval.course) if approval.course else None,
    }


def serialize_history_entry(entry: ApprovalHistoryDB) -> dict:
    return {
        "sequence": entry.sequence,
        "action": entry.action.value,
        "resultingStatus": entry.resulting_status.value,
        "actorId": entry.actor_id,
        "level": entry.level,
        "comments": entry.comments,
        "score": entry.overall_score,
        "autoApproved": entry.auto_approved,
        "timestamp": _iso(entry.created_at),
    }


def _raise_http(error: ApprovalWorkflowError):
    raise HTTPException(status_code=error.status_code, detail=error.to_dict())


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=dict)
async def list_course_approvals(
    status: Optional[ApprovalStatus] = Query(None, description="Filter by approval status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: UserDB = Depends(get_current_user),
):
    """
    Approvals assigned to the current user as reviewer.

    Oldest submission first, paginated.
    """
    approvals, total = ApprovalRecordStore(db).list_for_reviewer(
        reviewer_id=current_user.id,
        status=status,
        page=page,
        limit=limit,
    )
    return {
        "approvals": [serialize_approval(a) for a in approvals],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


@router.post("", response_model=dict, status_code=201)
async def submit_course_for_approval(
    request: SubmitCourseRequest,
    db: Session = Depends(get_db),
    current_user: UserDB = Depends(get_current_user),
):
    """
    Submit a course for approval.

    Creates the level-1 approval and moves the course to UNDER_REVIEW.
    """
    try:
        result = SubmissionService(db).submit_for_approval(request.course_id, current_user.id)
    except ApprovalWorkflowError as e:
        _raise_http(e)

    return {
        "message": "Course submitted for approval successfully",
        "approval": serialize_approval(result.approval),
        "course": serialize_course(result.course),
    }


@router.get("/courses/{course_id}/history", response_model=dict)
async def get_course_approval_history(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: UserDB = Depends(get_current_user),
):
    """Ordered approval history of a course."""
    try:
        entries = ApprovalAccessService(db).get_visible_history(course_id, current_user.id)
    except ApprovalWorkflowError as e:
        _raise_http(e)

    return {
        "courseId": course_id,
        "history": [serialize_history_entry(entry) for entry in entries],
    }


@router.get("/{approval_id}", response_model=dict)
async def get_course_approval(
    approval_id: str,
    db: Session = Depends(get_db),
    current_user: UserDB = Depends(get_current_user),
):
    """
    Get a specific course approval.

    Visible to the assigned reviewer, the course instructor and
    institution admins.
    """
    try:
        approval = ApprovalAccessService(db).get_visible_approval(approval_id, current_user.id)
    except ApprovalWorkflowError as e:
        _raise_http(e)

    return {"approval": serialize_approval(approval)}


@router.patch("/{approval_id}", response_model=dict)
async def decide_course_approval(
    approval_id: str,
    request: ReviewDecisionRequest,
    db: Session = Depends(get_db),
    current_user: UserDB = Depends(get_current_user),
    settings: WorkflowSettings = Depends(get_settings),
):
    """
    Make an approval decision.

    Only the assigned reviewer may decide, and only once.
    """
    engine = DecisionEngine(db, settings=settings)
    try:
        result = engine.decide(
            approval_id=approval_id,
            reviewer_id=current_user.id,
            decision=request.decision,
            scores=ScoreCard(
                content_score=request.content_score,
                academic_rigor=request.academic_rigor,
                resource_score=request.resource_score,
                innovation_score=request.innovation_score,
            ),
            comments=request.comments,
            required_changes=request.required_changes,
            suggested_changes=request.suggested_changes,
            revision_deadline=request.revision_deadline,
        )
    except ApprovalWorkflowError as e:
        _raise_http(e)

    return {
        "message": f"Course {result.course.status.value} processed successfully",
        "approval": serialize_approval(result.approval),
        "nextApproval": serialize_approval(result.next_approval) if result.next_approval else None,
        "course": serialize_course(result.course),
        "autoApproved": result.auto_approved,
    }
