"""Course Approval Engine - API Routers"""
from .course_approvals import router as course_approvals_router

__all__ = [
    "course_approvals_router",
]
