"""
Course Approval Engine - FastAPI Application

Main entry point for the course approval backend.

Architecture:
- Submission → level-1 ApprovalRecord, course UNDER_REVIEW
- DecisionEngine → advance level / APPROVED / REJECTED / NEEDS_REVISION
- ApproverResolver → Faculty → School → Institution reviewers
- Notification / audit sinks → written after the workflow commit
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import LOG_LEVEL
from .routers import course_approvals_router
from .database import init_db

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Course Approval Engine",
    description="""
    Course Approval Engine - Multi-level Course Review Workflow

    Moves course submissions through a chain of reviewers and records every
    decision in an append-only approval history.

    ## Review Chain
    1. **Faculty**: first-line institution administrator
    2. **School**: school administrator of the course's school
    3. **Institution**: organization-wide institution administrator

    ## Key Principles
    - A decided approval record is immutable
    - Exactly one active approval per course under review
    - Record update, history entry, next-level record and course update
      commit together
    - Notifications and audit records are best-effort, after commit
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400 with field detail."""
    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "error": "validation_error",
                "message": "Invalid request",
                "details": jsonable_encoder(exc.errors()),
            }
        },
    )


# Include routers
app.include_router(course_approvals_router)


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Course Approval Engine",
        "version": "1.0.0",
        "description": "Multi-level course review workflow",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# For running with: python -m app.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
