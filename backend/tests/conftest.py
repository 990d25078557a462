"""
Shared fixtures for the course approval test suite.

Workflow tests run against an in-memory SQLite database so transactions,
constraints and rollbacks behave like the real store.
"""
import os

# The app module creates its engine at import time; keep it off PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite://")

from dataclasses import dataclass
from typing import Optional
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import WorkflowSettings
from app.database import Base
from app.models.db_models import (
    CourseDB, CourseStatus, FacultyDB, InstitutionDB, MemberDB, MemberRole,
    SchoolDB, UserDB, UserStatus,
)


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def settings() -> WorkflowSettings:
    return WorkflowSettings(max_level=3, score_min=0, score_max=100, auto_approve_on_missing_reviewer=True)


@pytest.fixture
def notifier():
    """Notification sink double."""
    return MagicMock()


@pytest.fixture
def auditor():
    """Audit sink double."""
    return MagicMock()


# =============================================================================
# ORGANIZATION BUILDERS
# =============================================================================

def make_user(db: Session, label: str, status: UserStatus = UserStatus.ACTIVE) -> UserDB:
    user = UserDB(
        id=str(uuid4()),
        email=f"{label}-{uuid4().hex[:8]}@uni.example",
        name=label,
        status=status,
    )
    db.add(user)
    return user


def add_member(
    db: Session,
    user: UserDB,
    institution_id: str,
    role: MemberRole,
    school_id: Optional[str] = None,
    faculty_id: Optional[str] = None,
    is_active: bool = True,
) -> MemberDB:
    member = MemberDB(
        id=str(uuid4()),
        user_id=user.id,
        institution_id=institution_id,
        role=role,
        school_id=school_id,
        faculty_id=faculty_id,
        is_active=is_active,
    )
    db.add(member)
    return member


@dataclass
class ReviewChain:
    institution: InstitutionDB
    school: SchoolDB
    faculty: FacultyDB
    instructor: UserDB
    institution_admin: UserDB
    school_admin: Optional[UserDB]
    course: CourseDB
    outsider: UserDB


def build_review_chain(
    db: Session,
    with_school_admin: bool = True,
    course_status: CourseStatus = CourseStatus.DRAFT,
) -> ReviewChain:
    """Institution → school → faculty with one user per review role and a course."""
    institution = InstitutionDB(id=str(uuid4()), name="Northfield University", slug=f"nf-{uuid4().hex[:6]}")
    school = SchoolDB(id=str(uuid4()), institution_id=institution.id, name="School of Sciences")
    faculty = FacultyDB(id=str(uuid4()), school_id=school.id, name="Faculty of Computing")
    db.add_all([institution, school, faculty])

    instructor = make_user(db, "instructor")
    add_member(db, instructor, institution.id, MemberRole.FACULTY_MEMBER, faculty_id=faculty.id)

    institution_admin = make_user(db, "institution-admin")
    add_member(db, institution_admin, institution.id, MemberRole.INSTITUTION_ADMIN)

    school_admin = None
    if with_school_admin:
        school_admin = make_user(db, "school-admin")
        add_member(db, school_admin, institution.id, MemberRole.SCHOOL_ADMIN, school_id=school.id)

    outsider = make_user(db, "outsider")

    course = CourseDB(
        id=str(uuid4()),
        title="Introduction to Algorithms",
        code="CS101",
        instructor_id=instructor.id,
        faculty_id=faculty.id,
        status=course_status,
    )
    db.add(course)
    db.commit()

    return ReviewChain(
        institution=institution,
        school=school,
        faculty=faculty,
        instructor=instructor,
        institution_admin=institution_admin,
        school_admin=school_admin,
        course=course,
        outsider=outsider,
    )


@pytest.fixture
def chain(db) -> ReviewChain:
    return build_review_chain(db)


@pytest.fixture
def chain_without_school_admin(db) -> ReviewChain:
    return build_review_chain(db, with_school_admin=False)
