#!/usr/bin/env python3
"""
Review Chain Seed Script
Creates an institution → school → faculty chain with one user per review
role and a DRAFT course, then prints bearer tokens for manual testing.

Usage:
    python -m scripts.seed_review_chain <institution_name>

Example:
    python -m scripts.seed_review_chain "Northfield University"
"""
import sys
import os
from uuid import uuid4

# Add the parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.database import SessionLocal, engine, Base
from app.models.db_models import (
    CourseDB, CourseStatus, FacultyDB, InstitutionDB, MemberDB, MemberRole,
    SchoolDB, UserDB, UserStatus,
)
from app.auth import create_access_token


ROLE_USERS = [
    ("instructor", MemberRole.FACULTY_MEMBER),
    ("institution-admin", MemberRole.INSTITUTION_ADMIN),
    ("school-admin", MemberRole.SCHOOL_ADMIN),
]


def _slug(name: str) -> str:
    return "-".join(name.lower().split())


def seed_review_chain(institution_name: str) -> bool:
    """Create the organization chain, reviewers and a draft course."""
    # Ensure tables exist
    Base.metadata.create_all(bind=engine)

    db: Session = SessionLocal()
    try:
        slug = _slug(institution_name)
        if db.query(InstitutionDB).filter(InstitutionDB.slug == slug).first():
            print(f"Error: Institution '{institution_name}' already exists.")
            return False

        institution = InstitutionDB(id=str(uuid4()), name=institution_name, slug=slug)
        school = SchoolDB(id=str(uuid4()), institution_id=institution.id, name="School of Sciences")
        faculty = FacultyDB(id=str(uuid4()), school_id=school.id, name="Faculty of Computing")
        db.add_all([institution, school, faculty])

        users = {}
        for label, role in ROLE_USERS:
            user = UserDB(
                id=str(uuid4()),
                email=f"{label}@{slug}.example",
                name=label.replace("-", " ").title(),
                status=UserStatus.ACTIVE,
            )
            db.add(user)
            db.add(MemberDB(
                id=str(uuid4()),
                user_id=user.id,
                institution_id=institution.id,
                role=role,
                school_id=school.id if role is MemberRole.SCHOOL_ADMIN else None,
                faculty_id=faculty.id if role is MemberRole.FACULTY_MEMBER else None,
            ))
            users[label] = user

        course = CourseDB(
            id=str(uuid4()),
            title="Introduction to Algorithms",
            code="CS101",
            instructor_id=users["instructor"].id,
            faculty_id=faculty.id,
            status=CourseStatus.DRAFT,
        )
        db.add(course)
        db.commit()

        print(f"Review chain created for '{institution_name}'")
        print(f"  Course: {course.id} ({course.code})")
        for label, user in users.items():
            print(f"  {label}: {user.email}")
            print(f"    token: {create_access_token(user.id, user.email)}")
        return True

    except SQLAlchemyError as e:
        print(f"Error seeding review chain: {e}")
        db.rollback()
        return False
    finally:
        db.close()


def main():
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)

    success = seed_review_chain(sys.argv[1])
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
