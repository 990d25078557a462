"""
Migration: Add multi-level course approval workflow.

Adds workflow columns to the courses table and creates 2 new tables:
1. course_approvals - one reviewer judgment per (course, review cycle, level)
2. course_approval_history - append-only structured decision log

Key design principles:
- At most one active approval per course (partial unique index)
- Approval rows carry a version column for optimistic concurrency
- History rows are ordered by a per-course sequence and never updated
"""
from sqlalchemy import create_engine, text
import os

# Use same DB URL pattern as main app
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{os.getenv('USER', 'postgres')}@localhost:5432/course_approvals"
)

COURSE_COLUMNS = [
    ("current_approval_level", "INTEGER NOT NULL DEFAULT 0"),
    ("review_cycle", "INTEGER NOT NULL DEFAULT 0"),
    ("rejection_reason", "TEXT"),
    ("revision_notes", "TEXT"),
    ("revision_deadline", "DATE"),
]


def table_exists(conn, table_name: str) -> bool:
    """Check if a table exists in the database."""
    result = conn.execute(text("""
        SELECT EXISTS (
            SELECT FROM information_schema.tables
            WHERE table_name = :table_name
        )
    """), {"table_name": table_name})
    return result.fetchone()[0]


def column_exists(conn, table_name: str, column_name: str) -> bool:
    """Check if a column exists in the table."""
    result = conn.execute(text("""
        SELECT EXISTS (
            SELECT FROM information_schema.columns
            WHERE table_name = :table_name
            AND column_name = :column_name
        )
    """), {"table_name": table_name, "column_name": column_name})
    return result.fetchone()[0]


def run_migration():
    """Create course approval workflow schema."""
    engine = create_engine(DATABASE_URL)

    with engine.connect() as conn:
        # =================================================================
        # COURSES: workflow columns
        # =================================================================
        for column, ddl in COURSE_COLUMNS:
            if column_exists(conn, "courses", column):
                print(f"courses.{column} column already exists")
            else:
                conn.execute(text(f"ALTER TABLE courses ADD COLUMN {column} {ddl}"))
                print(f"Added courses.{column} column")

        # =================================================================
        # TABLE 1: course_approvals
        # =================================================================
        if table_exists(conn, "course_approvals"):
            print("course_approvals table already exists")
        else:
            conn.execute(text("""
                CREATE TABLE course_approvals (
                    id VARCHAR(36) PRIMARY KEY,
                    course_id VARCHAR(36) NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
                    review_cycle INTEGER NOT NULL DEFAULT 1,
                    level INTEGER NOT NULL,
                    reviewer_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    status VARCHAR(20) NOT NULL DEFAULT 'PENDING',
                    is_active BOOLEAN NOT NULL DEFAULT TRUE,
                    content_score INTEGER,
                    academic_rigor INTEGER,
                    resource_score INTEGER,
                    innovation_score INTEGER,
                    overall_score INTEGER,
                    comments TEXT,
                    required_changes JSONB,
                    suggested_changes JSONB,
                    submitted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    reviewed_at TIMESTAMP,
                    version INTEGER NOT NULL DEFAULT 1,
                    CONSTRAINT uq_course_approvals_cycle_level UNIQUE (course_id, review_cycle, level)
                )
            """))
            conn.execute(text("""
                CREATE UNIQUE INDEX uq_course_approvals_active_course
                ON course_approvals(course_id)
                WHERE is_active
            """))
            conn.execute(text("""
                CREATE INDEX idx_course_approvals_reviewer ON course_approvals(reviewer_id)
            """))
            print("Created course_approvals table")

        # =================================================================
        # TABLE 2: course_approval_history
        # =================================================================
        if table_exists(conn, "course_approval_history"):
            print("course_approval_history table already exists")
        else:
            conn.execute(text("""
                CREATE TABLE course_approval_history (
                    id VARCHAR(36) PRIMARY KEY,
                    course_id VARCHAR(36) NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
                    approval_id VARCHAR(36) REFERENCES course_approvals(id) ON DELETE SET NULL,
                    sequence INTEGER NOT NULL,
                    action VARCHAR(20) NOT NULL,
                    resulting_status VARCHAR(20) NOT NULL,
                    actor_id VARCHAR(36) NOT NULL,
                    level INTEGER NOT NULL,
                    comments TEXT,
                    overall_score INTEGER,
                    auto_approved BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    CONSTRAINT uq_course_approval_history_sequence UNIQUE (course_id, sequence)
                )
            """))
            conn.execute(text("""
                CREATE INDEX idx_course_approval_history_course ON course_approval_history(course_id)
            """))
            print("Created course_approval_history table")

        conn.commit()
        print("\nCourse approval workflow migration completed successfully!")


def rollback_migration():
    """Drop course approval workflow schema."""
    engine = create_engine(DATABASE_URL)

    with engine.connect() as conn:
        conn.execute(text("DROP TABLE IF EXISTS course_approval_history"))
        print("Dropped course_approval_history table")
        conn.execute(text("DROP TABLE IF EXISTS course_approvals"))
        print("Dropped course_approvals table")

        for column, _ in reversed(COURSE_COLUMNS):
            if column_exists(conn, "courses", column):
                conn.execute(text(f"ALTER TABLE courses DROP COLUMN {column}"))
                print(f"Dropped courses.{column} column")

        conn.commit()
        print("\nCourse approval workflow rollback completed!")


if __name__ == "__main__":
    import sys
    if len(sys.argv) > 1 and sys.argv[1] == "rollback":
        rollback_migration()
    else:
        run_migration()
