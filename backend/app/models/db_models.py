"""
Course Approval Engine - SQLAlchemy ORM Models
PostgreSQL database models for persistent storage
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, String, Integer, DateTime, Text, JSON, ForeignKey, Enum as SQLEnum,
    Boolean, Date, Index, UniqueConstraint, text,
)
from sqlalchemy.orm import relationship
from ..database import Base


# =============================================================================
# ENUMS FOR THE APPROVAL WORKFLOW
# =============================================================================

class UserStatus(str, Enum):
    """Account status of a platform user."""
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    SUSPENDED = "SUSPENDED"
    REJECTED = "REJECTED"


class MemberRole(str, Enum):
    """
    Single closed set of institution membership roles.

    Shared by the membership directory and the approver resolver. Literals
    seen in older data ("admin", "owner", "ORGANIZATION_ADMIN", ...) are
    mapped onto these values by normalize().
    """
    OWNER = "OWNER"
    INSTITUTION_ADMIN = "INSTITUTION_ADMIN"
    SCHOOL_ADMIN = "SCHOOL_ADMIN"
    FACULTY_MEMBER = "FACULTY_MEMBER"
    MEMBER = "MEMBER"

    @classmethod
    def normalize(cls, value) -> "MemberRole":
        """Map any known role literal onto the canonical enum member."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        role = _ROLE_ALIASES.get(key)
        if role is None:
            raise ValueError(f"Unknown member role: {value!r}")
        return role


_ROLE_ALIASES = {
    "OWNER": MemberRole.OWNER,
    "ADMIN": MemberRole.INSTITUTION_ADMIN,
    "INSTITUTION_ADMIN": MemberRole.INSTITUTION_ADMIN,
    "ORGANIZATION_ADMIN": MemberRole.INSTITUTION_ADMIN,
    "ORG_ADMIN": MemberRole.INSTITUTION_ADMIN,
    "SCHOOL_ADMIN": MemberRole.SCHOOL_ADMIN,
    "FACULTY_MEMBER": MemberRole.FACULTY_MEMBER,
    "FACULTY": MemberRole.FACULTY_MEMBER,
    "INSTRUCTOR": MemberRole.FACULTY_MEMBER,
    "MEMBER": MemberRole.MEMBER,
}


class CourseStatus(str, Enum):
    """Lifecycle status of a course."""
    DRAFT = "DRAFT"
    UNDER_REVIEW = "UNDER_REVIEW"
    NEEDS_REVISION = "NEEDS_REVISION"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApprovalStatus(str, Enum):
    """Status of a single reviewer's judgment at one level."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    NEEDS_REVISION = "NEEDS_REVISION"


class Decision(str, Enum):
    """Verdict a reviewer can hand down on a pending approval."""
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_REVISION = "request_revision"


class NotificationType(str, Enum):
    COURSE_APPROVAL_REQUEST = "COURSE_APPROVAL_REQUEST"
    COURSE_APPROVAL_RESULT = "COURSE_APPROVAL_RESULT"


class AuditAction(str, Enum):
    """Compliance actions recorded against a course."""
    SUBMIT_APPROVAL = "SUBMIT_APPROVAL"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REQUEST_REVISION = "REQUEST_REVISION"


# =============================================================================
# IDENTITY / ORGANIZATION
# =============================================================================

class UserDB(Base):
    """Platform user account (owned by the identity collaborator)."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # UUID
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    role = Column(String(20), default="user")  # platform role, not institution role
    status = Column(SQLEnum(UserStatus), nullable=False, default=UserStatus.ACTIVE)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = relationship("MemberDB", back_populates="user", cascade="all, delete-orphan")


class InstitutionDB(Base):
    __tablename__ = "institutions"

    id = Column(String(36), primary_key=True)  # UUID
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    schools = relationship("SchoolDB", back_populates="institution", cascade="all, delete-orphan")


class SchoolDB(Base):
    __tablename__ = "schools"

    id = Column(String(36), primary_key=True)  # UUID
    institution_id = Column(String(36), ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    institution = relationship("InstitutionDB", back_populates="schools")
    faculties = relationship("FacultyDB", back_populates="school", cascade="all, delete-orphan")


class FacultyDB(Base):
    __tablename__ = "faculties"

    id = Column(String(36), primary_key=True)  # UUID
    school_id = Column(String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    school = relationship("SchoolDB", back_populates="faculties")


class MemberDB(Base):
    """
    Institution membership.

    school_id / faculty_id narrow the scope of SCHOOL_ADMIN and
    FACULTY_MEMBER roles; both are NULL for institution-wide roles.
    """
    __tablename__ = "members"

    id = Column(String(36), primary_key=True)  # UUID
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    institution_id = Column(String(36), ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(SQLEnum(MemberRole), nullable=False)
    school_id = Column(String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=True, index=True)
    faculty_id = Column(String(36), ForeignKey("faculties.id", ondelete="CASCADE"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("UserDB", back_populates="memberships")


# =============================================================================
# COURSES AND THE APPROVAL WORKFLOW
# =============================================================================

class CourseDB(Base):
    """
    Course entity.

    status / current_approval_level / approval_history are only mutated by
    the approval workflow services.
    """
    __tablename__ = "courses"

    id = Column(String(36), primary_key=True)  # UUID
    title = Column(String(255), nullable=False)
    code = Column(String(50), nullable=True, index=True)
    description = Column(Text, nullable=True)

    instructor_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    faculty_id = Column(String(36), ForeignKey("faculties.id", ondelete="CASCADE"), nullable=False, index=True)

    # Workflow state
    status = Column(SQLEnum(CourseStatus), nullable=False, default=CourseStatus.DRAFT)
    current_approval_level = Column(Integer, nullable=False, default=0)  # 0 = no active review
    review_cycle = Column(Integer, nullable=False, default=0)  # bumped on every submission

    # Last terminal decision text (overwritten on each new terminal decision)
    rejection_reason = Column(Text, nullable=True)
    revision_notes = Column(Text, nullable=True)
    revision_deadline = Column(Date, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)  # soft delete, managed elsewhere

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    instructor = relationship("UserDB")
    faculty = relationship("FacultyDB")
    approvals = relationship(
        "CourseApprovalDB",
        back_populates="course",
        order_by="CourseApprovalDB.submitted_at",
    )
    approval_history = relationship(
        "ApprovalHistoryDB",
        back_populates="course",
        order_by="ApprovalHistoryDB.sequence",
        cascade="all, delete-orphan",
    )


class CourseApprovalDB(Base):
    """
    One reviewer's judgment on one course at one level.

    Immutable once reviewed_at is set. The version column gives optimistic
    concurrency: two sessions deciding the same record cannot both flush.
    """
    __tablename__ = "course_approvals"
    __table_args__ = (
        UniqueConstraint("course_id", "review_cycle", "level", name="uq_course_approvals_cycle_level"),
        Index(
            "uq_course_approvals_active_course",
            "course_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id = Column(String(36), primary_key=True)  # UUID
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    review_cycle = Column(Integer, nullable=False, default=1)
    level = Column(Integer, nullable=False)
    reviewer_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(SQLEnum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING)
    is_active = Column(Boolean, nullable=False, default=True)

    # Rubric scores
    content_score = Column(Integer, nullable=True)
    academic_rigor = Column(Integer, nullable=True)
    resource_score = Column(Integer, nullable=True)
    innovation_score = Column(Integer, nullable=True)
    overall_score = Column(Integer, nullable=True)  # derived, see scoring.aggregate_scores

    comments = Column(Text, nullable=True)
    required_changes = Column(JSON, nullable=True, default=list)
    suggested_changes = Column(JSON, nullable=True, default=list)

    submitted_at = Column(DateTime, default=datetime.utcnow)
    reviewed_at = Column(DateTime, nullable=True)

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    course = relationship("CourseDB", back_populates="approvals")
    reviewer = relationship("UserDB")


class ApprovalHistoryDB(Base):
    """
    Append-only approval history of a course.
    One row per reviewer decision, ordered by sequence.
    """
    __tablename__ = "course_approval_history"
    __table_args__ = (
        UniqueConstraint("course_id", "sequence", name="uq_course_approval_history_sequence"),
    )

    id = Column(String(36), primary_key=True)  # UUID
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    approval_id = Column(String(36), ForeignKey("course_approvals.id", ondelete="SET NULL"), nullable=True)
    sequence = Column(Integer, nullable=False)

    action = Column(SQLEnum(Decision), nullable=False)
    resulting_status = Column(SQLEnum(CourseStatus), nullable=False)
    actor_id = Column(String(36), nullable=False)
    level = Column(Integer, nullable=False)
    comments = Column(Text, nullable=True)
    overall_score = Column(Integer, nullable=True)
    auto_approved = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    course = relationship("CourseDB", back_populates="approval_history")


# =============================================================================
# NOTIFICATION / AUDIT SINKS
# =============================================================================

class NotificationDB(Base):
    """In-app notification for a user."""
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True)  # UUID
    recipient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    issuer_id = Column(String(36), nullable=True)
    type = Column(SQLEnum(NotificationType), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    course_id = Column(String(36), nullable=True, index=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class AuditLogDB(Base):
    """
    Compliance trail of workflow actions.
    Written once per successful submission or decision.
    """
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True)  # UUID
    action = Column(SQLEnum(AuditAction), nullable=False)
    entity_type = Column(String(50), nullable=False, default="Course")
    entity_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=True)
    previous_data = Column(JSON, nullable=True)
    new_data = Column(JSON, nullable=True)
    reason = Column(Text, nullable=True)
    source = Column(String(20), default="API")

    # Event Metadata (renamed from 'metadata' which is reserved in SQLAlchemy)
    event_metadata = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
