"""
Membership Directory

Read-only lookups against institution memberships. Only active members whose
user account is ACTIVE are considered. Role arguments are normalized through
MemberRole so legacy literals can never match by accident.
"""
from typing import Iterable, Optional, Union

from sqlalchemy.orm import Session

from ...models.db_models import MemberDB, MemberRole, UserDB, UserStatus


RoleArg = Union[MemberRole, str, Iterable[Union[MemberRole, str]]]


def _normalize_roles(roles: RoleArg) -> list:
    if isinstance(roles, (MemberRole, str)):
        roles = [roles]
    return [MemberRole.normalize(role) for role in roles]


class MembershipDirectory:
    """Membership collaborator backed by the members table."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def _active_members(
        self,
        institution_id: str,
        roles: RoleArg,
        faculty_id: Optional[str] = None,
        school_id: Optional[str] = None,
    ):
        query = (
            self.db.query(MemberDB)
            .join(UserDB, UserDB.id == MemberDB.user_id)
            .filter(
                MemberDB.institution_id == institution_id,
                MemberDB.role.in_(_normalize_roles(roles)),
                MemberDB.is_active.is_(True),
                UserDB.status == UserStatus.ACTIVE,
            )
        )
        if faculty_id is not None:
            query = query.filter(MemberDB.faculty_id == faculty_id)
        if school_id is not None:
            query = query.filter(MemberDB.school_id == school_id)
        return query

    def find_active_member(
        self,
        institution_id: str,
        role: RoleArg,
        faculty_id: Optional[str] = None,
        school_id: Optional[str] = None,
    ) -> Optional[str]:
        """Return the user id of the earliest matching active member, or None."""
        member = (
            self._active_members(institution_id, role, faculty_id, school_id)
            .order_by(MemberDB.created_at.asc(), MemberDB.id.asc())
            .first()
        )
        return member.user_id if member else None

    def has_role(
        self,
        user_id: str,
        institution_id: str,
        role: RoleArg,
        faculty_id: Optional[str] = None,
        school_id: Optional[str] = None,
    ) -> bool:
        """Check whether a user holds one of the given roles."""
        member = (
            self._active_members(institution_id, role, faculty_id, school_id)
            .filter(MemberDB.user_id == user_id)
            .first()
        )
        return member is not None
