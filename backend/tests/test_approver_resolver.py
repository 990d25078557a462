"""
Tests for the approver resolver and membership directory.

1. Level routing (school admin at 2, institution admin at 3, none elsewhere)
2. Inactive members and inactive users never resolve
3. Role literals normalize onto one closed enum
4. Resolver only ever matches the normalized role for each level
"""
from unittest.mock import MagicMock

import pytest

from app.models.db_models import MemberRole, UserStatus
from app.services.approval.approver_resolver import ApproverResolver, level_name
from app.services.approval.membership import MembershipDirectory

from conftest import add_member, make_user


# =============================================================================
# ROUTING WITH A MOCKED MEMBERSHIP COLLABORATOR
# =============================================================================

class TestResolverRouting:

    def test_level_two_uses_school_scope(self):
        membership = MagicMock()
        membership.find_active_member.return_value = "school-admin-id"
        resolver = ApproverResolver(membership)

        assert resolver.resolve(2, "inst", faculty_id="fac", school_id="sch") == "school-admin-id"
        membership.find_active_member.assert_called_once_with(
            institution_id="inst",
            role=(MemberRole.SCHOOL_ADMIN,),
            school_id="sch",
        )

    def test_level_two_without_school_is_unresolvable(self):
        membership = MagicMock()
        resolver = ApproverResolver(membership)

        assert resolver.resolve(2, "inst") is None
        membership.find_active_member.assert_not_called()

    def test_level_three_is_institution_wide(self):
        membership = MagicMock()
        membership.find_active_member.return_value = "inst-admin-id"
        resolver = ApproverResolver(membership)

        assert resolver.resolve(3, "inst", school_id="sch") == "inst-admin-id"
        membership.find_active_member.assert_called_once_with(
            institution_id="inst",
            role=(MemberRole.INSTITUTION_ADMIN,),
        )

    @pytest.mark.parametrize("level", [-1, 0, 1, 4, 99])
    def test_levels_outside_chain_resolve_to_none(self, level):
        membership = MagicMock()
        resolver = ApproverResolver(membership)

        assert resolver.resolve(level, "inst", school_id="sch") is None
        membership.find_active_member.assert_not_called()

    def test_submission_reviewer_is_admin_or_owner(self):
        membership = MagicMock()
        membership.find_active_member.return_value = "owner-id"
        resolver = ApproverResolver(membership)

        assert resolver.resolve_submission_reviewer("inst") == "owner-id"
        membership.find_active_member.assert_called_once_with(
            institution_id="inst",
            role=(MemberRole.OWNER, MemberRole.INSTITUTION_ADMIN),
        )

    def test_level_names(self):
        assert level_name(1) == "Faculty"
        assert level_name(2) == "School"
        assert level_name(3) == "Institution"
        assert level_name(4) == "Level 4"


# =============================================================================
# MEMBERSHIP DIRECTORY AGAINST THE DATABASE
# =============================================================================

class TestMembershipDirectory:

    def test_resolves_seeded_chain(self, db, chain):
        resolver = ApproverResolver(MembershipDirectory(db))

        assert resolver.resolve(2, chain.institution.id, school_id=chain.school.id) == chain.school_admin.id
        assert resolver.resolve(3, chain.institution.id) == chain.institution_admin.id
        assert resolver.resolve_submission_reviewer(chain.institution.id) == chain.institution_admin.id

    def test_school_admin_of_another_school_is_ignored(self, db, chain_without_school_admin):
        chain = chain_without_school_admin
        other_admin = make_user(db, "other-school-admin")
        add_member(db, other_admin, chain.institution.id, MemberRole.SCHOOL_ADMIN, school_id="other-school")
        db.commit()

        resolver = ApproverResolver(MembershipDirectory(db))
        assert resolver.resolve(2, chain.institution.id, school_id=chain.school.id) is None

    def test_inactive_membership_is_ignored(self, db, chain_without_school_admin):
        chain = chain_without_school_admin
        admin = make_user(db, "inactive-member")
        add_member(db, admin, chain.institution.id, MemberRole.SCHOOL_ADMIN,
                   school_id=chain.school.id, is_active=False)
        db.commit()

        directory = MembershipDirectory(db)
        assert directory.find_active_member(chain.institution.id, MemberRole.SCHOOL_ADMIN,
                                            school_id=chain.school.id) is None

    def test_suspended_user_is_ignored(self, db, chain_without_school_admin):
        chain = chain_without_school_admin
        admin = make_user(db, "suspended", status=UserStatus.SUSPENDED)
        add_member(db, admin, chain.institution.id, MemberRole.SCHOOL_ADMIN, school_id=chain.school.id)
        db.commit()

        directory = MembershipDirectory(db)
        assert directory.find_active_member(chain.institution.id, MemberRole.SCHOOL_ADMIN,
                                            school_id=chain.school.id) is None

    def test_other_institution_is_ignored(self, db, chain):
        directory = MembershipDirectory(db)
        assert directory.find_active_member("another-institution", MemberRole.INSTITUTION_ADMIN) is None

    def test_has_role_with_faculty_scope(self, db, chain):
        directory = MembershipDirectory(db)
        assert directory.has_role(chain.instructor.id, chain.institution.id,
                                  MemberRole.FACULTY_MEMBER, faculty_id=chain.faculty.id)
        assert not directory.has_role(chain.instructor.id, chain.institution.id,
                                      MemberRole.FACULTY_MEMBER, faculty_id="other-faculty")
        assert not directory.has_role(chain.outsider.id, chain.institution.id, MemberRole.FACULTY_MEMBER)

    def test_legacy_role_literals_are_accepted(self, db, chain):
        directory = MembershipDirectory(db)
        assert directory.find_active_member(chain.institution.id, ["admin", "owner"]) == chain.institution_admin.id

    def test_unknown_role_literal_is_rejected(self, db, chain):
        directory = MembershipDirectory(db)
        with pytest.raises(ValueError):
            directory.find_active_member(chain.institution.id, "superuser")


# =============================================================================
# ROLE NORMALIZATION
# =============================================================================

class TestRoleNormalization:

    @pytest.mark.parametrize("literal,expected", [
        ("admin", MemberRole.INSTITUTION_ADMIN),
        ("Admin", MemberRole.INSTITUTION_ADMIN),
        ("owner", MemberRole.OWNER),
        ("ORGANIZATION_ADMIN", MemberRole.INSTITUTION_ADMIN),
        ("organization-admin", MemberRole.INSTITUTION_ADMIN),
        ("INSTITUTION_ADMIN", MemberRole.INSTITUTION_ADMIN),
        ("SCHOOL_ADMIN", MemberRole.SCHOOL_ADMIN),
        ("school admin", MemberRole.SCHOOL_ADMIN),
        ("faculty", MemberRole.FACULTY_MEMBER),
        ("member", MemberRole.MEMBER),
        (MemberRole.OWNER, MemberRole.OWNER),
    ])
    def test_aliases(self, literal, expected):
        assert MemberRole.normalize(literal) is expected

    @pytest.mark.parametrize("role", list(MemberRole))
    def test_canonical_values_round_trip(self, role):
        assert MemberRole.normalize(role.value) is role

    @pytest.mark.parametrize("literal", ["", "root", "dean", "SCHOOLADMIN"])
    def test_unknown_literals_raise(self, literal):
        with pytest.raises(ValueError):
            MemberRole.normalize(literal)

    @pytest.mark.parametrize("role", list(MemberRole))
    def test_resolver_matches_only_the_normalized_role(self, db, chain_without_school_admin, role):
        """
        With a single candidate holding `role`, each level resolves it only
        when `role` is exactly the role that level requires.
        """
        chain = chain_without_school_admin
        # Remove the seeded admin so the candidate is the only possible match
        for membership in chain.institution_admin.memberships:
            membership.is_active = False
        candidate = make_user(db, f"candidate-{role.value.lower()}")
        add_member(db, candidate, chain.institution.id, role, school_id=chain.school.id)
        db.commit()

        resolver = ApproverResolver(MembershipDirectory(db))
        level_two = resolver.resolve(2, chain.institution.id, school_id=chain.school.id)
        level_three = resolver.resolve(3, chain.institution.id)
        first_line = resolver.resolve_submission_reviewer(chain.institution.id)

        assert (level_two == candidate.id) == (role is MemberRole.SCHOOL_ADMIN)
        assert (level_three == candidate.id) == (role is MemberRole.INSTITUTION_ADMIN)
        assert (first_line == candidate.id) == (role in (MemberRole.OWNER, MemberRole.INSTITUTION_ADMIN))
