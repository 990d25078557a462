"""
Approver Resolver

Finds the reviewer responsible for a course at a given review level.

Review chain:
    Level 1 (Faculty)     - first-line institution administrator, assigned at
                            submission time (resolve_submission_reviewer)
    Level 2 (School)      - school admin scoped to the course's school
    Level 3 (Institution) - organization-wide institution admin

Pure lookups: nothing here mutates the store.
"""
from typing import Optional

from ...models.db_models import MemberRole
from .membership import MembershipDirectory


# =============================================================================
# LEVEL CONFIGURATION
# =============================================================================

LEVEL_CONFIG = {
    1: {
        "name": "Faculty",
        "roles": (MemberRole.OWNER, MemberRole.INSTITUTION_ADMIN),
        "scope": "institution",
    },
    2: {
        "name": "School",
        "roles": (MemberRole.SCHOOL_ADMIN,),
        "scope": "school",
    },
    3: {
        "name": "Institution",
        "roles": (MemberRole.INSTITUTION_ADMIN,),
        "scope": "institution",
    },
}

# Levels resolved by ApproverResolver.resolve; level 1 is handled at submission
RESOLVABLE_LEVELS = (2, 3)


def level_name(level: int) -> str:
    """Human-readable name of a review level."""
    config = LEVEL_CONFIG.get(level)
    return config["name"] if config else f"Level {level}"


class ApproverResolver:
    """Resolve reviewers for each level of the approval chain."""

    def __init__(self, membership: MembershipDirectory):
        self.membership = membership

    def resolve(
        self,
        level: int,
        institution_id: str,
        faculty_id: Optional[str] = None,
        school_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Return the reviewer user id for a post-submission level, or None.

        Level 1 and any level outside the configured chain resolve to None;
        the caller decides the fallback.
        """
        if level not in RESOLVABLE_LEVELS:
            return None

        config = LEVEL_CONFIG[level]
        if config["scope"] == "school":
            if school_id is None:
                return None
            return self.membership.find_active_member(
                institution_id=institution_id,
                role=config["roles"],
                school_id=school_id,
            )

        return self.membership.find_active_member(
            institution_id=institution_id,
            role=config["roles"],
        )

    def resolve_submission_reviewer(self, institution_id: str) -> Optional[str]:
        """First-line reviewer: an active admin or owner of the institution."""
        return self.membership.find_active_member(
            institution_id=institution_id,
            role=LEVEL_CONFIG[1]["roles"],
        )
