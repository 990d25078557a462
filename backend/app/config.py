"""
Course Approval Engine - Workflow Configuration

Environment-driven knobs for the approval pipeline. Services take a
WorkflowSettings instance explicitly so tests can inject their own values.
"""
import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Defaults
DEFAULT_MAX_LEVEL = 3
DEFAULT_SCORE_MIN = 0
DEFAULT_SCORE_MAX = 100

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class WorkflowSettings:
    """Tunable parameters of the review chain."""
    max_level: int = DEFAULT_MAX_LEVEL
    score_min: int = DEFAULT_SCORE_MIN
    score_max: int = DEFAULT_SCORE_MAX
    # Approve the course outright when no next-level reviewer exists
    auto_approve_on_missing_reviewer: bool = True

    @classmethod
    def from_env(cls) -> "WorkflowSettings":
        return cls(
            max_level=int(os.getenv("APPROVAL_MAX_LEVEL", DEFAULT_MAX_LEVEL)),
            score_min=int(os.getenv("APPROVAL_SCORE_MIN", DEFAULT_SCORE_MIN)),
            score_max=int(os.getenv("APPROVAL_SCORE_MAX", DEFAULT_SCORE_MAX)),
            auto_approve_on_missing_reviewer=_env_bool(
                "APPROVAL_AUTO_APPROVE_ON_MISSING_REVIEWER", True
            ),
        )


def get_settings() -> WorkflowSettings:
    """Dependency for FastAPI - settings read from the environment."""
    return WorkflowSettings.from_env()
