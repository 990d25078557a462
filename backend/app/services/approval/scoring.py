"""
Rubric score aggregation.

Pure functions, no persistence. The overall score is the arithmetic mean of
the three mandatory rubric scores plus the innovation score when present,
rounded half-up to an integer.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

from .errors import ValidationError


# Mandatory rubric fields, in display order
REQUIRED_SCORE_FIELDS = ("content_score", "academic_rigor", "resource_score")
OPTIONAL_SCORE_FIELDS = ("innovation_score",)
SCORE_FIELDS = REQUIRED_SCORE_FIELDS + OPTIONAL_SCORE_FIELDS


def aggregate_scores(
    content_score: Optional[int],
    academic_rigor: Optional[int],
    resource_score: Optional[int],
    innovation_score: Optional[int] = None,
) -> Optional[int]:
    """
    Compute the overall score.

    Returns None unless all three mandatory scores are supplied.

    >>> aggregate_scores(70, 80, 90)
    80
    >>> aggregate_scores(70, 80, 90, 100)
    85
    """
    required = (content_score, academic_rigor, resource_score)
    if any(score is None for score in required):
        return None

    scores = list(required)
    if innovation_score is not None:
        scores.append(innovation_score)

    mean = Decimal(sum(scores)) / Decimal(len(scores))
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def validate_scores(
    scores: Dict[str, Optional[int]],
    score_min: int,
    score_max: int,
) -> None:
    """
    Reject scores outside [score_min, score_max].

    Raises ValidationError listing every offending field.
    """
    errors = {}
    for field_name in SCORE_FIELDS:
        value = scores.get(field_name)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            errors[field_name] = "must be an integer"
        elif value < score_min or value > score_max:
            errors[field_name] = f"must be between {score_min} and {score_max}"

    if errors:
        raise ValidationError("Invalid review scores", details=errors)
