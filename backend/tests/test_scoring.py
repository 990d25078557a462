"""
Tests for rubric score aggregation and validation.

1. Mean of the three mandatory scores
2. Innovation score joins the mean when present
3. Missing mandatory score yields no overall score
4. Round-half-up on .5 means
5. Out-of-range and non-integer scores are rejected
"""
import pytest

from app.services.approval.errors import ValidationError
from app.services.approval.scoring import aggregate_scores, validate_scores


class TestAggregateScores:
    """Tests for aggregate_scores."""

    def test_mean_of_mandatory_scores(self):
        assert aggregate_scores(70, 80, 90, None) == 80

    def test_innovation_score_included_when_present(self):
        assert aggregate_scores(70, 80, 90, 100) == 85

    def test_missing_mandatory_score_gives_none(self):
        assert aggregate_scores(None, 80, 90, None) is None
        assert aggregate_scores(70, None, 90, 100) is None
        assert aggregate_scores(70, 80, None) is None

    def test_scenario_scores(self):
        assert aggregate_scores(80, 85, 90) == 85

    def test_rounds_half_up(self):
        """(80 + 81) / 2 style halves always go up, never to even."""
        # mean 84.5
        assert aggregate_scores(84, 85, 84, 85) == 85
        # mean 82.5
        assert aggregate_scores(82, 83, 82, 83) == 83

    def test_rounds_down_below_half(self):
        # mean 80.333...
        assert aggregate_scores(80, 80, 81) == 80

    def test_zero_scores(self):
        assert aggregate_scores(0, 0, 0, 0) == 0

    def test_deterministic(self):
        results = {aggregate_scores(61, 77, 93, 52) for _ in range(20)}
        assert results == {71}


class TestValidateScores:
    """Tests for validate_scores."""

    def test_accepts_bounds_and_missing(self):
        validate_scores(
            {"content_score": 0, "academic_rigor": 100, "resource_score": None},
            score_min=0,
            score_max=100,
        )

    def test_rejects_out_of_range(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_scores(
                {"content_score": 101, "academic_rigor": -1, "resource_score": 50},
                score_min=0,
                score_max=100,
            )
        details = exc_info.value.details
        assert set(details) == {"content_score", "academic_rigor"}
        assert exc_info.value.status_code == 400

    def test_rejects_non_integers(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_scores({"innovation_score": "high"}, score_min=0, score_max=100)
        assert exc_info.value.details == {"innovation_score": "must be an integer"}

    def test_respects_configured_bounds(self):
        with pytest.raises(ValidationError):
            validate_scores({"content_score": 6}, score_min=1, score_max=5)
