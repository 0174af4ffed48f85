"""Unit tests for rating validation and averages."""

import pytest

from conftest import make_meeting
from core.exceptions import InvalidRating
from models import Rating
from services.scoring_service import (
    RunningAverage,
    average_score,
    merge_rating,
    ratings_received,
    validate_score,
)


class TestValidateScore:
    """Tests for score validation."""

    @pytest.mark.parametrize("score", [1, 3, 5])
    def test_valid(self, score):
        assert validate_score(score) == score

    @pytest.mark.parametrize("score", [0, 6, -1, 2.5, "4", True, None])
    def test_invalid(self, score):
        with pytest.raises(InvalidRating):
            validate_score(score)


class TestAverageScore:
    """Tests for the full recomputation."""

    def test_mean_across_meetings(self):
        """Test ratings [3, 5, 4] average to 4.0, a fourth rating of 2 gives 3.5."""
        meetings = [
            make_meeting("x", "a", 1, ratings=[("a", "x", 3), ("x", "a", 1)]),
            make_meeting("x", "b", 2, ratings=[("b", "x", 5)]),
            make_meeting("c", "x", 3, ratings=[("c", "x", 4)]),
        ]
        assert average_score(meetings, "x") == 4.0

        meetings.append(make_meeting("d", "x", 4, ratings=[("d", "x", 2)]))
        assert average_score(meetings, "x") == 3.5

    def test_only_ratings_received_count(self):
        meetings = [make_meeting("x", "a", 1, ratings=[("x", "a", 1), ("a", "x", 5)])]
        assert [r.score for r in ratings_received(meetings, "x")] == [5]
        assert average_score(meetings, "x") == 5.0

    def test_no_ratings(self):
        assert average_score([make_meeting("x", "a", 1)], "x") == 0.0


class TestMergeRating:
    """Tests for filter-then-append."""

    def test_first_submission_appends(self):
        existing = [Rating(meeting_id="m1", from_id="b", to_id="a", score=4)]
        new = Rating(meeting_id="m1", from_id="a", to_id="b", score=3)

        merged = merge_rating(existing, new)

        assert merged == [existing[0], new]

    def test_resubmission_replaces(self):
        """Test a second rating from the same rater replaces the first."""
        old = Rating(meeting_id="m1", from_id="a", to_id="b", score=2)
        other = Rating(meeting_id="m1", from_id="b", to_id="a", score=4)
        new = Rating(meeting_id="m1", from_id="a", to_id="b", score=5)

        merged = merge_rating([old, other], new)

        assert merged == [other, new]

    def test_other_meeting_untouched(self):
        elsewhere = Rating(meeting_id="m2", from_id="a", to_id="c", score=1)
        new = Rating(meeting_id="m1", from_id="a", to_id="b", score=5)
        assert merge_rating([elsewhere], new) == [elsewhere, new]


class TestRunningAverage:
    """Tests for the sum/count running average."""

    def test_matches_full_recomputation(self):
        running = RunningAverage()
        for score in (3, 5, 4):
            running = running.apply(score)
        assert running.average == 4.0

        running = running.apply(2)
        assert (running.total, running.count, running.average) == (14, 4, 3.5)

    def test_replacement_keeps_count(self):
        running = RunningAverage(total=7, count=2).apply(5, replaced_score=2)
        assert (running.total, running.count) == (10, 2)
        assert running.average == 5.0

    def test_empty(self):
        assert RunningAverage().average == 0.0

    def test_without_removes_every_score(self):
        running = RunningAverage(total=6, count=2).without([2, 4]).apply(5)
        assert (running.total, running.count, running.average) == (5, 1, 5.0)
