"""Unit tests for duo ranking and the leaderboard."""

from conftest import make_participant, make_meeting
from services.ranking_service import (
    rank_duos,
    reciprocal_ratings,
    synergy_score,
    leaderboard,
)


def _roster(**partners):
    return [
        make_participant(pid, "X", partner_id=partners.get(pid))
        for pid in ("a", "b", "c", "d")
    ]


class TestReciprocalRatings:
    """Tests for mutual rating detection."""

    def test_both_directions(self):
        meeting = make_meeting("a", "b", 1, ratings=[("a", "b", 4), ("b", "a", 5)])
        forward, backward = reciprocal_ratings(meeting)
        assert (forward.score, backward.score) == (4, 5)
        assert synergy_score(meeting) == 9

    def test_single_direction_does_not_qualify(self):
        meeting = make_meeting("a", "b", 1, ratings=[("a", "b", 4)])
        assert reciprocal_ratings(meeting) is None
        assert synergy_score(meeting) is None

    def test_two_ratings_same_direction_do_not_qualify(self):
        """Test two ratings from one side are not a reciprocal pair."""
        meeting = make_meeting("a", "b", 1, ratings=[("a", "b", 4), ("a", "b", 2)])
        assert reciprocal_ratings(meeting) is None

    def test_latest_rating_wins(self):
        meeting = make_meeting(
            "a", "b", 1, ratings=[("a", "b", 2), ("b", "a", 3), ("a", "b", 5)]
        )
        assert synergy_score(meeting) == 8

    def test_no_ratings(self):
        assert synergy_score(make_meeting("a", "b", 1)) is None


class TestRankDuos:
    """Tests for the synergy ranking."""

    def test_sorted_by_score_descending(self):
        meetings = [
            make_meeting("a", "b", 1, ratings=[("a", "b", 3), ("b", "a", 3)]),
            make_meeting("c", "d", 1, 2, ratings=[("c", "d", 5), ("d", "c", 5)]),
            make_meeting("a", "c", 2, ratings=[("a", "c", 4), ("c", "a", 4)]),
            make_meeting("b", "d", 2, 2, ratings=[("b", "d", 5)]),
        ]

        duos = rank_duos(meetings, _roster())

        assert [(d.participant_a.id, d.participant_b.id, d.score) for d in duos] == [
            ("c", "d", 10),
            ("a", "c", 8),
            ("a", "b", 6),
        ]
        assert duos[0].meeting is meetings[1]

    def test_score_range(self):
        low = make_meeting("a", "b", 1, ratings=[("a", "b", 1), ("b", "a", 1)])
        high = make_meeting("c", "d", 1, 2, ratings=[("c", "d", 5), ("d", "c", 5)])
        scores = [d.score for d in rank_duos([low, high], _roster())]
        assert scores == [10, 2]

    def test_confirmed_flag(self):
        meetings = [
            make_meeting("a", "b", 1, ratings=[("a", "b", 5), ("b", "a", 5)]),
            make_meeting("c", "d", 1, 2, ratings=[("c", "d", 4), ("d", "c", 4)]),
        ]
        roster = _roster(a="b", b="a")

        duos = rank_duos(meetings, roster)

        assert [d.confirmed for d in duos] == [True, False]

    def test_exclude_confirmed(self):
        """Test duos with an already confirmed participant can be left out."""
        meetings = [
            make_meeting("a", "b", 1, ratings=[("a", "b", 5), ("b", "a", 5)]),
            make_meeting("a", "c", 2, ratings=[("a", "c", 4), ("c", "a", 4)]),
            make_meeting("c", "d", 1, 2, ratings=[("c", "d", 3), ("d", "c", 3)]),
        ]
        roster = _roster(a="b", b="a")

        duos = rank_duos(meetings, roster, include_confirmed=False)

        assert [(d.participant_a.id, d.participant_b.id) for d in duos] == [("c", "d")]

    def test_orphaned_meeting_skipped(self):
        """Test a meeting whose participant was deleted is ignored."""
        meetings = [make_meeting("a", "gone", 1, ratings=[("a", "gone", 5), ("gone", "a", 5)])]
        assert rank_duos(meetings, _roster()) == []

    def test_no_meetings(self):
        assert rank_duos([], _roster()) == []


class TestLeaderboard:
    """Tests for the average-score leaderboard."""

    def test_sorted_by_average(self):
        roster = [
            make_participant("a", "X", avg_score=3.5),
            make_participant("b", "X", avg_score=4.8),
            make_participant("c", "X", avg_score=0.0),
        ]
        assert [p.id for p in leaderboard(roster)] == ["b", "a", "c"]
