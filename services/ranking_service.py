"""
Post-event ranking: duos built from reciprocal ratings, and the participant
leaderboard.

Pure computation over meetings and participants already loaded by the caller.
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple


@dataclass
class DuoRanking:
    participant_a: Any
    participant_b: Any
    score: int
    meeting: Any
    confirmed: bool = False


def _latest_rating(ratings, from_id: str, to_id: str):
    found = None
    for rating in ratings:
        if rating.from_id == from_id and rating.to_id == to_id:
            found = rating
    return found


def reciprocal_ratings(meeting) -> Optional[Tuple[Any, Any]]:
    """
    Return the (1 -> 2, 2 -> 1) ratings of a meeting, or None when either
    direction is missing. If a direction was rated more than once the
    latest rating wins.
    """
    ratings = list(meeting.ratings or [])
    forward = _latest_rating(ratings, meeting.participant1_id, meeting.participant2_id)
    backward = _latest_rating(ratings, meeting.participant2_id, meeting.participant1_id)
    if forward is None or backward is None:
        return None
    return forward, backward


def synergy_score(meeting) -> Optional[int]:
    """Sum of both reciprocal ratings (2..10), None if not mutually rated."""
    pair = reciprocal_ratings(meeting)
    if pair is None:
        return None
    return pair[0].score + pair[1].score


def rank_duos(
    meetings: Sequence,
    participants: Sequence,
    include_confirmed: bool = True,
) -> List[DuoRanking]:
    """
    Rank mutually rated meetings by synergy score, highest first.

    Meetings whose participants no longer exist are skipped. A duo is
    flagged ``confirmed`` when either side already has a confirmed partner;
    pass ``include_confirmed=False`` to leave those out entirely.
    """
    by_id = {p.id: p for p in participants}
    duos: List[DuoRanking] = []

    for meeting in meetings:
        score = synergy_score(meeting)
        if score is None:
            continue

        participant_a = by_id.get(meeting.participant1_id)
        participant_b = by_id.get(meeting.participant2_id)
        if participant_a is None or participant_b is None:
            continue

        confirmed = bool(participant_a.partner_id or participant_b.partner_id)
        if confirmed and not include_confirmed:
            continue

        duos.append(DuoRanking(participant_a, participant_b, score, meeting, confirmed))

    # sorted() is stable: equal scores keep meeting order
    return sorted(duos, key=lambda d: d.score, reverse=True)


def leaderboard(participants: Sequence) -> List[Any]:
    """Participants by running average rating, best first."""
    return sorted(participants, key=lambda p: p.avg_score or 0.0, reverse=True)
