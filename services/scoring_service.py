"""
Scoring service: rating validation and participant average scores

Pure computation. Two ways to obtain an average:
- average_score(): full recomputation over every rating received
- RunningAverage: sum/count kept on the participant row and updated in place,
  which the rating flow applies under a row lock
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from core.exceptions import InvalidRating

MIN_SCORE = 1
MAX_SCORE = 5


def validate_score(score) -> int:
    """
    Check a rating score.

    Raises:
        InvalidRating: not an integer in [1, 5]
    """
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidRating(f"Score must be an integer, got {score!r}")
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidRating(f"Score must be between {MIN_SCORE} and {MAX_SCORE}, got {score}")
    return score


def ratings_received(meetings: Iterable, participant_id: str) -> List:
    """Every rating directed at a participant, across all meetings."""
    return [
        rating
        for meeting in meetings
        for rating in (meeting.ratings or [])
        if rating.to_id == participant_id
    ]


def average_score(meetings: Iterable, participant_id: str) -> float:
    """
    Arithmetic mean of every rating received by a participant.

    Example:
        ratings [3, 5, 4] -> 4.0
        ratings [3, 5, 4, 2] -> 3.5
        no ratings -> 0.0
    """
    scores = [r.score for r in ratings_received(meetings, participant_id)]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def merge_rating(ratings: Iterable, new_rating) -> List:
    """
    Replace any earlier rating from the same rater for the same meeting,
    then append the new one. First submissions and edits share this path.
    """
    kept = [
        r for r in ratings
        if not (r.meeting_id == new_rating.meeting_id and r.from_id == new_rating.from_id)
    ]
    kept.append(new_rating)
    return kept


@dataclass
class RunningAverage:
    total: int = 0
    count: int = 0

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0

    def apply(self, new_score: int, replaced_score: Optional[int] = None) -> "RunningAverage":
        """
        Fold a rating into the running sum.

        Args:
            new_score: the submitted score
            replaced_score: the score it overrides when the rater edits an
                existing rating, otherwise None
        """
        total, count = self.total, self.count
        if replaced_score is not None:
            total -= replaced_score
            count -= 1
        return RunningAverage(total + new_score, count + 1)

    def without(self, removed_scores: Sequence[int]) -> "RunningAverage":
        """Take removed ratings back out of the sum and the count."""
        return RunningAverage(self.total - sum(removed_scores), self.count - len(removed_scores))
