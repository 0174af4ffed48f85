"""
Pair generator: turns the roster into the list of candidate pairs.

Pure computation, no database access. Participants only need ``id`` and
``categories`` attributes, so ORM rows and plain objects both work.
"""
import random
from dataclasses import dataclass, field
from typing import Any, FrozenSet, List, Optional, Sequence


@dataclass(frozen=True)
class CandidatePair:
    """Two participants sharing at least one category, not yet scheduled."""
    participant_a: Any
    participant_b: Any
    category: str
    key: FrozenSet[str] = field(init=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, "key", frozenset((self.participant_a.id, self.participant_b.id))
        )


def _category_value(category) -> str:
    return getattr(category, "value", category)


def shared_categories(participant_a, participant_b) -> List[str]:
    """
    Categories held by both participants, in participant A's storage order.

    Example:
        A=[DSI, Data & IA], B=[Data & IA, DSI] -> [DSI, Data & IA]
    """
    tags_b = {_category_value(c) for c in (participant_b.categories or [])}
    return [
        _category_value(c)
        for c in (participant_a.categories or [])
        if _category_value(c) in tags_b
    ]


def generate_candidate_pairs(participants: Sequence) -> List[CandidatePair]:
    """
    Enumerate every unordered pair of participants that shares a category.

    Rules:
    - each compatible pair appears exactly once, A before B in roster order
    - pairs with no common category are never emitted
    - the recorded category is the first tag of A that B also holds

    Runs in O(n^2) over the roster.
    """
    candidates: List[CandidatePair] = []
    roster = list(participants)

    for i, participant_a in enumerate(roster):
        for participant_b in roster[i + 1:]:
            common = shared_categories(participant_a, participant_b)
            if common:
                candidates.append(CandidatePair(participant_a, participant_b, common[0]))

    return candidates


def shuffle_candidates(
    candidates: Sequence[CandidatePair],
    rng: Optional[random.Random] = None,
) -> List[CandidatePair]:
    """
    Return a shuffled copy of the candidate list.

    The order decides who gets a slot when not every pair fits in the
    available rounds. Pass a seeded ``random.Random`` for reproducible runs;
    without one a fresh generator seeded from OS entropy is used.
    """
    rng = rng or random.Random()
    shuffled = list(candidates)
    rng.shuffle(shuffled)
    return shuffled


def build_candidate_list(
    participants: Sequence,
    rng: Optional[random.Random] = None,
) -> List[CandidatePair]:
    """Generate the candidate pairs and shuffle them in one step."""
    return shuffle_candidates(generate_candidate_pairs(participants), rng)
