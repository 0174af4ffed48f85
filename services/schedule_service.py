"""
Round assignment engine: places candidate pairs into rounds and tables.

Pure computation, no database access. The caller loads a snapshot of the
roster and the existing meetings, runs the engine, then persists the result.

Algorithm (greedy, first-fit):
1. every participant starts with an empty set of occupied rounds
2. every round starts with table counter 1
3. for each candidate in list order, scan rounds 1..ROUND_COUNT and take
   the first round where both participants are free
4. a candidate that fits no round is dropped, never retried

Incremental mode seeds occupancy and table counters from the existing
meetings and skips pairs that have already met.
"""
import logging
import random
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set

from models import Meeting, MeetingStatus
from services.pairing_service import CandidatePair, build_candidate_list
from services.timeslot_service import get_scheduled_time

logger = logging.getLogger(__name__)

ROUND_COUNT = 7


@dataclass
class ScheduleResult:
    """
    Output of one pairing run.

    meetings: the complete meeting set to persist (existing + created in
              incremental mode, created only in full mode)
    created:  meetings generated by this run
    dropped:  candidates that fit in no round
    skipped:  candidates filtered out because the pair already met
    """
    meetings: List[Meeting] = field(default_factory=list)
    created: List[Meeting] = field(default_factory=list)
    dropped: List[CandidatePair] = field(default_factory=list)
    skipped: List[CandidatePair] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.created


def make_meeting_id(participant_a_id: str, participant_b_id: str, round_number: int) -> str:
    """
    Deterministic meeting id: the same pair in the same round always yields
    the same id, whichever run produced it.
    """
    return f"m-{participant_a_id}-{participant_b_id}-{round_number}"


def pair_key(meeting) -> FrozenSet[str]:
    return frozenset((meeting.participant1_id, meeting.participant2_id))


def _seed_from_existing(
    existing_meetings: Iterable,
    round_count: int,
) -> tuple:
    occupied: Dict[str, Set[int]] = defaultdict(set)
    table_counters: Dict[int, int] = {r: 1 for r in range(1, round_count + 1)}
    met: Set[FrozenSet[str]] = set()

    for meeting in existing_meetings:
        occupied[meeting.participant1_id].add(meeting.round_number)
        occupied[meeting.participant2_id].add(meeting.round_number)
        met.add(pair_key(meeting))
        if meeting.round_number in table_counters:
            table_counters[meeting.round_number] = max(
                table_counters[meeting.round_number], meeting.table_number + 1
            )

    return occupied, table_counters, met


def assign_rounds(
    candidates: Sequence[CandidatePair],
    existing_meetings: Optional[Sequence] = None,
    round_count: int = ROUND_COUNT,
) -> ScheduleResult:
    """
    Place candidates into the first round where both participants are free.

    Args:
        candidates: ordered candidate list (usually shuffled)
        existing_meetings: None for a full regeneration, the current meeting
            set for an incremental run
        round_count: number of rounds available

    Returns:
        ScheduleResult. Full mode replaces the meeting set with the created
        meetings; incremental mode returns the union and never touches the
        existing meetings.
    """
    incremental = existing_meetings is not None
    existing = list(existing_meetings or [])
    occupied, table_counters, met = _seed_from_existing(existing, round_count)

    result = ScheduleResult()

    for candidate in candidates:
        if incremental and candidate.key in met:
            result.skipped.append(candidate)
            continue

        a_id = candidate.participant_a.id
        b_id = candidate.participant_b.id
        placed = False

        for round_number in range(1, round_count + 1):
            if round_number in occupied[a_id] or round_number in occupied[b_id]:
                continue

            meeting = Meeting(
                id=make_meeting_id(a_id, b_id, round_number),
                participant1_id=a_id,
                participant2_id=b_id,
                round_number=round_number,
                table_number=table_counters[round_number],
                scheduled_time=get_scheduled_time(round_number),
                status=MeetingStatus.SCHEDULED,
                category=candidate.category,
            )
            table_counters[round_number] += 1
            occupied[a_id].add(round_number)
            occupied[b_id].add(round_number)
            met.add(candidate.key)
            result.created.append(meeting)
            placed = True
            break

        if not placed:
            result.dropped.append(candidate)

    result.meetings = existing + result.created if incremental else list(result.created)

    if result.dropped:
        logger.warning(
            f"{len(result.dropped)} candidate pairs did not fit in {round_count} rounds and were dropped"
        )
    logger.info(
        f"Round assignment ({'incremental' if incremental else 'full'}): "
        f"{len(result.created)} created, {len(result.skipped)} already met, "
        f"{len(result.dropped)} dropped"
    )
    return result


def generate_schedule(
    participants: Sequence,
    existing_meetings: Optional[Sequence] = None,
    rng: Optional[random.Random] = None,
    round_count: int = ROUND_COUNT,
) -> ScheduleResult:
    """
    Run the whole pipeline: candidate generation, shuffle, round assignment.

    Args:
        participants: roster snapshot
        existing_meetings: None for full mode, current meetings for incremental mode
        rng: random source for the shuffle; seed it for reproducible output
        round_count: number of rounds available
    """
    candidates = build_candidate_list(participants, rng)
    return assign_rounds(candidates, existing_meetings, round_count)


def meetings_by_round(meetings: Iterable) -> Dict[int, List]:
    """Group meetings by round, each group sorted by table number."""
    grouped: Dict[int, List] = defaultdict(list)
    for meeting in meetings:
        grouped[meeting.round_number].append(meeting)
    return {
        round_number: sorted(group, key=lambda m: m.table_number)
        for round_number, group in sorted(grouped.items())
    }
