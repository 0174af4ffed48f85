"""
Event Manager: everything the administrator and the meeting flow drive

Responsibilities:
1. Pairing runs (full and incremental) and manual meetings
2. Meeting lifecycle (start / finish)
3. Rating submission and running averages
4. Confirmed duos and post-event rankings
5. Event clock (active round)

The pure services compute; this layer loads snapshots, persists results
and records EventLog entries. A pairing run builds the whole meeting set in
memory before the first write, so a failure leaves the stored schedule as it was.
"""
import random
from datetime import datetime, timezone
from typing import List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from models import (
    Participant,
    Meeting,
    MeetingStatus,
    Rating,
    EventState,
    EventLog,
)
from core.state_machine import MeetingStateMachine
from core.locks import (
    with_meeting_lock,
    with_participant_lock,
    lock_participants,
    with_event_state_lock,
)
from core.exceptions import (
    ParticipantNotFound,
    MeetingNotFound,
    InvalidRating,
    DuoAlreadyConfirmed,
    InvalidRoundNumber,
    SchedulingConflict,
)
from core.participant_manager import ParticipantManager
from services.pairing_service import shared_categories
from services.schedule_service import (
    ROUND_COUNT,
    ScheduleResult,
    generate_schedule,
    make_meeting_id,
    pair_key,
)
from services.scoring_service import (
    RunningAverage,
    average_score,
    ratings_received,
    validate_score,
)
from services.ranking_service import DuoRanking, rank_duos, leaderboard
from services.timeslot_service import get_scheduled_time
from database import transactional

logger = logging.getLogger(__name__)


class EventManager:
    """Pairing, meeting, rating and clock manager"""

    # ============ Meetings ============

    @staticmethod
    def load_meetings(
        db: Session,
        round_number: Optional[int] = None,
        category: Optional[str] = None,
    ) -> List[Meeting]:
        query = db.query(Meeting)
        if round_number is not None:
            query = query.filter(Meeting.round_number == round_number)
        if category is not None:
            query = query.filter(Meeting.category == category)
        return query.order_by(Meeting.round_number, Meeting.table_number).all()

    @staticmethod
    def get_meeting(db: Session, meeting_id: str) -> Meeting:
        meeting = db.query(Meeting).filter(Meeting.id == meeting_id).first()
        if not meeting:
            raise MeetingNotFound(meeting_id)
        return meeting

    @staticmethod
    def save_meetings(db: Session, meetings: List[Meeting], replace: bool) -> None:
        """
        Persist a meeting set.

        replace=True drops every stored meeting (and its ratings) first;
        replace=False only adds the given meetings.
        """
        if replace:
            for old in db.query(Meeting).all():
                db.delete(old)
            # flush deletes before inserts: regenerated ids can repeat old ones
            db.flush()
        db.add_all(meetings)
        db.flush()

    @staticmethod
    @transactional
    def regenerate_pairings(
        db: Session,
        incremental: bool = False,
        rng: Optional[random.Random] = None,
    ) -> ScheduleResult:
        """
        Run the pairing algorithm on the current roster and store the result.

        Modes:
            full: the generated schedule replaces every existing meeting
            incremental: existing meetings are kept, only pairs that have not
                met yet are scheduled into the remaining free slots

        Args:
            db: SQLAlchemy Session
            incremental: pick the mode
            rng: shuffle source; pass a seeded random.Random for reproducible runs

        Returns:
            ScheduleResult (``created`` holds the new meetings, ``dropped``
            the candidates that fit no round)
        """
        participants = ParticipantManager.load_participants(db)
        existing = EventManager.load_meetings(db) if incremental else None

        result = generate_schedule(participants, existing_meetings=existing, rng=rng)

        EventManager.save_meetings(db, result.created, replace=not incremental)
        if not incremental:
            # the replaced meetings took their ratings with them
            EventManager._reseed_scores(db, participants)

        db.add(EventLog(
            event_type="PAIRINGS_GENERATED",
            data={
                "mode": "incremental" if incremental else "full",
                "participants": len(participants),
                "created": len(result.created),
                "dropped": len(result.dropped),
                "skipped": len(result.skipped),
            },
        ))
        logger.info(
            f"Pairings generated ({'incremental' if incremental else 'full'}): "
            f"{len(result.created)} meetings for {len(participants)} participants"
        )
        return result

    @staticmethod
    @transactional
    def add_manual_meeting(
        db: Session,
        participant1_id: str,
        participant2_id: str,
        round_number: int,
        category: Optional[str] = None,
    ) -> Meeting:
        """
        Administrator places a pair by hand at the next free table of a round.

        Raises:
            ParticipantNotFound
            InvalidRoundNumber: round outside 1..ROUND_COUNT
            SchedulingConflict: same person twice, a participant already
                busy in that round, or the pair already met
        """
        if not 1 <= round_number <= ROUND_COUNT:
            raise InvalidRoundNumber(f"Round must be between 1 and {ROUND_COUNT}, got {round_number}")
        if participant1_id == participant2_id:
            raise SchedulingConflict("A participant cannot meet themselves")

        participant1 = ParticipantManager.get_by_id(db, participant1_id)
        participant2 = ParticipantManager.get_by_id(db, participant2_id)

        # same orientation as the generator, so the pair/round keeps one id
        roster_position = {p.id: i for i, p in enumerate(ParticipantManager.load_participants(db))}
        if roster_position[participant2_id] < roster_position[participant1_id]:
            participant1, participant2 = participant2, participant1
            participant1_id, participant2_id = participant2_id, participant1_id

        existing = EventManager.load_meetings(db)
        key = frozenset((participant1_id, participant2_id))
        for meeting in existing:
            if pair_key(meeting) == key:
                raise SchedulingConflict(
                    f"{participant1_id} and {participant2_id} already meet in round {meeting.round_number}"
                )
            if meeting.round_number == round_number and (
                meeting.involves(participant1_id) or meeting.involves(participant2_id)
            ):
                raise SchedulingConflict(f"Round {round_number} already booked for one of the participants")

        if category is None:
            common = shared_categories(participant1, participant2)
            category = common[0] if common else None

        table_number = 1 + max(
            (m.table_number for m in existing if m.round_number == round_number), default=0
        )
        meeting = Meeting(
            id=make_meeting_id(participant1_id, participant2_id, round_number),
            participant1_id=participant1_id,
            participant2_id=participant2_id,
            round_number=round_number,
            table_number=table_number,
            scheduled_time=get_scheduled_time(round_number),
            status=MeetingStatus.SCHEDULED,
            category=category,
        )
        db.add(meeting)
        db.add(EventLog(event_type="MEETING_ADDED", data={"meeting_id": meeting.id}))
        db.flush()

        logger.info(f"Manual meeting {meeting.id} at table {table_number}")
        return meeting

    @staticmethod
    @transactional
    def start_meeting(db: Session, meeting_id: str) -> Meeting:
        """scheduled -> ongoing, stamps the actual start time."""
        return MeetingStateMachine.transition(meeting_id, MeetingStatus.ONGOING, db)

    @staticmethod
    @transactional
    def finish_meeting(db: Session, meeting_id: str) -> Meeting:
        """ongoing -> completed."""
        return MeetingStateMachine.transition(meeting_id, MeetingStatus.COMPLETED, db)

    # ============ Ratings ============

    @staticmethod
    @transactional
    def submit_rating(
        db: Session,
        meeting_id: str,
        from_id: str,
        to_id: str,
        score: int,
        comment: Optional[str] = None,
    ) -> Tuple[Rating, Optional[Participant]]:
        """
        Record a rating and update the ratee's average in the same transaction.

        Flow (first submission and edit are the same path):
        1. validate the score and that both ids belong to the meeting
        2. lock the meeting, drop any earlier rating by this rater
        3. append the new rating
        4. lock the ratee and fold the score into its running sum/count

        Returns:
            (rating, ratee) - ratee is None when that participant was deleted

        Raises:
            InvalidRating: bad score, wrong participants, self rating
            MeetingNotFound
        """
        validate_score(score)

        meeting = with_meeting_lock(meeting_id, db).first()
        if not meeting:
            raise MeetingNotFound(meeting_id)

        if from_id == to_id:
            raise InvalidRating("A participant cannot rate themselves")
        if not (meeting.involves(from_id) and meeting.involves(to_id)):
            raise InvalidRating(f"{from_id} and {to_id} are not the participants of meeting {meeting_id}")

        replaced_scores = []
        for previous in list(meeting.ratings):
            if previous.from_id == from_id:
                replaced_scores.append(previous.score)
                meeting.ratings.remove(previous)

        rating = Rating(
            meeting_id=meeting_id,
            from_id=from_id,
            to_id=to_id,
            score=score,
            comment=comment,
        )
        meeting.ratings.append(rating)

        ratee = with_participant_lock(to_id, db).first()
        if ratee:
            running = RunningAverage(ratee.rating_sum or 0, ratee.rating_count or 0)
            running = running.without(replaced_scores).apply(score)
            ratee.rating_sum = running.total
            ratee.rating_count = running.count
            ratee.avg_score = running.average
        else:
            logger.warning(f"Rating for deleted participant {to_id} on meeting {meeting_id}")

        db.flush()
        logger.info(
            f"Rating {from_id} -> {to_id} on {meeting_id}: {score}"
            f"{' (replaces ' + str(replaced_scores) + ')' if replaced_scores else ''}"
        )
        return rating, ratee

    @staticmethod
    def _reseed_scores(db: Session, participants: List[Participant]) -> None:
        """Set sum/count/average of each participant from the ratings currently stored."""
        meetings = EventManager.load_meetings(db)
        for participant in participants:
            received = ratings_received(meetings, participant.id)
            participant.rating_sum = sum(r.score for r in received)
            participant.rating_count = len(received)
            participant.avg_score = average_score(meetings, participant.id)
        db.flush()

    @staticmethod
    @transactional
    def recalculate_scores(db: Session) -> int:
        """
        Rebuild every participant's sum/count/average from the stored ratings.

        Returns:
            number of participants updated
        """
        participants = ParticipantManager.load_participants(db)
        EventManager._reseed_scores(db, participants)

        db.add(EventLog(event_type="SCORES_RECALCULATED", data={"participants": len(participants)}))
        logger.info(f"Recalculated scores for {len(participants)} participants")
        return len(participants)

    # ============ Duos ============

    @staticmethod
    def get_rankings(db: Session, include_confirmed: bool = True) -> List[DuoRanking]:
        return rank_duos(
            EventManager.load_meetings(db),
            ParticipantManager.load_participants(db),
            include_confirmed=include_confirmed,
        )

    @staticmethod
    def get_leaderboard(db: Session) -> List[Participant]:
        return leaderboard(ParticipantManager.load_participants(db))

    @staticmethod
    @transactional
    def confirm_duo(db: Session, participant1_id: str, participant2_id: str) -> Tuple[Participant, Participant]:
        """
        Officially confirm two participants as a duo (mutual partner references).

        Confirming an already confirmed pair again is a no-op.

        Raises:
            ParticipantNotFound
            DuoAlreadyConfirmed: either side is confirmed with someone else
        """
        if participant1_id == participant2_id:
            raise DuoAlreadyConfirmed("A participant cannot form a duo alone")

        locked = {p.id: p for p in lock_participants([participant1_id, participant2_id], db).all()}
        for participant_id in (participant1_id, participant2_id):
            if participant_id not in locked:
                raise ParticipantNotFound(participant_id)

        first, second = locked[participant1_id], locked[participant2_id]
        if first.partner_id not in (None, second.id) or second.partner_id not in (None, first.id):
            raise DuoAlreadyConfirmed(
                f"{first.id} or {second.id} already has a confirmed partner"
            )

        first.partner_id = second.id
        second.partner_id = first.id
        db.add(EventLog(event_type="DUO_CONFIRMED", data={"participants": [first.id, second.id]}))
        db.flush()

        logger.info(f"Duo confirmed: {first.id} & {second.id}")
        return first, second

    @staticmethod
    @transactional
    def dissolve_duo(db: Session, participant_id: str) -> None:
        """Clear a confirmed duo from either side."""
        participant = with_participant_lock(participant_id, db).first()
        if not participant:
            raise ParticipantNotFound(participant_id)
        if not participant.partner_id:
            return

        partner = with_participant_lock(participant.partner_id, db).first()
        if partner and partner.partner_id == participant.id:
            partner.partner_id = None
        former = participant.partner_id
        participant.partner_id = None

        db.add(EventLog(event_type="DUO_DISSOLVED", data={"participants": [participant_id, former]}))
        logger.info(f"Duo dissolved: {participant_id} & {former}")

    # ============ Event clock ============

    @staticmethod
    def get_event_state(db: Session) -> EventState:
        state = db.query(EventState).filter(EventState.id == 1).first()
        if not state:
            state = EventState(id=1, current_round=0)
            db.add(state)
            db.flush()
        return state

    @staticmethod
    @transactional
    def set_current_round(db: Session, round_number: int) -> EventState:
        """
        Make ``round_number`` the active round (0 means not started).

        Raises:
            InvalidRoundNumber: outside 0..ROUND_COUNT
        """
        if not 0 <= round_number <= ROUND_COUNT:
            raise InvalidRoundNumber(f"Round must be between 0 and {ROUND_COUNT}, got {round_number}")

        EventManager.get_event_state(db)
        state = with_event_state_lock(db).first()
        return EventManager._move_clock(db, state, round_number)

    @staticmethod
    def _move_clock(db: Session, state: EventState, round_number: int) -> EventState:
        previous = state.current_round
        state.current_round = round_number
        state.round_started_at = datetime.now(timezone.utc) if round_number else None

        db.add(EventLog(event_type="ROUND_CHANGED", data={"from": previous, "to": round_number}))
        db.flush()
        logger.info(f"Event clock: round {previous} -> {round_number}")
        return state

    @staticmethod
    @transactional
    def advance_round(db: Session) -> EventState:
        """
        Move the clock to the next round.

        The current round is read under the event-state lock, so two
        concurrent advances move the clock twice.

        Raises:
            InvalidRoundNumber: already at the last round
        """
        EventManager.get_event_state(db)
        state = with_event_state_lock(db).first()
        if state.current_round >= ROUND_COUNT:
            raise InvalidRoundNumber(f"Already at the last round ({ROUND_COUNT})")
        return EventManager._move_clock(db, state, state.current_round + 1)

    # ============ Reset ============

    @staticmethod
    @transactional
    def reset_all(db: Session) -> None:
        """Wipe meetings, ratings and participants; stop the clock."""
        db.query(Rating).delete()
        db.query(Meeting).delete()
        db.query(Participant).delete()
        state = EventManager.get_event_state(db)
        state.current_round = 0
        state.round_started_at = None
        db.add(EventLog(event_type="EVENT_RESET", data={}))
        logger.info("Event reset")
