"""
Concurrency helpers

Database-level row locks against lost updates, built on
SELECT ... FOR UPDATE (pessimistic locking). SQLite ignores FOR UPDATE and
serializes writers on its own; PostgreSQL takes a real row lock.

Every helper refreshes rows already held in the session, so the locked
read is current.
"""
from sqlalchemy.orm import Session, Query

from models import Participant, Meeting, EventState


def with_participant_lock(participant_id: str, db: Session) -> Query:
    """
    Lock one participant row.

    Used when:
    - folding a new rating into the ratee's running average
    - writing confirmed duo references

    Example:
        ratee = with_participant_lock(to_id, db).first()
        if not ratee:
            raise ParticipantNotFound(to_id)
        ratee.rating_sum += score
        ratee.rating_count += 1

    Notes:
        - nowait=False waits for the lock instead of failing
        - populate_existing() overwrites a stale copy already in the session
        - must run inside a transaction (commit or rollback releases it)
    """
    return db.query(Participant).filter(
        Participant.id == participant_id
    ).populate_existing().with_for_update(nowait=False)


def with_meeting_lock(meeting_id: str, db: Session) -> Query:
    """
    Lock one meeting row.

    Used when:
    - changing meeting status
    - replacing a rater's rating on the meeting
    """
    return db.query(Meeting).filter(
        Meeting.id == meeting_id
    ).populate_existing().with_for_update(nowait=False)


def lock_participants(participant_ids: list[str], db: Session) -> Query:
    """
    Lock several participant rows at once, in id order so two callers
    never grab them in opposite orders.
    """
    return db.query(Participant).filter(
        Participant.id.in_(participant_ids)
    ).order_by(Participant.id).populate_existing().with_for_update(nowait=False)


def with_event_state_lock(db: Session) -> Query:
    """Lock the event clock row."""
    return db.query(EventState).filter(
        EventState.id == 1
    ).populate_existing().with_for_update(nowait=False)
