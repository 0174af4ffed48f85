"""
Meeting state machine

All meeting status changes go through here:

    scheduled -> ongoing -> completed

Status never moves backwards. Re-applying the current status is a no-op so
that a double click on "start" or "finish" is harmless.
"""
from datetime import datetime, timezone
import logging

from sqlalchemy.orm import Session

from models import Meeting, MeetingStatus
from core.locks import with_meeting_lock
from core.exceptions import MeetingNotFound, InvalidStateTransition

logger = logging.getLogger(__name__)


class MeetingStateMachine:
    TRANSITIONS = {
        MeetingStatus.SCHEDULED: {MeetingStatus.ONGOING},
        MeetingStatus.ONGOING: {MeetingStatus.COMPLETED},
        MeetingStatus.COMPLETED: set(),
    }

    @classmethod
    def can_transition(cls, current: MeetingStatus, target: MeetingStatus) -> bool:
        return target == current or target in cls.TRANSITIONS[current]

    @classmethod
    def transition(cls, meeting_id: str, target: MeetingStatus, db: Session) -> Meeting:
        """
        Move a meeting to ``target``.

        Side effects:
            entering ONGOING stamps actual_start_time

        Raises:
            MeetingNotFound: no such meeting
            InvalidStateTransition: the move is not allowed
        """
        meeting = with_meeting_lock(meeting_id, db).first()
        if not meeting:
            raise MeetingNotFound(meeting_id)

        current = meeting.status
        if current == target:
            return meeting

        if not cls.can_transition(current, target):
            raise InvalidStateTransition(
                f"Meeting {meeting_id} cannot go from {current.value} to {target.value}"
            )

        meeting.status = target
        if target == MeetingStatus.ONGOING:
            meeting.actual_start_time = datetime.now(timezone.utc)

        db.flush()
        logger.info(f"Meeting {meeting_id}: {current.value} -> {target.value}")
        return meeting
