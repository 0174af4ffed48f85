"""
Participant schedule service.

Builds a per-participant view of their meetings (round by round) so the
frontend can render the personal planning and the post-event synthesis
straight from the server.
"""
from typing import List, Dict, Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_settings
from models import Meeting, MeetingStatus, Participant
from services.timeslot_service import seconds_remaining


def get_participant_schedule(participant_id: str, db: Session) -> List[Dict[str, Any]]:
    """
    Return the participant's meetings ordered by round.

    Each entry holds the partner's public profile, the table, the slot,
    the meeting status and the rating this participant gave, if any.
    Meetings whose partner has been deleted still appear, with the partner
    fields set to None.
    """
    meetings = (
        db.query(Meeting)
        .filter(or_(Meeting.participant1_id == participant_id,
                    Meeting.participant2_id == participant_id))
        .order_by(Meeting.round_number)
        .all()
    )

    partner_ids = {m.partner_of(participant_id) for m in meetings}
    partners = {
        p.id: p
        for p in db.query(Participant).filter(Participant.id.in_(partner_ids)).all()
    } if partner_ids else {}

    duration = get_settings().meeting_duration_seconds
    schedule: List[Dict[str, Any]] = []

    for meeting in meetings:
        partner = partners.get(meeting.partner_of(participant_id))
        my_rating = None
        for rating in meeting.ratings:
            if rating.from_id == participant_id:
                my_rating = rating

        entry: Dict[str, Any] = {
            "meeting_id": meeting.id,
            "round_number": meeting.round_number,
            "table_number": meeting.table_number,
            "scheduled_time": meeting.scheduled_time,
            "status": meeting.status,
            "category": meeting.category,
            "partner_id": partner.id if partner else None,
            "partner_name": partner.name if partner else None,
            "partner_company": partner.company if partner else None,
            "partner_categories": list(partner.categories or []) if partner else [],
            "my_score": my_rating.score if my_rating else None,
            "my_comment": my_rating.comment if my_rating else None,
            "seconds_remaining": (
                0 if meeting.status == MeetingStatus.COMPLETED
                else seconds_remaining(meeting.actual_start_time, duration_seconds=duration)
            ),
        }
        schedule.append(entry)

    return schedule
