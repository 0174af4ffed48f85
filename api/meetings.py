"""
Meeting API Endpoints

Responsibilities:
1. Planning view (all meetings, filterable)
2. Meeting lifecycle driven by the meeting room timer
3. Rating submission (first submission and edit share one endpoint)
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from models import ProfessionalCategory
from schemas import (
    MeetingResponse,
    RatingSubmit,
    RatingSubmitResponse,
    RatingResponse,
)
from core.event_manager import EventManager
from core.exceptions import (
    MeetingNotFound,
    InvalidStateTransition,
    InvalidRating,
)

router = APIRouter(prefix="/api/meetings", tags=["meetings"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[MeetingResponse])
def list_meetings(
    round_number: Optional[int] = Query(default=None),
    category: Optional[ProfessionalCategory] = Query(default=None),
    db: Session = Depends(get_db)
):
    """All meetings ordered by round then table, optionally filtered."""
    return EventManager.load_meetings(
        db,
        round_number=round_number,
        category=category.value if category else None,
    )


@router.get("/{meeting_id}", response_model=MeetingResponse)
def get_meeting(meeting_id: str, db: Session = Depends(get_db)):
    try:
        return EventManager.get_meeting(db, meeting_id)
    except MeetingNotFound:
        raise HTTPException(status_code=404, detail="Meeting not found")


@router.post("/{meeting_id}/start", response_model=MeetingResponse)
def start_meeting(meeting_id: str, db: Session = Depends(get_db)):
    """scheduled -> ongoing; repeated calls are harmless."""
    try:
        return EventManager.start_meeting(db, meeting_id)

    except MeetingNotFound:
        raise HTTPException(status_code=404, detail="Meeting not found")
    except InvalidStateTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to start meeting {meeting_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{meeting_id}/finish", response_model=MeetingResponse)
def finish_meeting(meeting_id: str, db: Session = Depends(get_db)):
    """ongoing -> completed."""
    try:
        return EventManager.finish_meeting(db, meeting_id)

    except MeetingNotFound:
        raise HTTPException(status_code=404, detail="Meeting not found")
    except InvalidStateTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to finish meeting {meeting_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{meeting_id}/ratings", response_model=RatingSubmitResponse)
def submit_rating(meeting_id: str, data: RatingSubmit, db: Session = Depends(get_db)):
    """
    Rate the meeting partner.

    Submitting again replaces the earlier rating from the same rater, and the
    ratee's average is updated in the same transaction.
    """
    try:
        rating, ratee = EventManager.submit_rating(
            db,
            meeting_id,
            data.from_id,
            data.to_id,
            data.score,
            data.comment,
        )
        return RatingSubmitResponse(
            rating=RatingResponse.model_validate(rating),
            ratee_avg_score=ratee.avg_score if ratee else None,
        )

    except MeetingNotFound:
        raise HTTPException(status_code=404, detail="Meeting not found")
    except InvalidRating as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to submit rating on {meeting_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
