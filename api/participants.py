"""
Participant API Endpoints

Responsibilities:
1. Self-service registration
2. Profile lookup and edits
3. Personal schedule
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    ParticipantCreate,
    ParticipantUpdate,
    ParticipantResponse,
    RegistrationResponse,
    ScheduleEntry,
)
from core.participant_manager import ParticipantManager
from core.exceptions import ParticipantNotFound, MissingCategories, DuplicateParticipantName
from services.history_service import get_participant_schedule

router = APIRouter(prefix="/api/participants", tags=["participants"])
logger = logging.getLogger(__name__)


@router.post("", response_model=RegistrationResponse)
def register(data: ParticipantCreate, db: Session = Depends(get_db)):
    """
    Register a participant.

    A name already on the roster returns the existing participant
    (created=False) and the submitted data is ignored.
    """
    try:
        participant, created = ParticipantManager.register(db, data.model_dump())
        return RegistrationResponse(
            participant=ParticipantResponse.model_validate(participant),
            connection_code=participant.connection_code,
            created=created,
        )

    except (MissingCategories, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to register participant: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("", response_model=List[ParticipantResponse])
def list_participants(db: Session = Depends(get_db)):
    return ParticipantManager.load_participants(db)


@router.get("/by-code/{code}", response_model=ParticipantResponse)
def get_by_code(code: str, db: Session = Depends(get_db)):
    """Reconnect to a profile with its connection code."""
    try:
        return ParticipantManager.get_by_connection_code(db, code)
    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")


@router.get("/{participant_id}", response_model=ParticipantResponse)
def get_participant(participant_id: str, db: Session = Depends(get_db)):
    try:
        return ParticipantManager.get_by_id(db, participant_id)
    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")


@router.patch("/{participant_id}", response_model=ParticipantResponse)
def update_participant(participant_id: str, data: ParticipantUpdate, db: Session = Depends(get_db)):
    """Partial profile edit; omitted fields stay as they are."""
    try:
        return ParticipantManager.update_participant(
            db, participant_id, data.model_dump(exclude_unset=True)
        )

    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")
    except (MissingCategories, DuplicateParticipantName) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update participant {participant_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{participant_id}/schedule", response_model=List[ScheduleEntry])
def get_schedule(participant_id: str, db: Session = Depends(get_db)):
    """Meetings of one participant, ordered by round."""
    try:
        ParticipantManager.get_by_id(db, participant_id)
        return get_participant_schedule(participant_id, db)

    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")
    except Exception as e:
        logger.error(f"Failed to build schedule for {participant_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
