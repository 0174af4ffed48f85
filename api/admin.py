"""
Admin API Endpoints

Every route requires the X-Admin-Passphrase header.

Responsibilities:
1. Pairing runs (full / incremental) and manual meetings
2. Roster import and deletion
3. Duo confirmation and post-event rankings
4. Event clock
5. Maintenance (score recalculation, reset)
"""
import random
import secrets
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db, get_settings
from schemas import (
    PairingRunResponse,
    DroppedPair,
    ManualMeetingCreate,
    MeetingResponse,
    ParticipantImportRequest,
    ParticipantImportResponse,
    ParticipantResponse,
    DuoConfirm,
    DuoRankingResponse,
    ClockUpdate,
    ClockResponse,
    StatusResponse,
)
from core.event_manager import EventManager
from core.participant_manager import ParticipantManager
from core.exceptions import (
    ParticipantNotFound,
    DuoAlreadyConfirmed,
    InvalidRoundNumber,
    SchedulingConflict,
)
from services.timeslot_service import get_scheduled_time

logger = logging.getLogger(__name__)


def require_admin(x_admin_passphrase: Optional[str] = Header(default=None)):
    expected = get_settings().admin_passphrase
    if x_admin_passphrase is None or not secrets.compare_digest(x_admin_passphrase, expected):
        raise HTTPException(status_code=401, detail="Invalid admin passphrase")


router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _clock_response(state) -> ClockResponse:
    return ClockResponse(
        current_round=state.current_round,
        round_started_at=state.round_started_at,
        scheduled_time=get_scheduled_time(state.current_round) if state.current_round else None,
    )


@router.post("/pairings", response_model=PairingRunResponse)
def generate_pairings(
    mode: str = Query(default="full", pattern="^(full|incremental)$"),
    seed: Optional[int] = Query(default=None),
    db: Session = Depends(get_db)
):
    """
    Run the pairing algorithm.

    mode=full replaces the whole schedule; mode=incremental keeps existing
    meetings and schedules newcomers into free slots. ``seed`` makes the
    shuffle reproducible. Zero created meetings is a valid outcome.
    """
    try:
        rng = random.Random(seed) if seed is not None else None
        result = EventManager.regenerate_pairings(db, incremental=(mode == "incremental"), rng=rng)

        return PairingRunResponse(
            mode=mode,
            created=len(result.created),
            total_meetings=len(result.meetings),
            dropped=[
                DroppedPair(
                    participant_a_id=c.participant_a.id,
                    participant_b_id=c.participant_b.id,
                    category=c.category,
                )
                for c in result.dropped
            ],
            skipped=len(result.skipped),
        )

    except Exception as e:
        logger.error(f"Pairing generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Pairing generation failed, schedule unchanged")


@router.post("/meetings", response_model=MeetingResponse)
def add_manual_meeting(data: ManualMeetingCreate, db: Session = Depends(get_db)):
    try:
        return EventManager.add_manual_meeting(
            db,
            data.participant1_id,
            data.participant2_id,
            data.round_number,
            data.category.value if data.category else None,
        )

    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")
    except (SchedulingConflict, InvalidRoundNumber) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to add manual meeting: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/participants/import", response_model=ParticipantImportResponse)
def import_participants(data: ParticipantImportRequest, db: Session = Depends(get_db)):
    try:
        created, skipped = ParticipantManager.import_participants(
            db, [record.model_dump() for record in data.participants]
        )
        return ParticipantImportResponse(created=len(created), skipped=skipped)

    except Exception as e:
        logger.error(f"Import failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/participants/{participant_id}", response_model=StatusResponse)
def delete_participant(participant_id: str, db: Session = Depends(get_db)):
    try:
        ParticipantManager.delete_participant(db, participant_id)
        return StatusResponse(status="ok")

    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")
    except Exception as e:
        logger.error(f"Failed to delete participant {participant_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/duos", response_model=List[ParticipantResponse])
def confirm_duo(data: DuoConfirm, db: Session = Depends(get_db)):
    try:
        first, second = EventManager.confirm_duo(db, data.participant1_id, data.participant2_id)
        return [first, second]

    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")
    except DuoAlreadyConfirmed as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to confirm duo: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/duos/{participant_id}", response_model=StatusResponse)
def dissolve_duo(participant_id: str, db: Session = Depends(get_db)):
    try:
        EventManager.dissolve_duo(db, participant_id)
        return StatusResponse(status="ok")

    except ParticipantNotFound:
        raise HTTPException(status_code=404, detail="Participant not found")
    except Exception as e:
        logger.error(f"Failed to dissolve duo of {participant_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/rankings", response_model=List[DuoRankingResponse])
def get_rankings(include_confirmed: bool = Query(default=True), db: Session = Depends(get_db)):
    """Mutually rated meetings by synergy score (sum of both ratings), best first."""
    rankings = EventManager.get_rankings(db, include_confirmed=include_confirmed)
    return [
        DuoRankingResponse(
            participant_a=ParticipantResponse.model_validate(d.participant_a),
            participant_b=ParticipantResponse.model_validate(d.participant_b),
            score=d.score,
            meeting_id=d.meeting.id,
            category=d.meeting.category,
            confirmed=d.confirmed,
            comments=[r.comment for r in d.meeting.ratings if r.comment],
        )
        for d in rankings
    ]


@router.get("/leaderboard", response_model=List[ParticipantResponse])
def get_leaderboard(db: Session = Depends(get_db)):
    return EventManager.get_leaderboard(db)


@router.get("/clock", response_model=ClockResponse)
def get_clock(db: Session = Depends(get_db)):
    return _clock_response(EventManager.get_event_state(db))


@router.post("/clock", response_model=ClockResponse)
def set_clock(data: ClockUpdate, db: Session = Depends(get_db)):
    try:
        return _clock_response(EventManager.set_current_round(db, data.current_round))
    except InvalidRoundNumber as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/clock/advance", response_model=ClockResponse)
def advance_clock(db: Session = Depends(get_db)):
    try:
        return _clock_response(EventManager.advance_round(db))
    except InvalidRoundNumber as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/scores/recalculate", response_model=StatusResponse)
def recalculate_scores(db: Session = Depends(get_db)):
    try:
        count = EventManager.recalculate_scores(db)
        return StatusResponse(status=f"recalculated {count} participants")
    except Exception as e:
        logger.error(f"Score recalculation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/reset", response_model=StatusResponse)
def reset_all(db: Session = Depends(get_db)):
    try:
        EventManager.reset_all(db)
        return StatusResponse(status="ok")
    except Exception as e:
        logger.error(f"Reset failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
