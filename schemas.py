"""
Request/response schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer

from models import ProfessionalCategory, MeetingStatus


# ============ Participant ============

class ParticipantCreate(BaseModel):
    """Self-service registration form"""
    name: Optional[str] = Field(default=None, max_length=200)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    company: str = Field(default="", max_length=200)
    role: str = Field(default="", max_length=200)
    bio: str = ""
    avatar: Optional[str] = None
    categories: List[ProfessionalCategory] = Field(..., min_length=1)


class ParticipantImport(BaseModel):
    """A record produced by the external spreadsheet parser; categories may be empty"""
    id: Optional[str] = None
    name: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    role: str = ""
    bio: str = ""
    avatar: Optional[str] = None
    categories: List[ProfessionalCategory] = Field(default_factory=list)


class ParticipantImportRequest(BaseModel):
    participants: List[ParticipantImport]


class ParticipantImportResponse(BaseModel):
    created: int
    skipped: List[str]


class ParticipantUpdate(BaseModel):
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    categories: Optional[List[ProfessionalCategory]] = None


class ParticipantResponse(BaseModel):
    id: str
    name: str
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    role: str = ""
    bio: str = ""
    avatar: str = ""
    categories: List[str]
    avg_score: float
    partner_id: Optional[str] = None

    class Config:
        from_attributes = True


class RegistrationResponse(BaseModel):
    participant: ParticipantResponse
    connection_code: str
    created: bool


# ============ Meeting ============

class RatingResponse(BaseModel):
    meeting_id: str
    from_id: str
    to_id: str
    score: int
    comment: Optional[str] = None

    class Config:
        from_attributes = True


class MeetingResponse(BaseModel):
    id: str
    participant1_id: str
    participant2_id: str
    round_number: int
    table_number: int
    scheduled_time: str
    status: MeetingStatus
    category: Optional[str] = None
    actual_start_time: Optional[datetime] = None
    ratings: List[RatingResponse] = Field(default_factory=list)

    @field_serializer('actual_start_time')
    def serialize_dt(self, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        return dt.isoformat()

    class Config:
        from_attributes = True


class ManualMeetingCreate(BaseModel):
    participant1_id: str
    participant2_id: str
    round_number: int = Field(..., ge=1)
    category: Optional[ProfessionalCategory] = None


class ScheduleEntry(BaseModel):
    meeting_id: str
    round_number: int
    table_number: int
    scheduled_time: str
    status: MeetingStatus
    category: Optional[str] = None
    partner_id: Optional[str] = None
    partner_name: Optional[str] = None
    partner_company: Optional[str] = None
    partner_categories: List[str] = Field(default_factory=list)
    my_score: Optional[int] = None
    my_comment: Optional[str] = None
    seconds_remaining: int


class RatingSubmit(BaseModel):
    from_id: str
    to_id: str
    # range is checked by the scoring service so both API and managers agree
    score: int
    comment: Optional[str] = Field(default=None, max_length=2000)


class RatingSubmitResponse(BaseModel):
    rating: RatingResponse
    ratee_avg_score: Optional[float] = None


# ============ Admin ============

class DroppedPair(BaseModel):
    participant_a_id: str
    participant_b_id: str
    category: str


class PairingRunResponse(BaseModel):
    mode: str
    created: int
    total_meetings: int
    dropped: List[DroppedPair]
    skipped: int


class DuoConfirm(BaseModel):
    participant1_id: str
    participant2_id: str


class DuoRankingResponse(BaseModel):
    participant_a: ParticipantResponse
    participant_b: ParticipantResponse
    score: int
    meeting_id: str
    category: Optional[str] = None
    confirmed: bool
    comments: List[str] = Field(default_factory=list)


class ClockUpdate(BaseModel):
    current_round: int = Field(..., ge=0)


class ClockResponse(BaseModel):
    current_round: int
    round_started_at: Optional[datetime] = None
    scheduled_time: Optional[str] = None

    @field_serializer('round_started_at')
    def serialize_dt(self, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        return dt.isoformat()


class StatusResponse(BaseModel):
    status: str
