"""
ORM entities for the speed networking event.

Participant -> Meeting -> Rating, plus the single-row event clock and an
audit log of administrator actions.
"""
import enum
import uuid

from sqlalchemy import (
    Column,
    Integer,
    Float,
    String,
    Text,
    DateTime,
    ForeignKey,
    JSON,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base


class ProfessionalCategory(str, enum.Enum):
    """Closed list of professional categories a participant may hold."""
    DSI = "DSI"
    RSSI_CYBER = "RSSI ou Expert Cyber"
    ARCHITECTE = "Architecte d'Entreprise"
    INFRA_NET = "Responsable ou Expert Infrastructure, Systèmes & Réseaux"
    DATA_IA = "Responsable ou Expert Data & IA"
    PMO_PO_PM = "PMO-PO-PM"
    MARKETING_ECOMMERCE = "Responsable Marketing digital et/ou E-commerce"
    RH_RECRUTEUR = "RH ou recruteur"
    DIR_PRESTATAIRE = "Direction générale ou commerciale d'entreprise prestataire"
    DIR_ECOLE = "Direction d'écoles/université & Responsable enseignement"
    ACHETEUR_JURISTE = "Acheteur ou Juriste"
    AUTRE = "Autre"


class MeetingStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class Participant(Base):
    __tablename__ = "participants"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False, index=True)
    first_name = Column(String(100), default="")
    last_name = Column(String(100), default="")
    company = Column(String(200), default="")
    role = Column(String(200), default="")
    bio = Column(Text, default="")
    avatar = Column(String(500), default="")
    # stored in selection order; pairing picks the first shared tag in this order
    categories = Column(JSON, nullable=False, default=list)

    avg_score = Column(Float, nullable=False, default=0.0)
    rating_sum = Column(Integer, nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)

    partner_id = Column(String(64), nullable=True)
    connection_code = Column(String(16), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Participant {self.id} {self.name!r}>"


class Meeting(Base):
    __tablename__ = "meetings"

    id = Column(String(200), primary_key=True)
    # plain columns, not foreign keys: deleting a participant leaves its meetings in place
    participant1_id = Column(String(64), nullable=False, index=True)
    participant2_id = Column(String(64), nullable=False, index=True)
    round_number = Column(Integer, nullable=False, index=True)
    table_number = Column(Integer, nullable=False)
    scheduled_time = Column(String(20), nullable=False, default="")
    status = Column(SQLEnum(MeetingStatus), nullable=False, default=MeetingStatus.SCHEDULED)
    category = Column(String(200), nullable=True)
    actual_start_time = Column(DateTime(timezone=True), nullable=True)

    ratings = relationship(
        "Rating",
        back_populates="meeting",
        order_by="Rating.id",
        cascade="all, delete-orphan",
    )

    def involves(self, participant_id: str) -> bool:
        return participant_id in (self.participant1_id, self.participant2_id)

    def partner_of(self, participant_id: str) -> str:
        if participant_id == self.participant1_id:
            return self.participant2_id
        if participant_id == self.participant2_id:
            return self.participant1_id
        raise ValueError(f"Participant {participant_id} is not in meeting {self.id}")

    def __repr__(self):
        return (
            f"<Meeting {self.id} round={self.round_number} table={self.table_number}>"
        )


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    meeting_id = Column(String(200), ForeignKey("meetings.id"), nullable=False, index=True)
    from_id = Column(String(64), nullable=False)
    to_id = Column(String(64), nullable=False, index=True)
    score = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    meeting = relationship("Meeting", back_populates="ratings")


class EventState(Base):
    """Single row holding the live event clock."""
    __tablename__ = "event_state"

    id = Column(Integer, primary_key=True, default=1)
    current_round = Column(Integer, nullable=False, default=0)  # 0 = not started
    round_started_at = Column(DateTime(timezone=True), nullable=True)


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(50), nullable=False)
    data = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
