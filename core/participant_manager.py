"""
Participant Manager: roster lifecycle

Responsibilities:
1. Registration (self-service) and bulk import (admin)
2. Profile edits
3. Deletion
4. Lookups

Duplicate policy: a display name that already exists (case-insensitive)
resolves to the existing record; the new submission is ignored.
"""
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Tuple
import logging

from models import Participant, EventLog
from core.exceptions import ParticipantNotFound, MissingCategories, DuplicateParticipantName
from services.naming_service import (
    unique_connection_code,
    build_display_name,
    default_avatar,
)
from database import transactional

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name", "first_name", "last_name", "company", "role", "bio", "avatar", "categories",
)


def _category_values(categories) -> List[str]:
    values: List[str] = []
    for category in categories or []:
        value = getattr(category, "value", category)
        if value not in values:
            values.append(value)
    return values


class ParticipantManager:
    """Roster lifecycle manager"""

    @staticmethod
    def find_by_name(db: Session, name: str) -> Optional[Participant]:
        return db.query(Participant).filter(
            func.lower(Participant.name) == name.strip().lower()
        ).first()

    @staticmethod
    def _build(db: Session, data: Dict[str, Any]) -> Participant:
        first_name = (data.get("first_name") or "").strip()
        last_name = (data.get("last_name") or "").strip()
        name = (data.get("name") or "").strip() or build_display_name(first_name, last_name)
        if not name:
            raise ValueError("Participant needs a name")

        participant = Participant(
            name=name,
            first_name=first_name,
            last_name=last_name,
            company=data.get("company") or "",
            role=data.get("role") or "",
            bio=data.get("bio") or "",
            avatar=data.get("avatar") or default_avatar(name),
            categories=_category_values(data.get("categories")),
            avg_score=0.0,
            rating_sum=0,
            rating_count=0,
            connection_code=unique_connection_code(db),
        )
        if data.get("id"):
            participant.id = data["id"]
        db.add(participant)
        db.flush()
        return participant

    @staticmethod
    @transactional
    def register(db: Session, data: Dict[str, Any]) -> Tuple[Participant, bool]:
        """
        Self-service registration.

        Flow:
        1. require at least one category
        2. if the display name already exists, return that record untouched
        3. otherwise create the participant with a fresh connection code

        Returns:
            (participant, created)

        Raises:
            MissingCategories: no category selected
        """
        if not _category_values(data.get("categories")):
            raise MissingCategories("At least one category is required")

        name = (data.get("name") or "").strip() or build_display_name(
            data.get("first_name") or "", data.get("last_name") or ""
        )
        existing = ParticipantManager.find_by_name(db, name) if name else None
        if existing:
            logger.warning(f"Duplicate registration for {name!r}, keeping participant {existing.id}")
            return existing, False

        participant = ParticipantManager._build(db, data)
        db.add(EventLog(event_type="PARTICIPANT_REGISTERED", data={"participant_id": participant.id}))
        logger.info(f"Registered participant {participant.id} ({participant.name})")
        return participant, True

    @staticmethod
    @transactional
    def import_participants(
        db: Session, records: List[Dict[str, Any]]
    ) -> Tuple[List[Participant], List[str]]:
        """
        Bulk import of already-parsed records.

        Records without categories are accepted; they simply never get paired.
        Names already on the roster (or repeated inside the batch) are skipped.

        Returns:
            (created participants, skipped names)
        """
        created: List[Participant] = []
        skipped: List[str] = []

        for record in records:
            name = (record.get("name") or "").strip() or build_display_name(
                record.get("first_name") or "", record.get("last_name") or ""
            )
            if not name or ParticipantManager.find_by_name(db, name):
                skipped.append(name)
                continue
            created.append(ParticipantManager._build(db, record))

        untagged = sum(1 for p in created if not p.categories)
        if untagged:
            logger.warning(f"{untagged} imported participants have no category and will not be paired")

        db.add(EventLog(
            event_type="PARTICIPANTS_IMPORTED",
            data={"created": len(created), "skipped": len(skipped)},
        ))
        logger.info(f"Imported {len(created)} participants, skipped {len(skipped)}")
        return created, skipped

    @staticmethod
    @transactional
    def update_participant(db: Session, participant_id: str, updates: Dict[str, Any]) -> Participant:
        """
        Partial profile update (admin edit or self-service).

        Only profile fields are writable; scores and the confirmed partner
        have their own flows.

        Raises:
            ParticipantNotFound
            MissingCategories: categories explicitly set to an empty list
            DuplicateParticipantName: the new name belongs to someone else
        """
        participant = ParticipantManager.get_by_id(db, participant_id)

        new_name = (updates.get("name") or "").strip()
        if new_name:
            holder = ParticipantManager.find_by_name(db, new_name)
            if holder and holder.id != participant.id:
                raise DuplicateParticipantName(f"Name {new_name!r} is already on the roster")
            updates = {**updates, "name": new_name}

        for field_name in EDITABLE_FIELDS:
            if field_name not in updates or updates[field_name] is None:
                continue
            value = updates[field_name]
            if field_name == "categories":
                value = _category_values(value)
                if not value:
                    raise MissingCategories("At least one category is required")
            setattr(participant, field_name, value)

        db.flush()
        logger.info(f"Updated participant {participant_id}: {sorted(updates)}")
        return participant

    @staticmethod
    @transactional
    def delete_participant(db: Session, participant_id: str) -> None:
        """
        Remove a participant.

        Meetings involving them stay in place (orphaned). A confirmed
        partner's reference is cleared so it does not point at nothing.
        """
        participant = ParticipantManager.get_by_id(db, participant_id)

        if participant.partner_id:
            partner = db.query(Participant).filter(Participant.id == participant.partner_id).first()
            if partner and partner.partner_id == participant_id:
                partner.partner_id = None

        db.delete(participant)
        db.add(EventLog(event_type="PARTICIPANT_DELETED", data={"participant_id": participant_id}))
        logger.info(f"Deleted participant {participant_id}")

    @staticmethod
    def get_by_id(db: Session, participant_id: str) -> Participant:
        """
        Raises:
            ParticipantNotFound
        """
        participant = db.query(Participant).filter(Participant.id == participant_id).first()
        if not participant:
            raise ParticipantNotFound(participant_id)
        return participant

    @staticmethod
    def get_by_connection_code(db: Session, code: str) -> Participant:
        participant = db.query(Participant).filter(
            Participant.connection_code == code.strip().upper()
        ).first()
        if not participant:
            raise ParticipantNotFound(f"with code {code}")
        return participant

    @staticmethod
    def load_participants(db: Session) -> List[Participant]:
        """Roster snapshot in registration order."""
        return db.query(Participant).order_by(Participant.created_at, Participant.id).all()
