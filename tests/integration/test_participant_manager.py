"""Integration tests for the roster lifecycle."""

import random

import pytest

from core.event_manager import EventManager
from core.participant_manager import ParticipantManager
from core.exceptions import DuplicateParticipantName, MissingCategories, ParticipantNotFound
from models import Meeting, ProfessionalCategory


class TestRegister:
    """Tests for self-service registration."""

    def test_creates_participant(self, db):
        participant, created = ParticipantManager.register(db, {
            "first_name": "Alice",
            "last_name": "Martin",
            "company": "DataStream Solutions",
            "categories": [ProfessionalCategory.DATA_IA, ProfessionalCategory.DSI],
        })

        assert created
        assert participant.name == "Alice Martin"
        assert participant.categories == ["Responsable ou Expert Data & IA", "DSI"]
        assert participant.avg_score == 0.0
        assert len(participant.connection_code) == 6
        assert participant.avatar.startswith("https://")

    def test_duplicate_name_keeps_existing(self, db):
        """Test a second registration with the same name returns the first record unchanged."""
        first, _ = ParticipantManager.register(db, {"name": "Alice Martin", "company": "A", "categories": ["DSI"]})
        second, created = ParticipantManager.register(
            db, {"name": "alice martin", "company": "B", "categories": ["Autre"]}
        )

        assert not created
        assert second.id == first.id
        assert second.company == "A"
        assert second.categories == ["DSI"]

    def test_categories_required(self, db):
        with pytest.raises(MissingCategories):
            ParticipantManager.register(db, {"name": "Nobody", "categories": []})

    def test_duplicate_tags_collapsed(self, db):
        participant, _ = ParticipantManager.register(db, {"name": "Dup", "categories": ["DSI", "DSI", "Autre"]})
        assert participant.categories == ["DSI", "Autre"]


class TestImport:
    """Tests for bulk import."""

    def test_import_skips_duplicates(self, db):
        ParticipantManager.register(db, {"name": "Alice", "categories": ["DSI"]})

        created, skipped = ParticipantManager.import_participants(db, [
            {"name": "Alice", "categories": ["DSI"]},
            {"name": "Bob", "categories": ["DSI"]},
            {"name": "Bob", "categories": ["Autre"]},
            {"name": "Untagged", "categories": []},
        ])

        assert [p.name for p in created] == ["Bob", "Untagged"]
        assert skipped == ["Alice", "Bob"]

    def test_untagged_import_never_scheduled(self, db):
        ParticipantManager.import_participants(db, [
            {"name": "Alice", "categories": ["DSI"]},
            {"name": "Bob", "categories": ["DSI"]},
            {"name": "Untagged", "categories": []},
        ])
        untagged = ParticipantManager.get_by_connection_code(
            db, next(p.connection_code for p in ParticipantManager.load_participants(db) if p.name == "Untagged")
        )

        EventManager.regenerate_pairings(db, rng=random.Random(0))

        meetings = EventManager.load_meetings(db)
        assert len(meetings) == 1
        assert not any(m.involves(untagged.id) for m in meetings)

    def test_import_keeps_given_id(self, db):
        created, _ = ParticipantManager.import_participants(db, [{"id": "u1", "name": "Alice", "categories": ["DSI"]}])
        assert created[0].id == "u1"


class TestUpdate:
    """Tests for profile edits."""

    def test_partial_update(self, db):
        participant, _ = ParticipantManager.register(db, {"name": "Alice", "company": "A", "categories": ["DSI"]})

        updated = ParticipantManager.update_participant(db, participant.id, {"company": "B"})

        assert updated.company == "B"
        assert updated.categories == ["DSI"]

    def test_scores_not_writable(self, db):
        participant, _ = ParticipantManager.register(db, {"name": "Alice", "categories": ["DSI"]})
        updated = ParticipantManager.update_participant(db, participant.id, {"avg_score": 5.0, "partner_id": "x"})
        assert updated.avg_score == 0.0
        assert updated.partner_id is None

    def test_empty_categories_rejected(self, db):
        participant, _ = ParticipantManager.register(db, {"name": "Alice", "categories": ["DSI"]})
        with pytest.raises(MissingCategories):
            ParticipantManager.update_participant(db, participant.id, {"categories": []})

    def test_unknown_participant(self, db):
        with pytest.raises(ParticipantNotFound):
            ParticipantManager.update_participant(db, "missing", {"company": "B"})

    def test_rename_to_taken_name_rejected(self, db):
        ParticipantManager.register(db, {"name": "Alice", "categories": ["DSI"]})
        bob, _ = ParticipantManager.register(db, {"name": "Bob", "categories": ["DSI"]})

        with pytest.raises(DuplicateParticipantName):
            ParticipantManager.update_participant(db, bob.id, {"name": "ALICE"})
        assert ParticipantManager.get_by_id(db, bob.id).name == "Bob"

    def test_rename_keeps_own_name(self, db):
        """Test changing only the case of one's own name is allowed."""
        alice, _ = ParticipantManager.register(db, {"name": "alice", "categories": ["DSI"]})
        updated = ParticipantManager.update_participant(db, alice.id, {"name": " Alice "})
        assert updated.name == "Alice"


class TestDelete:
    """Tests for participant deletion."""

    def test_meetings_left_orphaned(self, db):
        alice, _ = ParticipantManager.register(db, {"name": "Alice", "categories": ["DSI"]})
        ParticipantManager.register(db, {"name": "Bob", "categories": ["DSI"]})
        EventManager.regenerate_pairings(db, rng=random.Random(0))

        ParticipantManager.delete_participant(db, alice.id)

        assert db.query(Meeting).count() == 1
        with pytest.raises(ParticipantNotFound):
            ParticipantManager.get_by_id(db, alice.id)

    def test_partner_reference_cleared(self, db):
        alice, _ = ParticipantManager.register(db, {"name": "Alice", "categories": ["DSI"]})
        bob, _ = ParticipantManager.register(db, {"name": "Bob", "categories": ["DSI"]})
        EventManager.confirm_duo(db, alice.id, bob.id)

        ParticipantManager.delete_participant(db, alice.id)

        assert ParticipantManager.get_by_id(db, bob.id).partner_id is None


class TestLookup:

    def test_connection_code_case_insensitive(self, db):
        participant, _ = ParticipantManager.register(db, {"name": "Alice", "categories": ["DSI"]})
        found = ParticipantManager.get_by_connection_code(db, participant.connection_code.lower())
        assert found.id == participant.id

    def test_unknown_code(self, db):
        with pytest.raises(ParticipantNotFound):
            ParticipantManager.get_by_connection_code(db, "ZZZZZZ")
