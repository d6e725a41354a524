"""Tests for note and classification schemas."""

import pytest
from pydantic import ValidationError


class TestMakeTitle:
    def test_short_content_unchanged(self):
        from brain.common.schemas import make_title
        assert make_title("Call the dentist") == "Call the dentist"

    def test_long_content_truncated_with_ellipsis(self):
        from brain.common.schemas import make_title
        title = make_title("x" * 150)
        assert title == "x" * 100 + "..."

    def test_exactly_100_chars_not_truncated(self):
        from brain.common.schemas import make_title
        assert make_title("y" * 100) == "y" * 100


class TestNewNote:
    def test_confidence_clamped(self):
        from brain.common.schemas import Category, NewNote

        high = NewNote(content="a", category=Category.PROJECTS, external_message_id="1", confidence=1.7)
        low = NewNote(content="a", category=Category.PROJECTS, external_message_id="2", confidence=-3)
        assert high.confidence == 1.0
        assert low.confidence == 0.0

    def test_nan_confidence_becomes_zero(self):
        from brain.common.schemas import Category, NewNote
        note = NewNote(content="a", category=Category.INBOX, external_message_id="1", confidence=float("nan"))
        assert note.confidence == 0.0

    def test_empty_content_rejected(self):
        from brain.common.schemas import Category, NewNote
        with pytest.raises(ValidationError):
            NewNote(content="   ", category=Category.PROJECTS, external_message_id="1")

    def test_empty_external_id_rejected(self):
        from brain.common.schemas import Category, NewNote
        with pytest.raises(ValidationError):
            NewNote(content="text", category=Category.PROJECTS, external_message_id="")

    def test_areas_requires_subcategory(self):
        from brain.common.schemas import Category, NewNote
        with pytest.raises(ValidationError, match="subcategory"):
            NewNote(content="Gym routine", category=Category.AREAS, external_message_id="1")

    def test_subcategory_only_under_areas(self):
        from brain.common.schemas import Category, NewNote, Subcategory
        with pytest.raises(ValidationError, match="subcategory"):
            NewNote(
                content="Gym routine",
                category=Category.PROJECTS,
                subcategory=Subcategory.HEALTH,
                external_message_id="1",
            )

    def test_title_derived_from_content(self):
        from brain.common.schemas import Category, NewNote
        note = NewNote(content="z" * 120, category=Category.RESOURCES, external_message_id="1")
        assert note.title.endswith("...")
        assert len(note.title) == 103


class TestNote:
    def test_stray_subcategory_dropped_on_read(self):
        from brain.common.schemas import Category, Note, Subcategory
        note = Note(
            id="p1",
            external_message_id="1",
            category=Category.INBOX,
            subcategory=Subcategory.HOME,
        )
        assert note.subcategory is None

    def test_negative_reminder_count_rejected(self):
        from brain.common.schemas import Note
        with pytest.raises(ValidationError):
            Note(id="p1", external_message_id="1", reminder_count=-1)

    def test_defaults(self):
        from brain.common.schemas import Category, Note, NoteStatus
        note = Note(id="p1", external_message_id="1")
        assert note.category == Category.UNCATEGORIZED
        assert note.status == NoteStatus.OPEN
        assert note.synced_status is None
        assert not note.has_urls


class TestClassificationUnion:
    def test_discriminates_on_intent(self):
        from brain.common.schemas import (
            NoiseClassification,
            NoteClassification,
            QuestionClassification,
            classification_adapter,
        )

        assert isinstance(
            classification_adapter.validate_python({"intent": "question"}), QuestionClassification
        )
        assert isinstance(
            classification_adapter.validate_python({"intent": "noise"}), NoiseClassification
        )
        note = classification_adapter.validate_python(
            {"intent": "note", "category": "Resources", "confidence": 0.8}
        )
        assert isinstance(note, NoteClassification)

    def test_question_has_full_confidence(self):
        from brain.common.schemas import QuestionClassification
        q = QuestionClassification()
        assert q.confidence == 1.0
        assert q.is_meaningful is True

    def test_noise_is_not_meaningful(self):
        from brain.common.schemas import NoiseClassification
        assert NoiseClassification().is_meaningful is False

    def test_unknown_intent_rejected(self):
        from brain.common.schemas import classification_adapter
        with pytest.raises(ValidationError):
            classification_adapter.validate_python({"intent": "banter"})

    def test_fallback_is_uncategorized_note(self):
        from brain.common.schemas import FALLBACK_REASONING, Category, fallback_classification
        fb = fallback_classification()
        assert fb.intent == "note"
        assert fb.category == Category.UNCATEGORIZED
        assert fb.confidence == 0.0
        assert fb.reasoning == FALLBACK_REASONING
