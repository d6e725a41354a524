"""
Brain Capture Schemas

Note records and the typed classification union.
"""

from .note import (
    Note,
    NewNote,
    Category,
    Subcategory,
    NoteStatus,
    CATEGORY_EMOJI,
    TITLE_MAX_LENGTH,
    make_title,
    clamp_confidence,
)
from .classification import (
    Classification,
    Intent,
    NoteClassification,
    QuestionClassification,
    NoiseClassification,
    classification_adapter,
    fallback_classification,
    FALLBACK_REASONING,
)

__all__ = [
    "Note",
    "NewNote",
    "Category",
    "Subcategory",
    "NoteStatus",
    "CATEGORY_EMOJI",
    "TITLE_MAX_LENGTH",
    "make_title",
    "clamp_confidence",
    "Classification",
    "Intent",
    "NoteClassification",
    "QuestionClassification",
    "NoiseClassification",
    "classification_adapter",
    "fallback_classification",
    "FALLBACK_REASONING",
]
