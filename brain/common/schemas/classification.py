"""
Classification Schema

Typed result of classifying one message. The model's loosely shaped JSON is
validated once at the classifier boundary; everything downstream matches on
``intent``.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from .note import Category, Subcategory, _check_subcategory, clamp_confidence


class Intent(str, Enum):
    NOTE = "note"
    QUESTION = "question"
    NOISE = "noise"


class NoteClassification(BaseModel):
    """A thought worth saving"""
    intent: Literal["note"] = "note"
    is_meaningful: Literal[True] = True
    category: Category
    subcategory: Optional[Subcategory] = None
    confidence: float = 0.0
    next_action: Optional[str] = None
    reasoning: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, value) -> float:
        return clamp_confidence(value)

    @model_validator(mode="after")
    def _subcategory_matches_category(self) -> "NoteClassification":
        _check_subcategory(self.category, self.subcategory)
        return self


class QuestionClassification(BaseModel):
    """A question to answer from stored notes; never persisted"""
    intent: Literal["question"] = "question"
    is_meaningful: Literal[True] = True
    confidence: float = 1.0
    reasoning: str = ""


class NoiseClassification(BaseModel):
    """Acknowledgements, greetings, emoji; silently dropped"""
    intent: Literal["noise"] = "noise"
    is_meaningful: Literal[False] = False
    confidence: float = 0.0
    reasoning: str = ""


Classification = Annotated[
    Union[NoteClassification, QuestionClassification, NoiseClassification],
    Field(discriminator="intent"),
]

classification_adapter = TypeAdapter(Classification)


FALLBACK_REASONING = "Classification failed - defaulting to Uncategorized"


def fallback_classification(reason: str = FALLBACK_REASONING) -> NoteClassification:
    """Safe result used whenever the model call or its output is unusable"""
    return NoteClassification(
        category=Category.UNCATEGORIZED,
        confidence=0.0,
        reasoning=reason,
    )
