"""
Note Classifier

Intent (note / question / noise) and PARA category classification, plus
answer synthesis from a list of notes. Both calls go through LLMClient and
never raise: classification failures resolve to an Uncategorized note,
answer failures to a fixed apology.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from ..common.config import DEFAULT_CONFIDENCE_THRESHOLD
from ..common.llm_client import LLMClient
from ..common.llm_utils import parse_llm_json
from ..common.schemas import (
    Category,
    Classification,
    Intent,
    Note,
    Subcategory,
    classification_adapter,
    clamp_confidence,
    fallback_classification,
)
from ..store.base import APPEND_SEPARATOR
from .prompts import ANSWER_PROMPT, INTENT_CLASSIFICATION_PROMPT, format_classification_request

logger = logging.getLogger("brain.capture.classifier")

NO_NOTES_MESSAGE = "I don't have any notes that seem relevant to your question."
ANSWER_ERROR_MESSAGE = (
    "I encountered an error while trying to answer your question. Please try again."
)

CLASSIFY_MAX_TOKENS = 256
ANSWER_MAX_TOKENS = 1024


class NoteClassifier:
    """
    LLM-backed classifier.

    Usage:
        classifier = NoteClassifier(llm, confidence_threshold=0.7)
        result = classifier.classify("Need to call the dentist tomorrow")
        if result.intent == "note":
            print(result.category, result.next_action)
    """

    def __init__(self, llm: LLMClient, confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD):
        self._llm = llm
        self._threshold = confidence_threshold

    @property
    def is_available(self) -> bool:
        return self._llm is not None and self._llm.is_available

    @property
    def confidence_threshold(self) -> float:
        return self._threshold

    def classify(self, text: str) -> Classification:
        """
        Classify one message.

        Args:
            text: Message text (non-empty)

        Returns:
            NoteClassification, QuestionClassification or NoiseClassification.
            Any failure yields the Uncategorized fallback note.
        """
        if not text or not text.strip():
            raise ValueError("text must be a non-empty string")

        try:
            raw = self._llm.generate(
                format_classification_request(text),
                system=INTENT_CLASSIFICATION_PROMPT,
                max_tokens=CLASSIFY_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning("Classification call failed: %s", e)
            return fallback_classification()

        data = parse_llm_json(raw)
        if not data:
            logger.warning("Unparseable classification response: %r", raw[:100])
            return fallback_classification()

        try:
            return classification_adapter.validate_python(self._normalize(data))
        except (ValueError, ValidationError) as e:
            logger.warning("Invalid classification response: %s", e)
            return fallback_classification()

    def _normalize(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Map the model's JSON onto the classification union, applying policy"""
        intent = data.get("intent")
        is_meaningful = data.get("isMeaningful")
        if not isinstance(intent, str) or not isinstance(is_meaningful, bool):
            raise ValueError("missing intent or isMeaningful")

        reasoning = str(data.get("reasoning") or "")

        if intent == Intent.QUESTION.value:
            return {"intent": "question", "reasoning": reasoning}

        if intent == Intent.NOISE.value or not is_meaningful:
            return {"intent": "noise", "reasoning": reasoning}

        if intent != Intent.NOTE.value:
            raise ValueError(f"unknown intent {intent!r}")

        confidence = clamp_confidence(data.get("confidence"))
        category = _parse_category(data.get("category"))
        subcategory = _parse_subcategory(data.get("subcategory"))

        if category == Category.AREAS and subcategory is None:
            category = Category.INBOX
        if confidence < self._threshold:
            category = Category.INBOX
        if category != Category.AREAS:
            subcategory = None

        next_action = data.get("nextAction")
        if not isinstance(next_action, str) or not next_action.strip():
            next_action = None

        return {
            "intent": "note",
            "category": category,
            "subcategory": subcategory,
            "confidence": confidence,
            "next_action": next_action.strip() if next_action else None,
            "reasoning": reasoning,
        }

    def answer(self, question: str, notes: Sequence[Note]) -> str:
        """
        Answer a question strictly from the given notes.

        Returns a fixed message without calling the model when ``notes`` is
        empty, and a fixed apology when the model call fails.
        """
        if not notes:
            return NO_NOTES_MESSAGE

        system = ANSWER_PROMPT.replace("{notes}", format_notes_context(notes))
        try:
            text = self._llm.generate(question, system=system, max_tokens=ANSWER_MAX_TOKENS)
        except Exception as e:
            logger.warning("Answer generation failed: %s", e)
            return ANSWER_ERROR_MESSAGE

        return text or ANSWER_ERROR_MESSAGE


def format_notes_context(notes: Sequence[Note]) -> str:
    blocks: List[str] = []
    for i, note in enumerate(notes, start=1):
        block = f"Note {i} ({note.category.value}, Status: {note.status.value}):\n{note.content}"
        if note.urls:
            block += f"\nURLs: {', '.join(note.urls)}"
        blocks.append(block)
    return APPEND_SEPARATOR.join(blocks)


def _parse_category(value: Any) -> Category:
    if value is None:
        return Category.UNCATEGORIZED
    try:
        return Category(value)
    except ValueError:
        return Category.UNCATEGORIZED


def _parse_subcategory(value: Any) -> Optional[Subcategory]:
    if value is None:
        return None
    try:
        return Subcategory(value)
    except ValueError:
        return None
