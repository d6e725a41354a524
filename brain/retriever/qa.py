"""
Q&A Engine

Answers questions posted to the capture channel from the user's own notes.

Scopes:
- channel: search all open notes (or only notes with links for link questions)
- thread: the single note the thread hangs off
"""

import asyncio
import logging
from typing import List

from ..capture.classifier import ANSWER_ERROR_MESSAGE, NoteClassifier
from ..common.schemas import Note, NoteStatus
from ..store.base import MAX_SEARCH_RESULTS, NoteStore, NoteStoreError

logger = logging.getLogger("brain.retriever.qa")

URL_KEYWORDS = ("link", "links", "url", "urls", "website", "websites")

NO_LINK_NOTES_MESSAGE = (
    "I don't have any open notes with links. Add some notes with URLs first!"
)
NO_OPEN_NOTES_MESSAGE = (
    "I don't have any open notes that seem relevant to your question. "
    "Try asking differently or add some notes first!"
)
NOTE_NOT_FOUND_MESSAGE = (
    "I couldn't find the note this thread is about. It may have been deleted."
)


def is_url_question(question: str) -> bool:
    """Case-insensitive substring match against the link vocabulary"""
    lowered = question.lower()
    return any(keyword in lowered for keyword in URL_KEYWORDS)


class QAEngine:
    """
    Retrieve candidate notes and have the classifier synthesize an answer.

    Usage:
        qa = QAEngine(store, classifier)
        text = await qa.answer_channel("what did I save about dentists?")
    """

    def __init__(
        self,
        store: NoteStore,
        classifier: NoteClassifier,
        max_search_results: int = 20,
        max_context_notes: int = 5,
    ):
        self._store = store
        self._classifier = classifier
        clamped = min(max(max_search_results, 1), MAX_SEARCH_RESULTS)
        if clamped != max_search_results:
            logger.warning(
                "max_search_results %d out of range, using %d", max_search_results, clamped
            )
        self._max_search_results = clamped
        self._max_context_notes = max_context_notes

    async def answer_channel(self, question: str) -> str:
        """Answer from all open notes"""
        if not question or not question.strip():
            raise ValueError("question must be a non-empty string")

        try:
            if is_url_question(question):
                candidates = await self._store.list_with_urls(limit=self._max_search_results)
                empty_message = NO_LINK_NOTES_MESSAGE
            else:
                candidates = await self._store.search(question, limit=self._max_search_results)
                empty_message = NO_OPEN_NOTES_MESSAGE
        except NoteStoreError as e:
            logger.error("Note lookup failed for question: %s", e)
            return ANSWER_ERROR_MESSAGE

        open_notes = [note for note in candidates if note.status == NoteStatus.OPEN]
        if not open_notes:
            logger.info("No open notes for question (%d candidates)", len(candidates))
            return empty_message

        return await self._answer(question, open_notes[:self._max_context_notes])

    async def answer_thread(self, question: str, parent_external_id: str) -> str:
        """Answer from the single note a thread belongs to"""
        if not question or not question.strip():
            raise ValueError("question must be a non-empty string")
        if not parent_external_id:
            raise ValueError("parent_external_id must be a non-empty string")

        try:
            note = await self._store.find_by_external_id(parent_external_id)
        except NoteStoreError as e:
            logger.error("Parent note lookup failed for %s: %s", parent_external_id, e)
            return ANSWER_ERROR_MESSAGE

        if note is None:
            return NOTE_NOT_FOUND_MESSAGE

        return await self._answer(question, [note])

    async def _answer(self, question: str, notes: List[Note]) -> str:
        # The LLM SDKs are synchronous
        return await asyncio.to_thread(self._classifier.answer, question, notes)
