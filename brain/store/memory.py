"""
In-Memory Note Store

Dictionary-backed NoteStore for local development and tests. Mirrors the
Notion backend's semantics: archived notes vanish from every lookup, list
queries only see Open notes, and search is scoped to this store.
"""

import logging
import re
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from ..common.schemas import NewNote, Note, NoteStatus
from .base import APPEND_SEPARATOR, NoteStore, NoteStoreError, check_search_limit, is_drifted

logger = logging.getLogger("brain.store.memory")

_TOKEN_RE = re.compile(r"[^\w\s]")


class InMemoryNoteStore(NoteStore):
    """NoteStore held in process memory"""

    def __init__(self):
        self._notes: Dict[str, Note] = {}
        self._archived: Dict[str, Note] = {}

    def __len__(self) -> int:
        return len(self._notes)

    def all_notes(self) -> List[Note]:
        """Every live note, in creation order"""
        return [note.model_copy(deep=True) for note in self._notes.values()]

    def get(self, note_id: str) -> Optional[Note]:
        note = self._notes.get(note_id)
        return note.model_copy(deep=True) if note else None

    def is_archived(self, note_id: str) -> bool:
        return note_id in self._archived

    async def exists(self, external_message_id: str) -> bool:
        return self._find(external_message_id) is not None

    async def create(self, new_note: NewNote) -> str:
        note_id = uuid.uuid4().hex
        self._notes[note_id] = Note(
            id=note_id,
            external_message_id=new_note.external_message_id,
            channel_id=new_note.channel_id,
            content=new_note.content,
            title=new_note.title,
            category=new_note.category,
            subcategory=new_note.subcategory,
            confidence=new_note.confidence,
            next_action=new_note.next_action,
            urls=list(new_note.urls),
            status=NoteStatus.OPEN,
            synced_status=NoteStatus.OPEN,
            reminder_count=0,
            created_at=new_note.created_at,
        )
        logger.debug("Created note %s for %s", note_id, new_note.external_message_id)
        return note_id

    async def find_by_external_id(self, external_message_id: str) -> Optional[Note]:
        note = self._find(external_message_id)
        return note.model_copy(deep=True) if note else None

    async def append_content(
        self,
        note_id: str,
        additional_text: str,
        reply_id: Optional[str] = None,
    ) -> bool:
        if not additional_text:
            raise ValueError("additional_text must be a non-empty string")
        note = self._live(note_id)
        if reply_id and reply_id in note.appended_reply_ids:
            return False
        note.content = f"{note.content}{APPEND_SEPARATOR}{additional_text}" if note.content else additional_text
        if reply_id:
            note.appended_reply_ids.append(reply_id)
        return True

    async def set_status(self, note_id: str, status: NoteStatus) -> None:
        self._live(note_id).status = status

    async def set_synced_status(self, note_id: str, status: NoteStatus) -> None:
        self._live(note_id).synced_status = status

    async def archive(self, note_id: str) -> None:
        self._archived[note_id] = self._notes.pop(self._live(note_id).id)

    async def update_reminder_meta(self, note_id: str, timestamp: datetime, count: int) -> None:
        if count < 0:
            raise ValueError("reminder count must be >= 0")
        note = self._live(note_id)
        note.last_reminder_at = timestamp
        note.reminder_count = count

    async def search(self, query: str, limit: int = 10) -> List[Note]:
        if not query:
            raise ValueError("query must be a non-empty string")
        check_search_limit(limit)

        tokens = [t for t in _TOKEN_RE.sub(" ", query.lower()).split() if len(t) >= 3]
        if not tokens:
            return []

        results = []
        for note in self._notes.values():
            haystack = f"{note.title} {note.content}".lower()
            if any(token in haystack for token in tokens):
                results.append(note.model_copy(deep=True))
                if len(results) >= limit:
                    break
        return results

    async def list_with_urls(self, limit: int = 20) -> List[Note]:
        return self._select(lambda n: n.status == NoteStatus.OPEN and n.has_urls, limit)

    async def list_reminder_candidates(self, limit: Optional[int] = None) -> List[Note]:
        return self._select(lambda n: n.status == NoteStatus.OPEN and bool(n.next_action), limit)

    async def list_status_drift(self, limit: int = 100) -> List[Note]:
        return self._select(is_drifted, limit)

    def _find(self, external_message_id: str) -> Optional[Note]:
        if not external_message_id:
            raise ValueError("external_message_id must be a non-empty string")
        for note in self._notes.values():
            if note.external_message_id == external_message_id:
                return note
        return None

    def _live(self, note_id: str) -> Note:
        try:
            return self._notes[note_id]
        except KeyError:
            raise NoteStoreError(f"Note not found: {note_id}") from None

    def _select(self, predicate, limit: Optional[int]) -> List[Note]:
        matched = [note for note in self._notes.values() if predicate(note)]
        if limit is not None:
            matched = matched[:limit]
        return [note.model_copy(deep=True) for note in matched]
