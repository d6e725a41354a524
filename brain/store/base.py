"""
Note Store Interface

Every persistence operation the router, Q&A engine and hourly jobs need.
Backends: Notion (production) and in-memory (development, tests).

Concurrency: operations for different external message ids need no
coordination. Check-then-act sequences (exists -> create, find -> update,
read -> append) are NOT atomic; a rare duplicate note or lost append under
concurrent redelivery is accepted for this single-user system. Sequential
redelivery of a thread reply is absorbed by the reply id recorded on append.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..common.schemas import NewNote, Note, NoteStatus

# Visible separator placed between appended thread replies
APPEND_SEPARATOR = "\n\n---\n\n"

MAX_SEARCH_RESULTS = 50


class NoteStoreError(Exception):
    """A store call failed (network, auth, unexpected response)."""
    pass


def is_drifted(note: Note) -> bool:
    """True when status changed in a way that still has to be mirrored to chat.

    Only two transitions count: newly Done, and reopened after Done.
    """
    if note.status == NoteStatus.DONE:
        return note.synced_status != NoteStatus.DONE
    if note.status == NoteStatus.OPEN:
        return note.synced_status == NoteStatus.DONE
    return False


def check_search_limit(limit: int) -> None:
    if limit < 1 or limit > MAX_SEARCH_RESULTS:
        raise ValueError(f"search limit must be between 1 and {MAX_SEARCH_RESULTS}")


class NoteStore(ABC):
    """Abstract note persistence"""

    async def ensure_ready(self) -> None:
        """One-time initialization (create/validate the backing collection)"""
        return None

    @abstractmethod
    async def exists(self, external_message_id: str) -> bool:
        ...

    @abstractmethod
    async def create(self, new_note: NewNote) -> str:
        """Persist a note with status=Open, synced_status=Open. Returns its id."""
        ...

    @abstractmethod
    async def find_by_external_id(self, external_message_id: str) -> Optional[Note]:
        ...

    @abstractmethod
    async def append_content(
        self,
        note_id: str,
        additional_text: str,
        reply_id: Optional[str] = None,
    ) -> bool:
        """Append text after APPEND_SEPARATOR (last write wins).

        With ``reply_id``, the append happens at most once per id: returns
        False without writing when that id was already appended.
        """
        ...

    @abstractmethod
    async def set_status(self, note_id: str, status: NoteStatus) -> None:
        ...

    @abstractmethod
    async def set_synced_status(self, note_id: str, status: NoteStatus) -> None:
        ...

    @abstractmethod
    async def archive(self, note_id: str) -> None:
        ...

    @abstractmethod
    async def update_reminder_meta(self, note_id: str, timestamp: datetime, count: int) -> None:
        ...

    @abstractmethod
    async def search(self, query: str, limit: int = 10) -> List[Note]:
        """Free-text search restricted to this store's own notes"""
        ...

    @abstractmethod
    async def list_with_urls(self, limit: int = 20) -> List[Note]:
        """Open notes that carry at least one URL"""
        ...

    @abstractmethod
    async def list_reminder_candidates(self, limit: Optional[int] = None) -> List[Note]:
        """Open notes with a non-empty next action, all of them unless ``limit``.

        Tier filtering is the caller's.
        """
        ...

    @abstractmethod
    async def list_status_drift(self, limit: int = 100) -> List[Note]:
        """Notes for which is_drifted() holds"""
        ...

    async def close(self) -> None:
        return None
