"""
Note Store

Persistence for captured notes.

Backends:
- NotionNoteStore: Notion database over the REST API (production)
- InMemoryNoteStore: process memory (development, tests)
"""

from ..common.config import BrainConfig
from .base import APPEND_SEPARATOR, NoteStore, NoteStoreError, is_drifted
from .memory import InMemoryNoteStore
from .notion import NotionNoteStore


def create_store(config: BrainConfig) -> NoteStore:
    """Build the store selected by ``config.capture.store_backend``"""
    backend = (config.capture.store_backend or "notion").lower()
    if backend == "memory":
        return InMemoryNoteStore()
    if backend == "notion":
        return NotionNoteStore.from_config(config.notion)
    raise ValueError(f"Unknown store backend: {config.capture.store_backend}")


__all__ = [
    "APPEND_SEPARATOR",
    "NoteStore",
    "NoteStoreError",
    "is_drifted",
    "InMemoryNoteStore",
    "NotionNoteStore",
    "create_store",
]
