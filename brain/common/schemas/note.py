"""
Note Schema

A Note is one captured thought. It is keyed by the Slack message it came
from (external_message_id), which doubles as the idempotency key for
redelivered events and the lookup key for replies and reactions.

Rules enforced here:
- confidence is clamped into [0, 1], never rejected
- subcategory is present if and only if category is Areas
- reminder_count is never negative
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# ============================================================================
# Enums
# ============================================================================

class Category(str, Enum):
    """PARA categories plus the Inbox overflow and failure fallback"""
    PROJECTS = "Projects"
    AREAS = "Areas"
    RESOURCES = "Resources"
    ARCHIVE = "Archive"
    INBOX = "Inbox"
    UNCATEGORIZED = "Uncategorized"


class Subcategory(str, Enum):
    """Areas of responsibility (only valid under Category.AREAS)"""
    RELATIONSHIPS = "Relationships"
    HEALTH = "Health"
    FINANCES = "Finances"
    CAREER = "Career"
    HOME = "Home"


class NoteStatus(str, Enum):
    """Lifecycle status"""
    OPEN = "Open"
    DONE = "Done"
    PARKED = "Parked"


CATEGORY_EMOJI = {
    Category.PROJECTS: "🎯",
    Category.AREAS: "🔄",
    Category.RESOURCES: "📚",
    Category.ARCHIVE: "📦",
    Category.INBOX: "📥",
    Category.UNCATEGORIZED: "❓",
}

TITLE_MAX_LENGTH = 100


def make_title(content: str) -> str:
    """First 100 characters of the content, with an ellipsis if cut"""
    if len(content) > TITLE_MAX_LENGTH:
        return content[:TITLE_MAX_LENGTH] + "..."
    return content


def clamp_confidence(value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, value))


def _check_subcategory(category: Category, subcategory: Optional[Subcategory]) -> None:
    if category == Category.AREAS and subcategory is None:
        raise ValueError("subcategory is required when category is Areas")
    if category != Category.AREAS and subcategory is not None:
        raise ValueError("subcategory is only allowed when category is Areas")


# ============================================================================
# Models
# ============================================================================

class NewNote(BaseModel):
    """Fields supplied when creating a note"""
    content: str
    category: Category
    external_message_id: str
    channel_id: str = ""
    subcategory: Optional[Subcategory] = None
    confidence: float = 0.0
    next_action: Optional[str] = None
    urls: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("content", "external_message_id")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, value) -> float:
        return clamp_confidence(value)

    @model_validator(mode="after")
    def _subcategory_matches_category(self) -> "NewNote":
        _check_subcategory(self.category, self.subcategory)
        return self

    @property
    def title(self) -> str:
        return make_title(self.content)


class Note(BaseModel):
    """A persisted note"""
    id: str
    external_message_id: str
    channel_id: str = ""
    content: str = ""
    title: str = ""
    category: Category = Category.UNCATEGORIZED
    subcategory: Optional[Subcategory] = None
    confidence: float = 0.0
    next_action: Optional[str] = None
    urls: List[str] = Field(default_factory=list)
    status: NoteStatus = NoteStatus.OPEN
    synced_status: Optional[NoteStatus] = None
    last_reminder_at: Optional[datetime] = None
    reminder_count: int = Field(default=0, ge=0)
    created_at: Optional[datetime] = None
    # Slack ts of thread replies already folded into content
    appended_reply_ids: List[str] = Field(default_factory=list)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, value) -> float:
        return clamp_confidence(value)

    @model_validator(mode="after")
    def _drop_stray_subcategory(self) -> "Note":
        # Stored records are read leniently: a subcategory outside Areas is
        # treated as absent rather than failing the whole record.
        if self.category != Category.AREAS:
            self.subcategory = None
        return self

    @property
    def has_urls(self) -> bool:
        return bool(self.urls)

    def summary(self) -> str:
        """One-line description for logs"""
        return f"{self.id} [{self.category.value}/{self.status.value}] {self.title[:40]!r}"
