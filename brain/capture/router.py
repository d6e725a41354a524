"""
Event Router

Drives one normalized Slack event through classification, the note store
and the outbound replies.

    NewMessage       classify -> answer | drop noise | drop duplicate | create note
    ThreadReply      classify -> answer from parent | drop noise | append to parent
    ReactionAdded    done marker -> Done, delete marker -> archive
    ReactionRemoved  done marker -> Open, delete marker -> re-classify and recreate

Delivery is at-least-once. Every branch is either a no-op on redelivery or
converges on the same end state; the duplicate guard absorbs repeated posts.
The exists -> create and find -> update sequences are not atomic (see
brain.store.base).
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..common.schemas import (
    CATEGORY_EMOJI,
    NewNote,
    NoteClassification,
    NoteStatus,
    QuestionClassification,
)
from ..common.slack_client import ChatClient
from ..store.base import NoteStore
from .classifier import NoteClassifier
from .handlers.base import Event, NewMessage, ReactionAdded, ReactionRemoved, ThreadReply
from .url_extractor import extract_urls

if TYPE_CHECKING:
    from ..retriever.qa import QAEngine

logger = logging.getLogger("brain.capture.router")

DONE_CONFIRMATION = "✅ Marked as done"
REOPEN_CONFIRMATION = "🔄 Reopened"
DELETE_CONFIRMATION = "🗑️ Removed from Notion"


class Outcome(str, Enum):
    """Terminal branch taken for an event"""
    EMPTY = "empty"
    ANSWERED = "answered"
    NOISE = "noise"
    DUPLICATE = "duplicate"
    CREATED = "created"
    APPENDED = "appended"
    UNTRACKED = "untracked"
    STATUS_CHANGED = "status_changed"
    ARCHIVED = "archived"
    RESTORED = "restored"
    IGNORED = "ignored"
    FAILED = "failed"


def format_saved_reply(classification: NoteClassification, restored: bool = False) -> str:
    """Acknowledgement reply naming the category, subcategory and confidence"""
    label = classification.category.value
    if classification.subcategory:
        label += f" / {classification.subcategory.value}"
    emoji = CATEGORY_EMOJI[classification.category]
    verb = "Restored to Notion" if restored else "Saved to Notion"
    return f"{verb} → {label} {emoji} (confidence: {classification.confidence:.2f})"


def ts_to_datetime(ts: str) -> datetime:
    """Slack message timestamp ("1700000000.000100") as an aware datetime"""
    try:
        return datetime.fromtimestamp(float(ts), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return datetime.now(timezone.utc)


class EventRouter:
    """
    Event state machine.

    Usage:
        router = EventRouter(store, chat, classifier, qa)
        outcome = await router.handle(NewMessage(text="...", channel="C1", ts="1.0"))
    """

    def __init__(
        self,
        store: NoteStore,
        chat: ChatClient,
        classifier: NoteClassifier,
        qa: "QAEngine",
        ack_reaction: str = "white_check_mark",
        done_reaction: str = "heavy_check_mark",
        delete_reaction: str = "wastebasket",
        bot_user_id: Optional[str] = None,
    ):
        self._store = store
        self._chat = chat
        self._classifier = classifier
        self._qa = qa
        self._ack_reaction = ack_reaction
        self._done_reaction = done_reaction
        self._delete_reaction = delete_reaction
        # Reactions by this user are the bot's own (ack, status mirroring)
        self.bot_user_id = bot_user_id

    async def dispatch(self, event: Event) -> Outcome:
        """Handle an event without letting any exception escape.

        Used as the background task behind the webhook.
        """
        try:
            return await self.handle(event)
        except Exception:
            logger.exception("Failed to handle %s", type(event).__name__)
            return Outcome.FAILED

    async def handle(self, event: Event) -> Outcome:
        if isinstance(event, NewMessage):
            return await self._on_new_message(event)
        if isinstance(event, ThreadReply):
            return await self._on_thread_reply(event)
        if isinstance(event, ReactionAdded):
            return await self._on_reaction_added(event)
        if isinstance(event, ReactionRemoved):
            return await self._on_reaction_removed(event)
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def _classify(self, text: str):
        # LLM SDK calls are blocking
        return await asyncio.to_thread(self._classifier.classify, text)

    async def _on_new_message(self, event: NewMessage) -> Outcome:
        text = event.text.strip()
        if not text:
            return Outcome.EMPTY

        classification = await self._classify(text)

        if isinstance(classification, QuestionClassification):
            answer = await self._qa.answer_channel(text)
            await self._chat.post_reply(event.channel, event.ts, answer)
            logger.info("Answered channel question %s", event.ts)
            return Outcome.ANSWERED

        if not isinstance(classification, NoteClassification):
            logger.info("Filtered as noise: %s", event.ts)
            return Outcome.NOISE

        if await self._store.exists(event.ts):
            logger.info("Skipping duplicate message: %s", event.ts)
            return Outcome.DUPLICATE

        await self._save(event.text, event.channel, event.ts, classification)
        return Outcome.CREATED

    async def _save(
        self,
        text: str,
        channel: str,
        ts: str,
        classification: NoteClassification,
        restored: bool = False,
    ) -> str:
        new_note = NewNote(
            content=text,
            category=classification.category,
            subcategory=classification.subcategory,
            confidence=classification.confidence,
            next_action=classification.next_action,
            external_message_id=ts,
            channel_id=channel,
            urls=extract_urls(text),
            created_at=ts_to_datetime(ts),
        )
        note_id = await self._store.create(new_note)

        await self._chat.add_reaction(channel, ts, self._ack_reaction)
        await self._chat.post_reply(channel, ts, format_saved_reply(classification, restored))

        logger.info(
            "%s message %s as %s (confidence %.2f)",
            "Restored" if restored else "Saved",
            ts, classification.category.value, classification.confidence,
        )
        return note_id

    async def _on_thread_reply(self, event: ThreadReply) -> Outcome:
        text = event.text.strip()
        if not text:
            return Outcome.EMPTY

        classification = await self._classify(text)

        if isinstance(classification, QuestionClassification):
            answer = await self._qa.answer_thread(text, event.thread_ts)
            await self._chat.post_reply(event.channel, event.thread_ts, answer)
            logger.info("Answered thread question under %s", event.thread_ts)
            return Outcome.ANSWERED

        if not isinstance(classification, NoteClassification):
            logger.info("Filtered thread reply as noise: %s", event.ts)
            return Outcome.NOISE

        parent = await self._store.find_by_external_id(event.thread_ts)
        if parent is None:
            logger.info("Reply %s is in an untracked thread %s", event.ts, event.thread_ts)
            return Outcome.UNTRACKED

        # Category stays as classified for the parent
        appended = await self._store.append_content(parent.id, event.text, reply_id=event.ts)
        await self._chat.add_reaction(event.channel, event.ts, self._ack_reaction)
        if not appended:
            logger.info("Reply %s already appended to %s", event.ts, parent.id)
            return Outcome.DUPLICATE
        logger.info("Appended reply %s to %s", event.ts, parent.id)
        return Outcome.APPENDED

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    async def _on_reaction_added(self, event: ReactionAdded) -> Outcome:
        if self._is_own(event):
            return Outcome.IGNORED
        if event.reaction == self._done_reaction:
            return await self._set_status(event, NoteStatus.DONE, DONE_CONFIRMATION)

        if event.reaction == self._delete_reaction:
            note = await self._store.find_by_external_id(event.ts)
            if note is None:
                logger.info("Delete marker on untracked message %s", event.ts)
                return Outcome.IGNORED
            await self._store.archive(note.id)
            await self._chat.post_reply(event.channel, event.ts, DELETE_CONFIRMATION)
            logger.info("Archived %s", note.summary())
            return Outcome.ARCHIVED

        return Outcome.IGNORED

    async def _on_reaction_removed(self, event: ReactionRemoved) -> Outcome:
        if self._is_own(event):
            return Outcome.IGNORED
        if event.reaction == self._done_reaction:
            return await self._set_status(event, NoteStatus.OPEN, REOPEN_CONFIRMATION)

        if event.reaction == self._delete_reaction:
            return await self._restore(event)

        return Outcome.IGNORED

    def _is_own(self, event) -> bool:
        return bool(self.bot_user_id) and event.user == self.bot_user_id

    async def _set_status(self, event, status: NoteStatus, confirmation: str) -> Outcome:
        note = await self._store.find_by_external_id(event.ts)
        if note is None:
            logger.info("Status reaction on untracked message %s", event.ts)
            return Outcome.IGNORED

        # Synced Status is left to the sync pass
        await self._store.set_status(note.id, status)
        await self._chat.post_reply(event.channel, event.ts, confirmation)
        logger.info("Set %s to %s", note.id, status.value)
        return Outcome.STATUS_CHANGED

    async def _restore(self, event: ReactionRemoved) -> Outcome:
        """Recreate an archived note from the message text.

        Unlike removing the done marker, this re-runs classification on the
        current message text, so the restored note can land in a different
        category than the archived one, or not be restored at all.
        """
        if await self._store.exists(event.ts):
            logger.info("Message %s already has a live note, nothing to restore", event.ts)
            return Outcome.DUPLICATE

        text = await self._chat.fetch_message_text(event.channel, event.ts)
        if not text or not text.strip():
            logger.info("Could not fetch message %s for restore", event.ts)
            return Outcome.IGNORED

        classification = await self._classify(text.strip())
        if not isinstance(classification, NoteClassification):
            logger.info("Message %s no longer classifies as a note", event.ts)
            return Outcome.IGNORED

        await self._save(text, event.channel, event.ts, classification, restored=True)
        return Outcome.RESTORED
