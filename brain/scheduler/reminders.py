"""
Reminder Scheduler

Hourly pass over open notes with a next action. Reminders back off by how
many have already been sent:

    reminder_count < 3   every 24 hours
    reminder_count < 6   every 48 hours
    reminder_count < 8   every 7 days
    reminder_count >= 8  never again; the note is parked

Counters only move after Slack confirms delivery, so a failed send is
retried on the next run. Reminders and parks of exhausted notes share one
per-run budget; reminders go first.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence, Tuple

from ..common.config import DEFAULT_REMINDER_TIERS
from ..common.schemas import Note, NoteStatus
from ..common.slack_client import ChatClient
from ..store.base import NoteStore

logger = logging.getLogger("brain.scheduler.reminders")


def reminder_interval(
    reminder_count: int,
    tiers: Sequence[Tuple[int, int]] = DEFAULT_REMINDER_TIERS,
) -> Optional[timedelta]:
    """Minimum gap before the next reminder, or None once tiers are exhausted"""
    for max_count, hours in tiers:
        if reminder_count < max_count:
            return timedelta(hours=hours)
    return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_reminder_due(
    note: Note,
    now: datetime,
    tiers: Sequence[Tuple[int, int]] = DEFAULT_REMINDER_TIERS,
) -> bool:
    """True when an open note with a next action should be reminded at ``now``"""
    if note.status != NoteStatus.OPEN or not note.next_action:
        return False

    interval = reminder_interval(note.reminder_count, tiers)
    if interval is None:
        return False
    if note.last_reminder_at is None:
        return True
    return _as_utc(now) - _as_utc(note.last_reminder_at) >= interval


def format_reminder(note: Note, final: bool = False) -> str:
    text = f"Reminder: {note.next_action}"
    if final:
        text += "\n_This is the last reminder. The note will be parked; reopen it in Notion to resume._"
    return text


@dataclass
class ReminderReport:
    """Outcome of one reminder pass"""
    candidates: int = 0
    due: int = 0
    sent: int = 0
    failed: int = 0
    parked: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class ReminderScheduler:
    """
    Send due reminders and park notes that ran out of reminders.

    Usage:
        scheduler = ReminderScheduler(store, chat)
        report = await scheduler.run(datetime.now(timezone.utc))
    """

    def __init__(
        self,
        store: NoteStore,
        chat: ChatClient,
        max_per_run: int = 20,
        tiers: Sequence[Tuple[int, int]] = DEFAULT_REMINDER_TIERS,
        auto_park_threshold: int = 8,
    ):
        self._store = store
        self._chat = chat
        self._max_per_run = max_per_run
        self._tiers = list(tiers)
        self._auto_park_threshold = auto_park_threshold

    async def run(self, now: Optional[datetime] = None) -> ReminderReport:
        """Run one pass. Per-note failures are logged and skipped."""
        now = now or datetime.now(timezone.utc)
        report = ReminderReport()

        candidates = await self._store.list_reminder_candidates()
        report.candidates = len(candidates)

        exhausted = [n for n in candidates if n.reminder_count >= self._auto_park_threshold]
        due = [n for n in candidates if is_reminder_due(n, now, self._tiers)]
        report.due = len(due)

        budget = self._max_per_run
        for note in due[:budget]:
            budget -= 1
            try:
                sent = await self._remind(note, now)
            except Exception as e:
                logger.error("Reminder failed for %s: %s", note.id, e)
                report.failed += 1
                continue
            if sent is None:
                report.failed += 1
                continue
            report.sent += 1
            if sent >= self._auto_park_threshold and await self._park(note):
                report.parked += 1

        for note in exhausted[:max(budget, 0)]:
            if await self._park(note):
                report.parked += 1

        logger.info(
            "Reminder pass: %d candidates, %d due, %d sent, %d failed, %d parked",
            report.candidates, report.due, report.sent, report.failed, report.parked,
        )
        return report

    async def _remind(self, note: Note, now: datetime) -> Optional[int]:
        """Send one reminder; returns the new reminder count, or None if not delivered"""
        if not note.channel_id or not note.external_message_id:
            logger.warning("Note %s has no Slack location, skipping reminder", note.id)
            return None

        new_count = note.reminder_count + 1
        text = format_reminder(note, final=new_count >= self._auto_park_threshold)
        if not await self._chat.post_reply(note.channel_id, note.external_message_id, text):
            logger.warning("Reminder not delivered for %s", note.id)
            return None

        await self._store.update_reminder_meta(note.id, now, new_count)
        logger.info("Reminder %d sent for %s", new_count, note.summary())
        return new_count

    async def _park(self, note: Note) -> bool:
        try:
            await self._store.set_status(note.id, NoteStatus.PARKED)
        except Exception as e:
            logger.error("Failed to park %s: %s", note.id, e)
            return False
        logger.info("Parked %s after %d reminders", note.id, note.reminder_count)
        return True
