"""
Status Sync

Mirrors status changes made in Notion back to Slack. Only two transitions
are mirrored:

    Status=Done, Synced Status!=Done  -> add done reaction, post note, Synced=Done
    Status=Open, Synced Status=Done   -> remove done reaction, post note, Synced=Open

Synced Status is written only after both Slack calls succeed, so a failed
mirror is retried on the next run. Reactions are idempotent on retry.
"""

import logging
from dataclasses import dataclass, asdict

from ..common.schemas import Note, NoteStatus
from ..common.slack_client import ChatClient
from ..store.base import NoteStore

logger = logging.getLogger("brain.scheduler.status_sync")

DONE_MESSAGE = "✅ Marked as done in Notion"
REOPENED_MESSAGE = "🔄 Reopened in Notion"


@dataclass
class SyncReport:
    """Outcome of one status-sync pass"""
    drifted: int = 0
    synced: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class StatusSyncer:
    """
    Reconcile Notion status with Slack.

    Usage:
        syncer = StatusSyncer(store, chat, done_reaction="heavy_check_mark")
        report = await syncer.run()
    """

    def __init__(
        self,
        store: NoteStore,
        chat: ChatClient,
        done_reaction: str = "heavy_check_mark",
        max_per_run: int = 20,
    ):
        self._store = store
        self._chat = chat
        self._done_reaction = done_reaction
        self._max_per_run = max_per_run

    async def run(self) -> SyncReport:
        """Run one pass. Per-note failures are logged and skipped."""
        report = SyncReport()
        drifted = await self._store.list_status_drift(limit=self._max_per_run)
        report.drifted = len(drifted)

        for note in drifted[:self._max_per_run]:
            try:
                ok = await self._sync(note)
            except Exception as e:
                logger.error("Status sync failed for %s: %s", note.id, e)
                ok = False
            if ok:
                report.synced += 1
            else:
                report.failed += 1

        logger.info(
            "Status sync pass: %d drifted, %d synced, %d failed",
            report.drifted, report.synced, report.failed,
        )
        return report

    async def _sync(self, note: Note) -> bool:
        if not note.channel_id or not note.external_message_id:
            logger.warning("Note %s has no Slack location, skipping sync", note.id)
            return False

        channel, ts = note.channel_id, note.external_message_id

        if note.status == NoteStatus.DONE and note.synced_status != NoteStatus.DONE:
            reacted = await self._chat.add_reaction(channel, ts, self._done_reaction)
            posted = reacted and await self._chat.post_reply(channel, ts, DONE_MESSAGE)
            target = NoteStatus.DONE
        elif note.status == NoteStatus.OPEN and note.synced_status == NoteStatus.DONE:
            reacted = await self._chat.remove_reaction(channel, ts, self._done_reaction)
            posted = reacted and await self._chat.post_reply(channel, ts, REOPENED_MESSAGE)
            target = NoteStatus.OPEN
        else:
            # Not a mirrored transition
            return True

        if not posted:
            logger.warning("Could not mirror %s to Slack for %s", note.status.value, note.id)
            return False

        await self._store.set_synced_status(note.id, target)
        logger.info("Synced %s -> %s", note.summary(), target.value)
        return True
