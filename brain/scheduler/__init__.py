"""
Scheduler - hourly reminder and status-sync passes.

The two passes are independent: a failure in one (e.g. the store query
itself fails) is logged and reported without skipping the other.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .reminders import ReminderReport, ReminderScheduler, is_reminder_due, reminder_interval
from .status_sync import StatusSyncer, SyncReport

logger = logging.getLogger("brain.scheduler")


async def run_hourly(
    reminders: ReminderScheduler,
    syncer: StatusSyncer,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Run both passes and return their reports"""
    now = now or datetime.now(timezone.utc)
    result: Dict[str, Any] = {"ok": True}

    try:
        result["reminders"] = (await reminders.run(now)).to_dict()
    except Exception as e:
        logger.exception("Reminder pass failed")
        result["ok"] = False
        result["reminders"] = {"error": str(e)}

    try:
        result["status_sync"] = (await syncer.run()).to_dict()
    except Exception as e:
        logger.exception("Status sync pass failed")
        result["ok"] = False
        result["status_sync"] = {"error": str(e)}

    return result


__all__ = [
    "ReminderReport",
    "ReminderScheduler",
    "StatusSyncer",
    "SyncReport",
    "is_reminder_due",
    "reminder_interval",
    "run_hourly",
]
