"""
Capture - turns Slack events into notes.

Key Components:
- SlackHandler: signature check and payload parsing
- NoteClassifier: intent and PARA category via LLM
- EventRouter: per-event state machine
- FixedWindowRateLimiter: per-user event cap

The FastAPI app lives in brain.capture.server.
"""

from .classifier import NoteClassifier
from .rate_limiter import FixedWindowRateLimiter
from .router import EventRouter, Outcome
from .url_extractor import extract_urls

__all__ = [
    "NoteClassifier",
    "FixedWindowRateLimiter",
    "EventRouter",
    "Outcome",
    "extract_urls",
]
