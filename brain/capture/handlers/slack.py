"""
Slack Handler

Handles Slack Events API payloads and converts them to normalized events.
"""

import hmac
import hashlib
import logging
import time
from typing import Any, Dict, Optional

from .base import BaseHandler, Event, NewMessage, ReactionAdded, ReactionRemoved, ThreadReply

logger = logging.getLogger("brain.capture.handlers.slack")

# Requests older than this are treated as replays
MAX_REQUEST_AGE_SECONDS = 300


class SlackHandler(BaseHandler):
    """
    Turns Slack Events API callbacks into router events.

    Processes:
    - message events (top-level posts and thread replies)
    - reaction_added / reaction_removed on messages

    Ignores:
    - Bot messages, and reactions made by the bot user itself
    - Message subtypes (edits, deletions, joins, file shares, ...)
    - Reactions on anything that is not a message
    """

    def __init__(self, signing_secret: str = "", bot_user_id: Optional[str] = None):
        """
        Args:
            signing_secret: App signing secret; requests are rejected without one
            bot_user_id: The app's own user id (auth.test), resolved at startup
        """
        super().__init__("slack")
        self._signing_secret = signing_secret
        self.bot_user_id = bot_user_id

    def parse_event(self, raw_data: Dict[str, Any]) -> Optional[Event]:
        """
        Parse a Slack event callback into a normalized event.

        Args:
            raw_data: Decoded request body

        Returns:
            Event or None if the payload should be ignored
        """
        if raw_data.get("type") != "event_callback":
            return None

        event = raw_data.get("event") or {}
        event_type = event.get("type", "")

        if event_type == "message":
            return self._parse_message_event(event)

        if event_type in ("reaction_added", "reaction_removed"):
            return self._parse_reaction_event(event)

        return None

    def _parse_message_event(self, event: Dict[str, Any]) -> Optional[Event]:
        # Bot posts, our own replies included, and edits or joins are not captures
        if event.get("bot_id") or event.get("subtype"):
            return None

        text = event.get("text") or ""
        channel = event.get("channel", "")
        ts = event.get("ts", "")
        if not text or not channel or not ts:
            return None

        user = event.get("user") or None
        thread_ts = event.get("thread_ts")

        if thread_ts and thread_ts != ts:
            return ThreadReply(text=text, channel=channel, ts=ts, thread_ts=thread_ts, user=user)

        return NewMessage(text=text, channel=channel, ts=ts, user=user)

    def _parse_reaction_event(self, event: Dict[str, Any]) -> Optional[Event]:
        """Parse a reaction_added / reaction_removed event"""
        item = event.get("item") or {}
        if item.get("type") != "message":
            return None

        user = event.get("user") or None
        # Echo of our own ack or status-mirror reaction
        if user and user == self.bot_user_id:
            return None

        reaction = event.get("reaction", "")
        channel = item.get("channel", "")
        ts = item.get("ts", "")
        if not reaction or not channel or not ts:
            return None

        event_cls = ReactionAdded if event.get("type") == "reaction_added" else ReactionRemoved
        return event_cls(reaction=reaction, channel=channel, ts=ts, user=user)

    def verify_signature(
        self,
        body: bytes,
        signature: str,
        timestamp: str,
        now: Optional[float] = None,
    ) -> bool:
        """
        Check the v0 HMAC of ``body`` against the X-Slack-Signature header.

        ``timestamp`` is X-Slack-Request-Timestamp. Requests more than five
        minutes away from ``now`` (epoch seconds, default time.time()) are
        treated as replays.
        """
        if not self._signing_secret:
            logger.error("Slack signing secret not configured, rejecting request")
            return False

        if not signature or not timestamp:
            return False

        try:
            sent_at = int(timestamp)
        except ValueError:
            return False
        current = time.time() if now is None else now
        if abs(current - sent_at) > MAX_REQUEST_AGE_SECONDS:
            logger.warning("Rejecting stale Slack request (timestamp %s)", timestamp)
            return False

        return hmac.compare_digest(self.compute_signature(body, timestamp), signature)

    def compute_signature(self, body: bytes, timestamp: str) -> str:
        """v0 signature of a request body"""
        sig_basestring = b"v0:" + timestamp.encode("utf-8") + b":" + body
        return "v0=" + hmac.new(
            self._signing_secret.encode("utf-8"),
            sig_basestring,
            hashlib.sha256,
        ).hexdigest()

    def is_url_verification(self, raw_data: Dict[str, Any]) -> bool:
        """True for the endpoint ownership challenge"""
        return raw_data.get("type") == "url_verification"

    def get_challenge(self, raw_data: Dict[str, Any]) -> Optional[str]:
        if self.is_url_verification(raw_data):
            return raw_data.get("challenge")
        return None
