"""
Chat Client

Outbound Slack operations used by the router and the hourly jobs:
reactions, threaded replies, and fetching a message's text by timestamp.

Sends never raise. A failed or timed-out call is logged and reported as
False / None so one bad send cannot abort an event or a batch.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

logger = logging.getLogger("brain.common.slack_client")

# Slack errors that mean the desired end state already holds
_IDEMPOTENT_ERRORS = {"already_reacted", "no_reaction"}


class ChatClient(ABC):
    """Outbound chat surface"""

    @abstractmethod
    async def add_reaction(self, channel: str, ts: str, name: str) -> bool:
        ...

    @abstractmethod
    async def remove_reaction(self, channel: str, ts: str, name: str) -> bool:
        ...

    @abstractmethod
    async def post_reply(self, channel: str, thread_ts: str, text: str) -> bool:
        ...

    @abstractmethod
    async def fetch_message_text(self, channel: str, ts: str) -> Optional[str]:
        """Text of a top-level message, or None if it cannot be retrieved"""
        ...

    async def fetch_bot_user_id(self) -> Optional[str]:
        """User id the bot acts as, or None if unknown"""
        return None

    async def close(self) -> None:
        return None


class SlackChatClient(ChatClient):
    """
    ChatClient over the Slack Web API.

    Usage:
        chat = SlackChatClient(token="xoxb-...", timeout=10)
        ok = await chat.post_reply("C123", "1700000000.000100", "Saved")
    """

    def __init__(self, token: str, timeout: float = 10.0, client: Optional[AsyncWebClient] = None):
        if not token and client is None:
            logger.warning("Slack bot token not configured, outbound messages will fail")
        self._client = client or AsyncWebClient(token=token or None, timeout=int(timeout))

    async def add_reaction(self, channel: str, ts: str, name: str) -> bool:
        return await self._call(
            "reactions.add", self._client.reactions_add,
            channel=channel, timestamp=ts, name=name,
        )

    async def remove_reaction(self, channel: str, ts: str, name: str) -> bool:
        return await self._call(
            "reactions.remove", self._client.reactions_remove,
            channel=channel, timestamp=ts, name=name,
        )

    async def post_reply(self, channel: str, thread_ts: str, text: str) -> bool:
        return await self._call(
            "chat.postMessage", self._client.chat_postMessage,
            channel=channel, thread_ts=thread_ts, text=text,
        )

    async def fetch_message_text(self, channel: str, ts: str) -> Optional[str]:
        try:
            response = await self._client.conversations_history(
                channel=channel, latest=ts, inclusive=True, limit=1,
            )
        except SlackApiError as e:
            logger.warning("conversations.history failed for %s/%s: %s", channel, ts, e.response.get("error"))
            return None
        except Exception as e:
            logger.warning("conversations.history failed for %s/%s: %s", channel, ts, e)
            return None

        messages = response.get("messages") or []
        if not messages:
            return None
        message = messages[0]
        if message.get("ts") != ts:
            return None
        return message.get("text") or None

    async def fetch_bot_user_id(self) -> Optional[str]:
        try:
            response = await self._client.auth_test()
        except SlackApiError as e:
            logger.warning("auth.test failed: %s", e.response.get("error"))
            return None
        except Exception as e:
            logger.warning("auth.test failed: %s", e)
            return None
        return response.get("user_id") or None

    async def close(self) -> None:
        session = getattr(self._client, "session", None)
        if session is not None and not session.closed:
            await session.close()

    async def _call(self, method: str, func, **kwargs) -> bool:
        try:
            response = await func(**kwargs)
        except SlackApiError as e:
            error = e.response.get("error", "")
            if error in _IDEMPOTENT_ERRORS:
                return True
            logger.warning("Slack %s failed: %s", method, error or e)
            return False
        except Exception as e:
            logger.warning("Slack %s failed: %s", method, e)
            return False
        return bool(response.get("ok", False))
