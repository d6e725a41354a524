"""
Source Handlers

Convert source-specific webhook payloads into normalized events.

Available Handlers:
- SlackHandler: Slack Events API
"""

from .base import BaseHandler, Event, NewMessage, ThreadReply, ReactionAdded, ReactionRemoved
from .slack import SlackHandler

__all__ = [
    "BaseHandler",
    "Event",
    "NewMessage",
    "ThreadReply",
    "ReactionAdded",
    "ReactionRemoved",
    "SlackHandler",
]
