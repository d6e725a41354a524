"""
Base Handler

Normalized inbound events and the abstract handler that produces them
from source-specific webhook payloads.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


@dataclass
class NewMessage:
    """A top-level post in the capture channel"""
    text: str
    channel: str
    ts: str
    user: Optional[str] = None

    @property
    def external_id(self) -> str:
        return self.ts


@dataclass
class ThreadReply:
    """A reply inside a thread; thread_ts is the parent message's ts"""
    text: str
    channel: str
    ts: str
    thread_ts: str
    user: Optional[str] = None

    @property
    def external_id(self) -> str:
        return self.ts

    @property
    def parent_external_id(self) -> str:
        return self.thread_ts


@dataclass
class ReactionAdded:
    """An emoji reaction added to a message"""
    reaction: str
    channel: str
    ts: str
    user: Optional[str] = None

    @property
    def target_external_id(self) -> str:
        return self.ts


@dataclass
class ReactionRemoved:
    """An emoji reaction removed from a message"""
    reaction: str
    channel: str
    ts: str
    user: Optional[str] = None

    @property
    def target_external_id(self) -> str:
        return self.ts


Event = Union[NewMessage, ThreadReply, ReactionAdded, ReactionRemoved]


class BaseHandler(ABC):
    """Turns one chat platform's webhook payloads into router events"""

    def __init__(self, source_name: str):
        self.source_name = source_name

    @abstractmethod
    def parse_event(self, raw_data: Dict[str, Any]) -> Optional[Event]:
        """Normalized event, or None when the payload is not for the router"""

    @abstractmethod
    def verify_signature(self, body: bytes, signature: str, timestamp: str) -> bool:
        """True only for an authentic, fresh request"""
