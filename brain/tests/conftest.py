"""Shared fixtures: in-memory store, recording chat client, scripted LLM."""

import json
from typing import List, Optional
from unittest.mock import Mock

import pytest

from brain.common.slack_client import ChatClient


class FakeChat(ChatClient):
    """ChatClient that records every call"""

    def __init__(self, messages: Optional[dict] = None):
        self.reactions_added: List[tuple] = []
        self.reactions_removed: List[tuple] = []
        self.replies: List[tuple] = []
        self.messages = dict(messages or {})
        self.fail_posts = False
        self.fail_reactions = False
        self.bot_user_id: Optional[str] = None

    async def add_reaction(self, channel, ts, name):
        if self.fail_reactions:
            return False
        self.reactions_added.append((channel, ts, name))
        return True

    async def remove_reaction(self, channel, ts, name):
        if self.fail_reactions:
            return False
        self.reactions_removed.append((channel, ts, name))
        return True

    async def post_reply(self, channel, thread_ts, text):
        if self.fail_posts:
            return False
        self.replies.append((channel, thread_ts, text))
        return True

    async def fetch_message_text(self, channel, ts):
        return self.messages.get((channel, ts))

    async def fetch_bot_user_id(self):
        return self.bot_user_id


def llm_returning(*payloads):
    """Mock LLMClient whose generate() returns the given payloads in order.

    Dicts are JSON-encoded; strings are returned as-is.
    """
    llm = Mock()
    llm.is_available = True
    llm.generate.side_effect = [
        json.dumps(p) if isinstance(p, dict) else p for p in payloads
    ]
    return llm


def note_payload(category="Projects", confidence=0.9, subcategory=None, next_action=None):
    return {
        "intent": "note",
        "isMeaningful": True,
        "category": category,
        "subcategory": subcategory,
        "confidence": confidence,
        "reasoning": "test",
        "nextAction": next_action,
    }


QUESTION_PAYLOAD = {
    "intent": "question",
    "isMeaningful": True,
    "category": None,
    "subcategory": None,
    "confidence": 1.0,
    "reasoning": "asks about saved notes",
    "nextAction": None,
}

NOISE_PAYLOAD = {
    "intent": "noise",
    "isMeaningful": False,
    "category": None,
    "subcategory": None,
    "confidence": 0.0,
    "reasoning": "acknowledgement",
    "nextAction": None,
}


@pytest.fixture
def store():
    from brain.store.memory import InMemoryNoteStore
    return InMemoryNoteStore()


@pytest.fixture
def chat():
    return FakeChat()


@pytest.fixture
def make_router(store, chat):
    """Build an EventRouter over the in-memory store with a scripted LLM"""
    from brain.capture.classifier import NoteClassifier
    from brain.capture.router import EventRouter
    from brain.retriever.qa import QAEngine

    def _make(*payloads, bot_user_id=None):
        llm = llm_returning(*payloads)
        classifier = NoteClassifier(llm, confidence_threshold=0.7)
        qa = QAEngine(store, classifier)
        router = EventRouter(store, chat, classifier, qa, bot_user_id=bot_user_id)
        router.llm = llm
        return router

    return _make
