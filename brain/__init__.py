"""
Brain Capture

Captures thoughts posted to a Slack channel, classifies them into PARA
categories with an LLM, stores them in Notion, and keeps their lifecycle
(open / done / parked) in sync between Slack and Notion.

Philosophy:
- Every inbound event is safe to redeliver (duplicate guard, no-op on not-found)
- Dependencies fail soft: the classifier falls back, chat sends log and continue
- Slack reactions drive status; Notion edits are mirrored back hourly

Usage:
    from brain.common import load_config
    from brain.context import build_context
    from brain.capture import EventRouter, NoteClassifier
    from brain.retriever import QAEngine
"""

__version__ = "0.1.0"
