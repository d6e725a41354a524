"""
Brain Capture Common Module

Shared infrastructure: configuration, LLM client, Slack client, schemas.
"""

from .config import BrainConfig, load_config
from .llm_client import LLMClient
from .slack_client import ChatClient, SlackChatClient

__all__ = [
    "BrainConfig",
    "load_config",
    "LLMClient",
    "ChatClient",
    "SlackChatClient",
]
