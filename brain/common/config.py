"""
Configuration Management for Brain Capture

Loads configuration from ~/.brain/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Tuple

logger = logging.getLogger("brain.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".brain"
CONFIG_PATH = CONFIG_DIR / "config.json"

DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-20250514"
DEFAULT_CONFIDENCE_THRESHOLD = 0.7

# (reminder_count upper bound, hours between reminders)
DEFAULT_REMINDER_TIERS: List[Tuple[int, int]] = [(3, 24), (6, 48), (8, 168)]


@dataclass
class SlackConfig:
    """Slack workspace configuration"""
    bot_token: str = ""
    signing_secret: str = ""
    webhook_port: int = 8080
    ack_reaction: str = "white_check_mark"
    done_reaction: str = "heavy_check_mark"
    delete_reaction: str = "wastebasket"
    request_timeout: float = 10.0


@dataclass
class NotionConfig:
    """Notion database configuration"""
    api_key: str = ""
    database_id: str = ""
    parent_page_id: str = ""
    api_version: str = "2022-06-28"
    request_timeout: float = 30.0


@dataclass
class LLMConfig:
    """LLM provider configuration"""
    provider: str = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = DEFAULT_CLAUDE_MODEL
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash-exp"
    request_timeout: float = 25.0

    @property
    def model(self) -> str:
        """Model name for the selected provider"""
        return {
            "anthropic": self.anthropic_model,
            "openai": self.openai_model,
            "google": self.google_model,
        }.get(self.provider, self.anthropic_model)


@dataclass
class CaptureConfig:
    """Capture pipeline configuration"""
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    rate_limit_max: int = 10
    rate_limit_window_seconds: float = 60.0
    store_backend: str = "notion"  # "notion" or "memory"


@dataclass
class RetrieverConfig:
    """Q&A configuration"""
    max_search_results: int = 20
    max_context_notes: int = 5


@dataclass
class SchedulerConfig:
    """Hourly reminder and status-sync configuration"""
    cron_secret: str = ""
    max_reminders_per_run: int = 20
    max_syncs_per_run: int = 20
    reminder_tiers: List[Tuple[int, int]] = field(
        default_factory=lambda: list(DEFAULT_REMINDER_TIERS)
    )
    auto_park_threshold: int = 8


@dataclass
class BrainConfig:
    """Main Brain Capture configuration"""
    slack: SlackConfig = field(default_factory=SlackConfig)
    notion: NotionConfig = field(default_factory=NotionConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    retriever: RetrieverConfig = field(default_factory=RetrieverConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)


def _parse_slack_config(data: dict) -> SlackConfig:
    """Parse slack section from config dict"""
    slack_data = data.get("slack", {})
    defaults = SlackConfig()
    return SlackConfig(
        bot_token=slack_data.get("bot_token", ""),
        signing_secret=slack_data.get("signing_secret", ""),
        webhook_port=slack_data.get("webhook_port", defaults.webhook_port),
        ack_reaction=slack_data.get("ack_reaction", defaults.ack_reaction),
        done_reaction=slack_data.get("done_reaction", defaults.done_reaction),
        delete_reaction=slack_data.get("delete_reaction", defaults.delete_reaction),
        request_timeout=slack_data.get("request_timeout", defaults.request_timeout),
    )


def _parse_notion_config(data: dict) -> NotionConfig:
    """Parse notion section from config dict"""
    notion_data = data.get("notion", {})
    defaults = NotionConfig()
    return NotionConfig(
        api_key=notion_data.get("api_key", ""),
        database_id=notion_data.get("database_id", ""),
        parent_page_id=notion_data.get("parent_page_id", ""),
        api_version=notion_data.get("api_version", defaults.api_version),
        request_timeout=notion_data.get("request_timeout", defaults.request_timeout),
    )


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    defaults = LLMConfig()
    return LLMConfig(
        provider=llm_data.get("provider", defaults.provider),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", defaults.anthropic_model),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", defaults.openai_model),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", defaults.google_model),
        request_timeout=llm_data.get("request_timeout", defaults.request_timeout),
    )


def _parse_capture_config(data: dict) -> CaptureConfig:
    """Parse capture section from config dict"""
    capture_data = data.get("capture", {})
    defaults = CaptureConfig()
    return CaptureConfig(
        confidence_threshold=capture_data.get("confidence_threshold", defaults.confidence_threshold),
        rate_limit_max=capture_data.get("rate_limit_max", defaults.rate_limit_max),
        rate_limit_window_seconds=capture_data.get(
            "rate_limit_window_seconds", defaults.rate_limit_window_seconds
        ),
        store_backend=capture_data.get("store_backend", defaults.store_backend),
    )


def _parse_retriever_config(data: dict) -> RetrieverConfig:
    """Parse retriever section from config dict"""
    retriever_data = data.get("retriever", {})
    defaults = RetrieverConfig()
    return RetrieverConfig(
        max_search_results=retriever_data.get("max_search_results", defaults.max_search_results),
        max_context_notes=retriever_data.get("max_context_notes", defaults.max_context_notes),
    )


def _parse_scheduler_config(data: dict) -> SchedulerConfig:
    """Parse scheduler section from config dict.

    ``reminder_tiers`` is written as a list of ``[max_count, hours]`` pairs.
    """
    scheduler_data = data.get("scheduler", {})
    defaults = SchedulerConfig()
    tiers = scheduler_data.get("reminder_tiers")
    return SchedulerConfig(
        cron_secret=scheduler_data.get("cron_secret", ""),
        max_reminders_per_run=scheduler_data.get("max_reminders_per_run", defaults.max_reminders_per_run),
        max_syncs_per_run=scheduler_data.get("max_syncs_per_run", defaults.max_syncs_per_run),
        reminder_tiers=[(int(c), int(h)) for c, h in tiers] if tiers else defaults.reminder_tiers,
        auto_park_threshold=scheduler_data.get("auto_park_threshold", defaults.auto_park_threshold),
    )


def _env_number(name: str, cast, default):
    """Read a numeric env var, keeping the default if it does not parse"""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def load_config() -> BrainConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.brain/config.json)
    3. Default values
    """
    config = BrainConfig()

    # Load from config file if exists
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.slack = _parse_slack_config(data)
            config.notion = _parse_notion_config(data)
            config.llm = _parse_llm_config(data)
            config.capture = _parse_capture_config(data)
            config.retriever = _parse_retriever_config(data)
            config.scheduler = _parse_scheduler_config(data)
        except (json.JSONDecodeError, IOError, TypeError, ValueError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # Environment variable overrides (secrets are usually set this way)
    _env_str_map = {
        "SLACK_BOT_TOKEN": (config.slack, "bot_token"),
        "SLACK_SIGNING_SECRET": (config.slack, "signing_secret"),
        "NOTION_API_KEY": (config.notion, "api_key"),
        "NOTION_DATABASE_ID": (config.notion, "database_id"),
        "NOTION_PARENT_PAGE_ID": (config.notion, "parent_page_id"),
        "ANTHROPIC_API_KEY": (config.llm, "anthropic_api_key"),
        "CLAUDE_MODEL": (config.llm, "anthropic_model"),
        "OPENAI_API_KEY": (config.llm, "openai_api_key"),
        "OPENAI_MODEL": (config.llm, "openai_model"),
        "GOOGLE_API_KEY": (config.llm, "google_api_key"),
        "GEMINI_API_KEY": (config.llm, "google_api_key"),
        "BRAIN_LLM_PROVIDER": (config.llm, "provider"),
        "BRAIN_STORE_BACKEND": (config.capture, "store_backend"),
        "CRON_SECRET": (config.scheduler, "cron_secret"),
    }
    for env_var, (section, attr) in _env_str_map.items():
        val = os.getenv(env_var)
        if val and val.strip():
            setattr(section, attr, val.strip())

    config.slack.webhook_port = _env_number("BRAIN_PORT", int, config.slack.webhook_port)
    config.capture.confidence_threshold = _env_number(
        "CONFIDENCE_THRESHOLD", float, config.capture.confidence_threshold
    )
    config.capture.rate_limit_max = _env_number("RATE_LIMIT_MAX", int, config.capture.rate_limit_max)
    config.retriever.max_search_results = _env_number(
        "MAX_SEARCH_RESULTS", int, config.retriever.max_search_results
    )
    config.scheduler.max_reminders_per_run = _env_number(
        "MAX_REMINDERS_PER_RUN", int, config.scheduler.max_reminders_per_run
    )

    return config
