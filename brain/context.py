"""
Application Context

Everything a running process needs, constructed once at startup and passed
explicitly to whoever uses it. Holds no module-level state.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .capture.classifier import NoteClassifier
from .capture.handlers import SlackHandler
from .capture.rate_limiter import FixedWindowRateLimiter
from .capture.router import EventRouter
from .common.config import BrainConfig, load_config
from .common.llm_client import LLMClient
from .common.slack_client import ChatClient, SlackChatClient
from .retriever.qa import QAEngine
from .scheduler import ReminderScheduler, StatusSyncer
from .store import NoteStore, create_store

logger = logging.getLogger("brain.context")


@dataclass
class AppContext:
    """Wired components for one process"""
    config: BrainConfig
    store: NoteStore
    chat: ChatClient
    llm: LLMClient
    classifier: NoteClassifier
    qa: QAEngine
    router: EventRouter
    rate_limiter: FixedWindowRateLimiter
    slack_handler: SlackHandler
    reminders: ReminderScheduler
    status_syncer: StatusSyncer
    bot_user_id: Optional[str] = None
    ready: bool = False

    async def startup(self) -> None:
        """One-time initialization: create or migrate the note database, learn the bot's user id"""
        if self.ready:
            return
        await self.store.ensure_ready()

        self.bot_user_id = await self.chat.fetch_bot_user_id()
        self.router.bot_user_id = self.bot_user_id
        self.slack_handler.bot_user_id = self.bot_user_id
        if self.bot_user_id:
            logger.info("Ignoring reactions from bot user %s", self.bot_user_id)
        else:
            logger.warning("Bot user id unknown; the bot's own reactions will be routed")
        self.ready = True
        logger.info("Note store ready (%s)", type(self.store).__name__)

    async def close(self) -> None:
        await self.store.close()
        await self.chat.close()


def build_context(
    config: Optional[BrainConfig] = None,
    *,
    store: Optional[NoteStore] = None,
    chat: Optional[ChatClient] = None,
    llm: Optional[LLMClient] = None,
) -> AppContext:
    """
    Wire all components from configuration.

    Args:
        config: Loaded configuration (load_config() if omitted)
        store: Override the configured store backend
        chat: Override the Slack client
        llm: Override the LLM client

    Returns:
        AppContext (call ``await ctx.startup()`` before serving)
    """
    config = config or load_config()

    if store is None:
        store = create_store(config)
    if chat is None:
        chat = SlackChatClient(
            token=config.slack.bot_token,
            timeout=config.slack.request_timeout,
        )
    if llm is None:
        llm = LLMClient.from_config(config.llm)
    if not llm.is_available:
        logger.warning("LLM unavailable: every message will be saved as Uncategorized")

    classifier = NoteClassifier(llm, confidence_threshold=config.capture.confidence_threshold)
    qa = QAEngine(
        store,
        classifier,
        max_search_results=config.retriever.max_search_results,
        max_context_notes=config.retriever.max_context_notes,
    )
    router = EventRouter(
        store,
        chat,
        classifier,
        qa,
        ack_reaction=config.slack.ack_reaction,
        done_reaction=config.slack.done_reaction,
        delete_reaction=config.slack.delete_reaction,
    )

    return AppContext(
        config=config,
        store=store,
        chat=chat,
        llm=llm,
        classifier=classifier,
        qa=qa,
        router=router,
        rate_limiter=FixedWindowRateLimiter(
            max_events=config.capture.rate_limit_max,
            window_seconds=config.capture.rate_limit_window_seconds,
        ),
        slack_handler=SlackHandler(signing_secret=config.slack.signing_secret),
        reminders=ReminderScheduler(
            store,
            chat,
            max_per_run=config.scheduler.max_reminders_per_run,
            tiers=config.scheduler.reminder_tiers,
            auto_park_threshold=config.scheduler.auto_park_threshold,
        ),
        status_syncer=StatusSyncer(
            store,
            chat,
            done_reaction=config.slack.done_reaction,
            max_per_run=config.scheduler.max_syncs_per_run,
        ),
    )
