"""
Capture Server

FastAPI server receiving Slack events and the hourly cron trigger.

Endpoints:
- POST /slack/events: Slack Events API webhook
- POST|GET /cron/hourly: reminders and status sync (Bearer cron secret)
- GET /health: Health check

Pipeline:
1. Verify the Slack signature
2. Parse the payload into a normalized event
3. Rate-limit per user
4. Acknowledge immediately; route the event in a background task
"""

import hmac
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from ..common.config import load_config
from ..context import AppContext, build_context
from ..scheduler import run_hourly

logger = logging.getLogger("brain.capture.server")

# Slack payloads are small; anything larger is rejected unread
MAX_BODY_BYTES = 1024 * 1024

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        context: Prebuilt context (tests); built from load_config() otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx = context or build_context(load_config())
        logger.info("Starting up (store backend: %s)", ctx.config.capture.store_backend)
        await ctx.startup()
        app.state.ctx = ctx
        logger.info("Ready to receive events")

        yield

        logger.info("Shutting down...")
        await ctx.close()

    app = FastAPI(
        title="Brain Capture",
        description="Slack thought capture with PARA classification and Notion storage",
        version="0.1.0",
        lifespan=lifespan,
    )

    # =========================================================================
    # Endpoints
    # =========================================================================

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint"""
        ctx: Optional[AppContext] = getattr(request.app.state, "ctx", None)
        return {
            "status": "healthy",
            "service": "brain-capture",
            "initialized": bool(ctx and ctx.ready),
            "store": type(ctx.store).__name__ if ctx else None,
            "llm_available": ctx.classifier.is_available if ctx else False,
        }

    @app.post("/slack/events")
    async def slack_events(
        request: Request,
        background_tasks: BackgroundTasks,
        x_slack_signature: Optional[str] = Header(None),
        x_slack_request_timestamp: Optional[str] = Header(None),
    ):
        """
        Handle Slack webhook events.

        Responds before any classification or store I/O; the event is
        routed in a background task whose failures are only logged.
        """
        ctx = _context(request)

        body = await request.body()
        if len(body) > MAX_BODY_BYTES:
            raise HTTPException(status_code=413, detail="Payload too large")

        # Verify signature
        if not ctx.slack_handler.verify_signature(
            body,
            x_slack_signature or "",
            x_slack_request_timestamp or "",
        ):
            raise HTTPException(status_code=401, detail="Invalid signature")

        # Parse JSON
        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Invalid JSON")
        if not isinstance(data, dict):
            raise HTTPException(status_code=400, detail="Invalid JSON")

        # Handle URL verification challenge
        if ctx.slack_handler.is_url_verification(data):
            return JSONResponse({"challenge": ctx.slack_handler.get_challenge(data)})

        event = ctx.slack_handler.parse_event(data)
        if event is None:
            return JSONResponse({"ok": True})

        if event.user and not ctx.rate_limiter.allow(event.user):
            logger.warning("Rate limit exceeded for user %s, dropping event", event.user)
            return JSONResponse({"ok": True})

        background_tasks.add_task(ctx.router.dispatch, event)

        # Acknowledge receipt
        return JSONResponse({"ok": True})

    @app.api_route("/cron/hourly", methods=["GET", "POST"])
    async def cron_hourly(request: Request, authorization: Optional[str] = Header(None)):
        """Send due reminders and mirror Notion status changes to Slack"""
        ctx = _context(request)

        if not _cron_authorized(ctx.config.scheduler.cron_secret, authorization):
            raise HTTPException(status_code=401, detail="Unauthorized")

        result = await run_hourly(ctx.reminders, ctx.status_syncer)
        status_code = 200 if result["ok"] else 500
        return JSONResponse(result, status_code=status_code)

    return app


def _context(request: Request) -> AppContext:
    ctx = getattr(request.app.state, "ctx", None)
    if ctx is None:
        raise HTTPException(status_code=503, detail="Not initialized")
    return ctx


def _cron_authorized(secret: str, authorization: Optional[str]) -> bool:
    if not secret:
        logger.error("CRON_SECRET not configured, rejecting cron trigger")
        return False
    if not authorization:
        return False
    return hmac.compare_digest(authorization.encode(), f"Bearer {secret}".encode())


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the capture server"""
    import uvicorn
    from dotenv import load_dotenv

    # Secrets may come from a local .env during development
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    config = load_config()
    port = config.slack.webhook_port

    logger.info("Starting server on port %d", port)
    uvicorn.run(
        "brain.capture.server:app",
        host="0.0.0.0",
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
