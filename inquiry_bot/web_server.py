"""HTTP server receiving Slack webhooks."""

import asyncio
import json
import logging
from collections.abc import Coroutine
from typing import Any
from urllib.parse import parse_qs

from aiohttp import web

from inquiry_bot.config import Settings
from inquiry_bot.errors import InquiryBotError, RequestValidationError
from inquiry_bot.inquiry import InquiryOrchestrator, ReactionIntake
from inquiry_bot.slack import (
    EventCallback,
    MessagePayload,
    ReactionPayload,
    SignatureVerifier,
    UrlVerification,
    decode_envelope,
)
from inquiry_bot.storage import InquiryStatus

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    InquiryStatus.COMPLETED.value: "✅",
    InquiryStatus.FAILED.value: "❌",
    InquiryStatus.PROCESSING.value: "⏳",
}


class WebServer:
    """HTTP server for the Slack Events API, slash commands and interactivity."""

    def __init__(
        self,
        settings: Settings,
        verifier: SignatureVerifier,
        intake: ReactionIntake,
        orchestrator: InquiryOrchestrator,
    ):
        """Initialize web server."""
        self.settings = settings
        self.verifier = verifier
        self.intake = intake
        self.orchestrator = orchestrator
        self.app = web.Application()
        self._tasks: set[asyncio.Task] = set()
        self._slots = asyncio.Semaphore(settings.max_concurrent_inquiries)
        self._setup_routes()

    def _setup_routes(self):
        """Set up HTTP routes."""
        self.app.router.add_get("/health", self._handle_health)
        self.app.router.add_post("/api/v1/slack/events", self._handle_events)
        self.app.router.add_post("/api/v1/slack/slash", self._handle_slash_command)
        self.app.router.add_post("/api/v1/slack/interactive", self._handle_interactive)
        logger.info(
            "Routes configured: /health, /api/v1/slack/events, "
            "/api/v1/slack/slash, /api/v1/slack/interactive"
        )

    async def _verified_body(self, request: web.Request) -> bytes:
        """Read the raw body and reject requests not signed by Slack."""
        body = await request.read()
        if not self.verifier.verify(body, request.headers):
            logger.error(f"Invalid Slack signature on {request.path}")
            raise web.HTTPUnauthorized(
                text=json.dumps({"error": "invalid signature"}),
                content_type="application/json",
            )
        return body

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.json_response({"status": "healthy", "service": "inquiry-bot"})

    async def _handle_events(self, request: web.Request) -> web.Response:
        """Handle Slack Events API callbacks."""
        body = await self._verified_body(request)

        try:
            envelope = decode_envelope(json.loads(body))
        except (ValueError, RequestValidationError) as e:
            logger.error(f"Failed to parse Slack event: {e}")
            return web.json_response({"error": "invalid payload"}, status=400)

        if isinstance(envelope, UrlVerification):
            return web.json_response({"challenge": envelope.challenge})

        if isinstance(envelope, EventCallback):
            self.submit(self._process_event(envelope))
        else:
            logger.debug(f"Ignoring envelope type: {envelope.type}")

        return web.json_response({"status": "ok"})

    async def _handle_slash_command(self, request: web.Request) -> web.Response:
        """Handle Slack slash commands."""
        body = await self._verified_body(request)
        try:
            form = {key: values[0] for key, values in parse_qs(body.decode("utf-8")).items()}
        except UnicodeDecodeError as e:
            logger.error(f"Failed to parse slash command: {e}")
            return web.json_response({"error": "invalid payload"}, status=400)

        command = form.get("command", "")
        logger.info(
            f"Received slash command {command} from user {form.get('user_id')} "
            f"in channel {form.get('channel_id')}"
        )

        if command == "/inquiry-help":
            text = self.help_text()
        elif command == "/inquiry-status":
            text = await self.status_text()
        else:
            text = "Unknown command. Use `/inquiry-help` for help."

        return web.json_response({"response_type": "ephemeral", "text": text})

    async def _handle_interactive(self, request: web.Request) -> web.Response:
        """Acknowledge Slack interactive component callbacks."""
        await self._verified_body(request)
        logger.info("Received interactive component")
        return web.json_response({"status": "ok"})

    def submit(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        """Run ``coro`` in the background, bounded by the concurrency limit."""

        async def run() -> None:
            async with self._slots:
                await coro

        task = asyncio.create_task(run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every background task to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _process_event(self, envelope: EventCallback) -> None:
        """Dispatch a decoded workspace event."""
        event = envelope.event
        if isinstance(event, ReactionPayload):
            await self._handle_reaction(event)
        elif isinstance(event, MessagePayload):
            logger.debug(f"Received message event in channel {event.channel}")
        else:
            logger.debug(f"Unhandled event type: {event.type}")

    async def _handle_reaction(self, event: ReactionPayload) -> None:
        if not event.is_message_reaction:
            return

        try:
            await self.intake.on_reaction(
                message_id=event.item.ts,
                channel_id=event.item.channel,
                user_id=event.user,
                reaction=event.reaction,
                event_type=event.event_type,
                event_timestamp=event.event_ts,
            )
        except InquiryBotError as e:
            logger.error(
                f"Failed to process reaction event {event.event_type} :{event.reaction}: "
                f"on message {event.item.ts} in {event.item.channel}: {e}"
            )
        except Exception:
            logger.exception(f"Unexpected error processing reaction on message {event.item.ts}")

    def help_text(self) -> str:
        """Help text for ``/inquiry-help``."""
        return (
            "*Inquiry Bot Help*\n\n"
            "This bot answers team inquiries by searching past Slack discussions "
            "and Confluence documentation.\n\n"
            "*How to use:*\n"
            f"1. React to any message with the :{self.settings.trigger_emoji}: emoji\n"
            "2. The bot searches for similar discussions and documentation\n"
            "3. An AI-generated response is posted as a thread reply\n\n"
            "*Commands:*\n"
            "• `/inquiry-help` - Show this help message\n"
            "• `/inquiry-status` - Show bot status and recent activity\n\n"
            "*Features:*\n"
            f"• Searches Slack messages from the last {self.settings.search_days_back} days\n"
            "• Searches relevant Confluence pages\n"
            "• Falls back to a summary of the best matches when AI is unavailable"
        )

    async def status_text(self, limit: int = 5) -> str:
        """Status text for ``/inquiry-status``."""
        try:
            inquiries = await self.orchestrator.list_recent_inquiries(limit)
        except Exception as e:
            logger.error(f"Failed to list recent inquiries: {e}")
            return "❌ Error retrieving status information"

        lines = ["*Inquiry Bot Status*", "", "✅ Bot is running and operational", ""]
        if not inquiries:
            lines.append("No recent inquiries processed.")
            return "\n".join(lines)

        lines.append(f"*Recent Activity* (last {len(inquiries)} inquiries):")
        for inquiry in inquiries:
            icon = STATUS_ICONS.get(inquiry.status, "❓")
            created = inquiry.created_at.strftime("%b %d %H:%M") if inquiry.created_at else ""
            lines.append(f"{icon} {created} - {inquiry.status}")
            lines.append(inquiry.message_text)
        return "\n".join(lines)

    async def start(self) -> web.AppRunner:
        """Start the web server."""
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, self.settings.host, self.settings.port)
        await site.start()
        logger.info(f"Web server started on {self.settings.host}:{self.settings.port}")
        return runner

    async def stop(self, runner: web.AppRunner) -> None:
        """Stop accepting requests and finish in-flight inquiries."""
        await runner.cleanup()
        await self.drain()
        logger.info("Web server stopped")
