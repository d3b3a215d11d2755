"""Inquiry processing pipeline: search, answer, reply, record."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from inquiry_bot.config import Settings
from inquiry_bot.errors import (
    ErrorCategory,
    ExternalServiceError,
    GenerationError,
    InquiryBotError,
    PersistenceError,
)
from inquiry_bot.inquiry.answer import AnswerGenerator
from inquiry_bot.search import SearchEngine
from inquiry_bot.slack import SlackClient
from inquiry_bot.storage import Inquiry, InquiryRepository, InquiryStatus, SearchResult

logger = logging.getLogger(__name__)

RESPONSE_HEADER = "🤖 *AI Assistant Response*\n\n"

NO_RESULTS_FALLBACK = (
    "I couldn't find relevant information to answer your inquiry. "
    "You might want to check our documentation or reach out to the relevant team directly."
)

FALLBACK_EXCERPT_LENGTH = 100
FALLBACK_RESULT_COUNT = 3


def generate_fallback_response(search_results: list[SearchResult]) -> str:
    """Summarize the top results when no AI answer is available."""
    if not search_results:
        return NO_RESULTS_FALLBACK

    lines = ["I found some potentially relevant information:", ""]
    for result in search_results[:FALLBACK_RESULT_COUNT]:
        lines.append(f"• *{result.title}* ({result.source})")
        if result.content:
            content = result.content
            if len(content) > FALLBACK_EXCERPT_LENGTH:
                content = content[:FALLBACK_EXCERPT_LENGTH] + "..."
            lines.append(f"  {content}")
        if result.url:
            lines.append(f"  {result.url}")
        lines.append("")

    lines.append(
        "Please review these resources or contact the relevant team for more specific assistance."
    )
    return "\n".join(lines)


class InquiryOrchestrator:
    """Drives one inquiry from ``pending`` to ``completed`` or ``failed``.

    The pending row is written before any external call and the terminal
    status after the last one. Cancellation is not caught: a cancelled
    pipeline leaves its inquiry in ``processing``.
    """

    def __init__(
        self,
        settings: Settings,
        repository: InquiryRepository,
        search_engine: SearchEngine,
        answer_generator: AnswerGenerator,
        slack: SlackClient,
    ):
        self.settings = settings
        self.repository = repository
        self.search_engine = search_engine
        self.answer_generator = answer_generator
        self.slack = slack

    async def process_inquiry(
        self,
        message_id: str,
        channel_id: str,
        user_id: str,
        message_text: str,
        source_timestamp: str,
    ) -> Inquiry:
        """Process an inquiry from start to finish.

        Returns:
            The inquiry in its terminal state

        Raises:
            DuplicateInquiryError: An inquiry for this message already exists
            PersistenceError: The pending inquiry could not be created
        """
        logger.info(
            f"Starting inquiry processing for message {message_id} "
            f"in channel {channel_id} from user {user_id}"
        )

        inquiry = await self.repository.create_inquiry(
            message_id=message_id,
            channel_id=channel_id,
            user_id=user_id,
            message_text=message_text,
            source_timestamp=source_timestamp,
        )

        await self._update(inquiry, status=InquiryStatus.PROCESSING.value)

        try:
            search_results = await self.search_engine.search_all(message_text, inquiry.id)
        except Exception as e:
            logger.error(f"Search failed for inquiry {inquiry.id}: {e}", exc_info=True)
            await self._update(inquiry, status=InquiryStatus.FAILED.value)
            return inquiry

        try:
            answer = await self.answer_generator.generate(message_text, search_results)
        except GenerationError as e:
            logger.error(f"Failed to generate AI response for inquiry {inquiry.id}: {e}")
            return await self._finish_with_fallback(inquiry, search_results)

        try:
            reply_ts = await self.send_response(inquiry, answer)
        except InquiryBotError as e:
            logger.error(f"Failed to send response for inquiry {inquiry.id}: {e}")
            await self._update(
                inquiry, status=InquiryStatus.FAILED.value, response_text=answer
            )
            return inquiry

        await self._update(
            inquiry,
            status=InquiryStatus.COMPLETED.value,
            processed_at=datetime.now(timezone.utc),
            response_sent=True,
            response_text=answer,
            reply_thread_id=reply_ts,
        )
        logger.info(
            f"Inquiry {inquiry.id} completed with {len(search_results)} search results "
            f"and a {len(answer)} character response"
        )
        return inquiry

    async def _finish_with_fallback(
        self, inquiry: Inquiry, search_results: list[SearchResult]
    ) -> Inquiry:
        """Deliver the local fallback; the inquiry always ends ``failed``."""
        fallback = generate_fallback_response(search_results)
        changes: dict[str, Any] = {
            "status": InquiryStatus.FAILED.value,
            "response_text": fallback,
        }
        try:
            changes["reply_thread_id"] = await self.send_response(inquiry, fallback)
            changes["response_sent"] = True
        except InquiryBotError as e:
            logger.error(f"Failed to send fallback response for inquiry {inquiry.id}: {e}")

        await self._update(inquiry, **changes)
        return inquiry

    async def send_response(self, inquiry: Inquiry, response: str) -> str:
        """Post ``response`` as a thread reply to the inquiry's message.

        Returns:
            Timestamp of the posted reply

        Raises:
            ExternalServiceError: If Slack rejects the reply or the deadline passes
        """
        thread_ts = inquiry.source_timestamp or inquiry.message_id
        try:
            return await asyncio.wait_for(
                self.slack.post_thread_reply(
                    inquiry.channel_id, thread_ts, RESPONSE_HEADER + response
                ),
                timeout=self.settings.reply_timeout,
            )
        except asyncio.TimeoutError as e:
            raise ExternalServiceError(
                "slack",
                f"Thread reply timed out after {self.settings.reply_timeout}s",
                ErrorCategory.TIMEOUT,
            ) from e

    async def _update(self, inquiry: Inquiry, **changes: Any) -> None:
        """Apply changes locally and persist them; failures are only logged."""
        for key, value in changes.items():
            setattr(inquiry, key, value)
        try:
            await self.repository.update_inquiry(inquiry.id, **changes)
        except PersistenceError as e:
            logger.error(f"Failed to persist inquiry {inquiry.id} state: {e}")

    async def get_inquiry(self, inquiry_id: int) -> Inquiry | None:
        """Retrieve an inquiry with its search results."""
        return await self.repository.get_inquiry(inquiry_id)

    async def get_inquiry_by_message_id(self, message_id: str) -> Inquiry | None:
        """Retrieve the inquiry created for a Slack message."""
        return await self.repository.get_inquiry_by_message_id(message_id)

    async def list_recent_inquiries(self, limit: int = 5) -> list[Inquiry]:
        """List the most recent inquiries, newest first."""
        return await self.repository.list_recent_inquiries(limit)
