"""Turns trigger-emoji reactions into inquiries."""

import logging

from inquiry_bot.config import Settings
from inquiry_bot.errors import (
    DuplicateInquiryError,
    EmptyMessageError,
    InquiryBotError,
    MessageFetchError,
    PersistenceError,
)
from inquiry_bot.inquiry.orchestrator import InquiryOrchestrator
from inquiry_bot.slack import SlackClient
from inquiry_bot.storage import Inquiry, InquiryRepository, ReactionEvent

logger = logging.getLogger(__name__)


class ReactionIntake:
    """Filters, records and deduplicates reaction events."""

    def __init__(
        self,
        settings: Settings,
        repository: InquiryRepository,
        slack: SlackClient,
        orchestrator: InquiryOrchestrator,
    ):
        self.settings = settings
        self.repository = repository
        self.slack = slack
        self.orchestrator = orchestrator

    async def on_reaction(
        self,
        message_id: str,
        channel_id: str,
        user_id: str,
        reaction: str,
        event_type: str,
        event_timestamp: str,
    ) -> Inquiry | None:
        """Handle a reaction on a Slack message.

        Args:
            message_id: Timestamp of the reacted-to message
            channel_id: Channel of the reacted-to message
            user_id: User who reacted
            reaction: Emoji name
            event_type: ``added`` or ``removed``
            event_timestamp: Timestamp of the reaction event

        Returns:
            The inquiry for the message, or None when the event is ignored

        Raises:
            EmptyMessageError: The message has no text
            MessageFetchError: The message could not be retrieved
            PersistenceError: The event or the pending inquiry could not be stored
        """
        if reaction != self.settings.trigger_emoji:
            return None

        reaction_event = await self.repository.record_reaction_event(
            message_id=message_id,
            channel_id=channel_id,
            user_id=user_id,
            reaction=reaction,
            event_type=event_type,
            source_timestamp=event_timestamp,
        )

        if event_type != "added":
            return None

        logger.info(f"Processing trigger emoji reaction on message {message_id} in {channel_id}")

        # Fast path only; the unique index on message_id is what prevents duplicates
        existing = await self.repository.get_inquiry_by_message_id(message_id)
        if existing is not None:
            logger.info(f"Message {message_id} already processed, skipping")
            await self._link(reaction_event, existing)
            return existing

        try:
            message = await self.slack.fetch_message(channel_id, message_id)
        except InquiryBotError as e:
            logger.error(f"Failed to get original message {message_id}: {e}")
            raise MessageFetchError(f"Failed to get message {message_id}: {e}") from e

        if not message.text.strip():
            logger.info(f"Slack message {message_id} is empty")
            raise EmptyMessageError(f"Message {message_id} has no text")

        try:
            inquiry = await self.orchestrator.process_inquiry(
                message_id=message_id,
                channel_id=channel_id,
                user_id=message.user,
                message_text=message.text,
                source_timestamp=message.timestamp,
            )
        except DuplicateInquiryError:
            logger.info(f"Message {message_id} was claimed by a concurrent reaction")
            inquiry = await self.repository.get_inquiry_by_message_id(message_id)
            if inquiry is None:
                raise
            await self._link(reaction_event, inquiry)
            return inquiry

        await self._link(reaction_event, inquiry)
        return inquiry

    async def _link(self, reaction_event: ReactionEvent, inquiry: Inquiry) -> None:
        try:
            await self.repository.mark_reaction_processed(reaction_event.id, inquiry.id)
        except PersistenceError as e:
            logger.error(f"Failed to link reaction event {reaction_event.id}: {e}")
