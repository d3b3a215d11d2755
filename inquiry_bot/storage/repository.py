"""Data access for inquiries, search results and reaction events.

Each method opens its own short session and touches a single row (or a batch
of rows owned by one inquiry), so no transaction spans pipeline stages.
"""

import logging
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from inquiry_bot.errors import DuplicateInquiryError, PersistenceError
from inquiry_bot.storage.database import Database
from inquiry_bot.storage.models import Inquiry, InquiryStatus, ReactionEvent, SearchResult

logger = logging.getLogger(__name__)


class InquiryRepository:
    """SQLAlchemy-backed store used by the intake, search and orchestrator."""

    def __init__(self, database: Database):
        self.database = database

    # Inquiries

    async def create_inquiry(
        self,
        message_id: str,
        channel_id: str,
        user_id: str,
        message_text: str,
        source_timestamp: str,
    ) -> Inquiry:
        """Insert a new ``pending`` inquiry.

        Raises:
            DuplicateInquiryError: An inquiry for ``message_id`` already exists
            PersistenceError: Any other database failure
        """
        inquiry = Inquiry(
            message_id=message_id,
            channel_id=channel_id,
            user_id=user_id,
            message_text=message_text,
            source_timestamp=source_timestamp,
            status=InquiryStatus.PENDING.value,
            response_sent=False,
            response_text="",
            reply_thread_id="",
        )
        try:
            async with self.database.session() as session:
                session.add(inquiry)
                await session.commit()
        except IntegrityError as e:
            raise DuplicateInquiryError(message_id) from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to create inquiry for {message_id}: {e}") from e
        return inquiry

    async def update_inquiry(self, inquiry_id: int, **values: Any) -> None:
        """Update columns of a single inquiry."""
        try:
            async with self.database.session() as session:
                await session.execute(
                    update(Inquiry).where(Inquiry.id == inquiry_id).values(**values)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update inquiry {inquiry_id}: {e}") from e

    async def get_inquiry(self, inquiry_id: int) -> Inquiry | None:
        """Load an inquiry together with its search results."""
        async with self.database.session() as session:
            stmt = (
                select(Inquiry)
                .options(selectinload(Inquiry.search_results))
                .where(Inquiry.id == inquiry_id)
            )
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def get_inquiry_by_message_id(self, message_id: str) -> Inquiry | None:
        """Load the inquiry created for a Slack message, if any."""
        async with self.database.session() as session:
            stmt = (
                select(Inquiry)
                .options(selectinload(Inquiry.search_results))
                .where(Inquiry.message_id == message_id)
            )
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def list_recent_inquiries(self, limit: int = 10) -> list[Inquiry]:
        """Most recently created inquiries first."""
        async with self.database.session() as session:
            stmt = (
                select(Inquiry)
                .order_by(Inquiry.created_at.desc(), Inquiry.id.desc())
                .limit(limit)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def delete_inquiry(self, inquiry_id: int) -> None:
        """Delete an inquiry; its search results go with it."""
        async with self.database.session() as session:
            await session.execute(delete(Inquiry).where(Inquiry.id == inquiry_id))
            await session.commit()

    # Search results

    async def add_search_results(self, results: list[SearchResult]) -> None:
        """Persist scored search results."""
        if not results:
            return
        try:
            async with self.database.session() as session:
                session.add_all(results)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save {len(results)} search results: {e}") from e

    async def list_search_results(self, inquiry_id: int) -> list[SearchResult]:
        """Every result considered for an inquiry, in discovery order."""
        async with self.database.session() as session:
            stmt = (
                select(SearchResult)
                .where(SearchResult.inquiry_id == inquiry_id)
                .order_by(SearchResult.id)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # Reaction events

    async def record_reaction_event(
        self,
        message_id: str,
        channel_id: str,
        user_id: str,
        reaction: str,
        event_type: str,
        source_timestamp: str,
    ) -> ReactionEvent:
        """Append a reaction event to the audit trail."""
        reaction_event = ReactionEvent(
            message_id=message_id,
            channel_id=channel_id,
            user_id=user_id,
            reaction=reaction,
            event_type=event_type,
            source_timestamp=source_timestamp,
            processed=False,
        )
        try:
            async with self.database.session() as session:
                session.add(reaction_event)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to record reaction event: {e}") from e
        return reaction_event

    async def mark_reaction_processed(self, reaction_event_id: int, inquiry_id: int) -> None:
        """Link a reaction event to the inquiry it resolved to."""
        try:
            async with self.database.session() as session:
                await session.execute(
                    update(ReactionEvent)
                    .where(ReactionEvent.id == reaction_event_id)
                    .values(processed=True, inquiry_id=inquiry_id)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to update reaction event {reaction_event_id}: {e}"
            ) from e

    async def list_reaction_events(self, message_id: str) -> list[ReactionEvent]:
        """Reaction events recorded for a Slack message, oldest first."""
        async with self.database.session() as session:
            stmt = (
                select(ReactionEvent)
                .where(ReactionEvent.message_id == message_id)
                .order_by(ReactionEvent.id)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())
