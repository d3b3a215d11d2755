"""ORM models for inquiries, search results and reaction events."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inquiry_bot.storage.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InquiryStatus(str, Enum):
    """Lifecycle of an inquiry."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ResultSource(str, Enum):
    """Where a search result was found."""

    SLACK = "slack"
    CONFLUENCE = "confluence"


class Inquiry(Base):
    """One processing attempt for a single triggering Slack message."""

    __tablename__ = "inquiries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Slack message details
    message_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    channel_id: Mapped[str] = mapped_column(String(64), default="")
    user_id: Mapped[str] = mapped_column(String(64), default="")
    message_text: Mapped[str] = mapped_column(Text, default="")
    source_timestamp: Mapped[str] = mapped_column(String(64), default="")

    # Processing details
    status: Mapped[str] = mapped_column(String(20), default=InquiryStatus.PENDING.value)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    response_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    response_text: Mapped[str] = mapped_column(Text, default="")
    reply_thread_id: Mapped[str] = mapped_column(String(64), default="")

    search_results: Mapped[list["SearchResult"]] = relationship(
        back_populates="inquiry",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SearchResult.id",
    )

    def __repr__(self) -> str:
        return f"<Inquiry id={self.id} message_id={self.message_id!r} status={self.status}>"


class SearchResult(Base):
    """A scored candidate surfaced by Slack or Confluence for one inquiry."""

    __tablename__ = "search_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    inquiry_id: Mapped[int] = mapped_column(
        ForeignKey("inquiries.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Source information
    source: Mapped[str] = mapped_column(String(20))
    source_item_id: Mapped[str] = mapped_column(String(128), default="")
    title: Mapped[str] = mapped_column(String(500), default="")
    content: Mapped[str] = mapped_column(Text, default="")
    url: Mapped[str] = mapped_column(String(1000), default="")

    # Relevance scoring
    score: Mapped[float] = mapped_column(Float, default=0.0)

    author: Mapped[str] = mapped_column(String(255), default="")
    created_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    inquiry: Mapped[Inquiry] = relationship(back_populates="search_results")

    def __repr__(self) -> str:
        return f"<SearchResult source={self.source} score={self.score:.2f} title={self.title!r}>"


class ReactionEvent(Base):
    """Audit record of a trigger-emoji reaction being added or removed."""

    __tablename__ = "reaction_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    message_id: Mapped[str] = mapped_column(String(64), index=True)
    channel_id: Mapped[str] = mapped_column(String(64), default="")
    user_id: Mapped[str] = mapped_column(String(64), default="")
    reaction: Mapped[str] = mapped_column(String(100), default="")
    event_type: Mapped[str] = mapped_column(String(20))
    source_timestamp: Mapped[str] = mapped_column(String(64), default="")

    processed: Mapped[bool] = mapped_column(Boolean, default=False)
    inquiry_id: Mapped[int | None] = mapped_column(
        ForeignKey("inquiries.id", ondelete="SET NULL"), nullable=True
    )
