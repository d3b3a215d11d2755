"""Slack Web API client used by the inquiry pipeline."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import aiohttp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from inquiry_bot.config import Settings
from inquiry_bot.errors import (
    ConfigurationError,
    ErrorCategory,
    ExternalServiceError,
    category_for_status,
)

logger = logging.getLogger(__name__)

_AUTH_ERRORS = {
    "invalid_auth",
    "not_authed",
    "account_inactive",
    "token_revoked",
    "token_expired",
    "missing_scope",
    "no_permission",
}


@dataclass
class ChatMessage:
    """A Slack message as seen by the pipeline."""

    text: str
    user: str
    timestamp: str
    channel: str = ""
    thread_ts: str | None = None
    permalink: str | None = None


def _api_error(action: str, error: SlackApiError) -> ExternalServiceError:
    """Translate a Slack API error into a categorized service error."""
    code = ""
    status = 0
    if error.response is not None:
        code = error.response.get("error", "") or ""
        status = error.response.status_code
    if code == "ratelimited" or status == 429:
        category = ErrorCategory.RATE_LIMIT
    elif code in _AUTH_ERRORS:
        category = ErrorCategory.AUTH
    elif status:
        category = category_for_status(status)
    else:
        category = ErrorCategory.UNKNOWN
    return ExternalServiceError("slack", f"{action} failed: {code or error}", category)


class SlackClient:
    """Thin async wrapper over ``slack_sdk``'s web client."""

    def __init__(self, settings: Settings, client: AsyncWebClient | None = None):
        """Initialize the Slack client.

        Args:
            settings: Application settings
            client: Pre-built web client, mainly for tests
        """
        self.settings = settings
        if client is None and settings.slack_bot_token:
            client = AsyncWebClient(token=settings.slack_bot_token)
        self._client = client

    @property
    def client(self) -> AsyncWebClient:
        if self._client is None:
            raise ConfigurationError("Missing Slack bot token")
        return self._client

    async def fetch_message(self, channel_id: str, message_ts: str) -> ChatMessage:
        """Fetch a single message by its timestamp.

        Raises:
            ExternalServiceError: If the API call fails or the message is gone
        """
        try:
            response = await self.client.conversations_history(
                channel=channel_id,
                latest=message_ts,
                limit=1,
                inclusive=True,
            )
        except SlackApiError as e:
            raise _api_error("conversations.history", e) from e
        except aiohttp.ClientError as e:
            raise ExternalServiceError("slack", str(e), ErrorCategory.TRANSPORT) from e

        messages = response.get("messages") or []
        if not messages:
            raise ExternalServiceError(
                "slack", f"Message {message_ts} not found", ErrorCategory.BAD_REQUEST
            )

        msg = messages[0]
        return ChatMessage(
            text=msg.get("text", ""),
            user=msg.get("user", ""),
            timestamp=msg.get("ts", message_ts),
            channel=channel_id,
            thread_ts=msg.get("thread_ts"),
        )

    def build_search_query(self, query: str, days_back: int) -> str:
        """Scope a search to the configured channel and time window."""
        after = (datetime.now(timezone.utc) - timedelta(days=days_back)).strftime("%Y-%m-%d")
        parts = [query]
        if self.settings.slack_channel_id:
            parts.append(f"in:<#{self.settings.slack_channel_id}>")
        parts.append(f"after:{after}")
        return " ".join(parts)

    async def search_messages(self, query: str, days_back: int) -> list[ChatMessage]:
        """Search past messages matching ``query``."""
        search_query = self.build_search_query(query, days_back)
        try:
            response = await self.client.search_messages(
                query=search_query,
                count=self.settings.max_search_results,
                sort="timestamp",
            )
        except SlackApiError as e:
            logger.error(f"Failed to search Slack messages for query: {search_query}")
            raise _api_error("search.messages", e) from e
        except aiohttp.ClientError as e:
            raise ExternalServiceError("slack", str(e), ErrorCategory.TRANSPORT) from e

        matches = (response.get("messages") or {}).get("matches") or []
        messages = []
        for match in matches:
            channel = match.get("channel") or {}
            messages.append(
                ChatMessage(
                    text=match.get("text", ""),
                    user=match.get("user") or match.get("username", ""),
                    timestamp=match.get("ts", ""),
                    channel=channel.get("id", "") if isinstance(channel, dict) else "",
                    permalink=match.get("permalink"),
                )
            )
        return messages

    async def post_thread_reply(self, channel_id: str, thread_ts: str, text: str) -> str:
        """Reply in the thread of ``thread_ts`` and return the reply's timestamp."""
        try:
            response = await self.client.chat_postMessage(
                channel=channel_id,
                text=text,
                thread_ts=thread_ts,
            )
        except SlackApiError as e:
            raise _api_error("chat.postMessage", e) from e
        except aiohttp.ClientError as e:
            raise ExternalServiceError("slack", str(e), ErrorCategory.TRANSPORT) from e
        return response.get("ts", "")

    async def resolve_user(self, user_id: str) -> str:
        """Return a display name for ``user_id``, falling back to the ID."""
        if not user_id:
            return ""
        try:
            response = await self.client.users_info(user=user_id)
        except SlackApiError as e:
            raise _api_error("users.info", e) from e
        except aiohttp.ClientError as e:
            raise ExternalServiceError("slack", str(e), ErrorCategory.TRANSPORT) from e

        user = response.get("user") or {}
        profile = user.get("profile") or {}
        return user.get("real_name") or profile.get("display_name") or user_id

    async def validate_token(self) -> bool:
        """Check that the bot token is accepted by Slack."""
        try:
            await self.client.auth_test()
            return True
        except ConfigurationError as e:
            logger.warning(f"Slack health check skipped: {e}")
            return False
        except (SlackApiError, aiohttp.ClientError) as e:
            logger.warning(f"Slack health check failed: {e}")
            return False

    async def close(self) -> None:
        """Release the underlying HTTP session, if one was created."""
        session = getattr(self._client, "session", None)
        if session is not None and not session.closed:
            await session.close()
