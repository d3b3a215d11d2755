"""Confluence client for searching documentation pages."""

import html
import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from inquiry_bot.config import Settings
from inquiry_bot.errors import (
    ConfigurationError,
    ErrorCategory,
    ExternalServiceError,
    category_for_status,
)

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 100
MAX_CONTENT_LENGTH = 500

_CQL_OPERATORS = {"AND", "OR", "NOT"}
_CQL_SPECIAL_CHARS = re.compile(r"[()\[\]{}\"'\\~*?]")
_TAG = re.compile(r"<[^>]+>")
_LINE_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)


def _drop_operators(text: str) -> str:
    return " ".join(word for word in text.split() if word not in _CQL_OPERATORS)


def sanitize_cql_query(query: str) -> str:
    """Neutralize a free-text query before embedding it in CQL.

    Boolean operators and CQL grouping, quoting, escape and wildcard characters
    become spaces, whitespace is collapsed and the result is capped at 100
    characters.
    """
    sanitized = _drop_operators(_CQL_SPECIAL_CHARS.sub(" ", query))
    if len(sanitized) > MAX_QUERY_LENGTH:
        # Truncation can leave a fragment such as "OR" from "ORDERS"
        sanitized = _drop_operators(sanitized[:MAX_QUERY_LENGTH])
    return sanitized


def extract_content_text(content: str) -> str:
    """Reduce Confluence storage-format HTML to plain text."""
    text = _LINE_BREAK.sub(" ", content)
    text = _TAG.sub(" ", text)
    text = html.unescape(text)
    text = " ".join(text.split())
    if len(text) > MAX_CONTENT_LENGTH:
        text = text[:MAX_CONTENT_LENGTH] + "..."
    return text


@dataclass
class ConfluencePage:
    """A Confluence page reduced to the fields the pipeline needs."""

    id: str
    title: str
    content: str = ""
    url: str = ""
    author: str = ""


class ConfluenceClient:
    """Client for the Confluence REST API."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        """Initialize the Confluence client.

        Args:
            settings: Application settings
            client: Pre-built HTTP client, mainly for tests
        """
        self.settings = settings
        self.base_url = (settings.confluence_base_url or "").rstrip("/")
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            auth=(settings.confluence_username or "", settings.confluence_api_token or ""),
            headers={"Accept": "application/json"},
            timeout=15.0,
        )

    @property
    def configured(self) -> bool:
        return self.settings.confluence_configured

    def page_url(self, page_id: str) -> str:
        return f"{self.base_url}/pages/viewpage.action?pageId={page_id}"

    def _to_page(self, data: dict[str, Any]) -> ConfluencePage:
        page_id = str(data.get("id", ""))
        storage = ((data.get("body") or {}).get("storage") or {}).get("value", "")
        version_by = ((data.get("version") or {}).get("by") or {})
        return ConfluencePage(
            id=page_id,
            title=data.get("title", ""),
            content=extract_content_text(storage) if storage else "",
            url=self.page_url(page_id),
            author=version_by.get("displayName", ""),
        )

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self.client.get(path, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise ExternalServiceError("confluence", str(e), ErrorCategory.TIMEOUT) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Confluence API error: {status}")
            raise ExternalServiceError(
                "confluence", f"API error: {status}", category_for_status(status)
            ) from e
        except httpx.RequestError as e:
            raise ExternalServiceError("confluence", str(e), ErrorCategory.TRANSPORT) from e

        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(
                "confluence", f"Failed to decode response: {e}", ErrorCategory.SERVER
            ) from e

    async def search_pages(self, query: str) -> list[ConfluencePage]:
        """Search pages in the configured space.

        The query is always sanitized before it is placed into CQL.

        Args:
            query: Free-text search terms

        Returns:
            Matching pages; empty when Confluence is not configured
        """
        if not self.configured:
            logger.warning("Missing Confluence configuration, skipping search")
            return []

        sanitized = sanitize_cql_query(query)
        if not sanitized:
            return []

        cql = f'space="{self.settings.confluence_space_key}" AND text ~ "{sanitized}"'
        data = await self._get(
            "/rest/api/content/search",
            {
                "cql": cql,
                "limit": self.settings.max_search_results,
                "expand": "body.storage,version,space",
            },
        )
        return [self._to_page(result) for result in data.get("results", [])]

    async def get_page(self, page_id: str) -> ConfluencePage:
        """Fetch a single page by ID."""
        if not self.configured:
            raise ConfigurationError("Missing Confluence configuration")

        data = await self._get(
            f"/rest/api/content/{page_id}",
            {"expand": "body.storage,version,space"},
        )
        return self._to_page(data)

    async def validate_connection(self) -> bool:
        """Check credentials by reading the configured space."""
        if not self.configured:
            logger.warning("Confluence health check skipped: not configured")
            return False
        try:
            await self._get(f"/rest/api/space/{self.settings.confluence_space_key}", {})
            return True
        except ExternalServiceError as e:
            logger.warning(f"Confluence health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()
