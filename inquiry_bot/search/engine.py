"""Multi-source search and keyword-overlap ranking."""

import asyncio
import logging
from collections.abc import Awaitable
from datetime import datetime, timezone

from inquiry_bot.config import Settings
from inquiry_bot.confluence import ConfluenceClient
from inquiry_bot.errors import InquiryBotError, PersistenceError
from inquiry_bot.search.keywords import extract_keywords, score_keywords
from inquiry_bot.slack import SlackClient
from inquiry_bot.storage import InquiryRepository, ResultSource, SearchResult

logger = logging.getLogger(__name__)


def build_slack_message_url(channel_id: str, timestamp: str) -> str:
    """Build an archive link to a Slack message."""
    return f"https://slack.com/archives/{channel_id}/p{timestamp.replace('.', '')}"


def slack_ts_to_datetime(timestamp: str) -> datetime:
    """Convert a Slack ``seconds.micros`` timestamp, defaulting to now."""
    try:
        return datetime.fromtimestamp(float(timestamp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        if timestamp:
            logger.warning(f"Invalid Slack timestamp format: {timestamp!r}")
        return datetime.now(timezone.utc)


def filter_and_rank(
    results: list[SearchResult],
    similarity_threshold: float,
    max_results: int,
) -> list[SearchResult]:
    """Drop weak results, order by score and cap the count.

    Sorting is stable, so equally scored results keep their discovery order.
    """
    kept = [result for result in results if result.score >= similarity_threshold]
    kept = sorted(kept, key=lambda result: result.score, reverse=True)
    return kept[:max_results]


class SearchEngine:
    """Searches Slack and Confluence and ranks what they return."""

    def __init__(
        self,
        settings: Settings,
        slack: SlackClient,
        confluence: ConfluenceClient,
        repository: InquiryRepository,
    ):
        self.settings = settings
        self.slack = slack
        self.confluence = confluence
        self.repository = repository

    async def search_all(self, query: str, inquiry_id: int) -> list[SearchResult]:
        """Search every source for ``query`` on behalf of an inquiry.

        A failing source contributes no results; it never aborts the search.
        All scored candidates are persisted before filtering.

        Args:
            query: Inquiry text
            inquiry_id: Owning inquiry

        Returns:
            Results at or above the similarity threshold, best first
        """
        keywords = extract_keywords(query)
        search_query = " ".join(keywords)

        logger.info(
            f"Starting search across all sources for inquiry {inquiry_id} "
            f"(search query: {search_query!r})"
        )

        if not keywords:
            logger.info(f"No keywords extracted for inquiry {inquiry_id}, skipping search")
            return []

        slack_results, confluence_results = await asyncio.gather(
            self._run_source("slack", self._search_slack(search_query, keywords, inquiry_id)),
            self._run_source(
                "confluence", self._search_confluence(search_query, keywords, inquiry_id)
            ),
        )
        all_results = slack_results + confluence_results

        try:
            await self.repository.add_search_results(all_results)
        except PersistenceError as e:
            logger.error(f"Failed to save search results for inquiry {inquiry_id}: {e}")

        filtered = filter_and_rank(
            all_results,
            self.settings.similarity_threshold,
            self.settings.max_search_results,
        )

        logger.info(
            f"Search completed for inquiry {inquiry_id}: "
            f"{len(all_results)} total, {len(filtered)} relevant"
        )
        return filtered

    async def _run_source(
        self, name: str, search: Awaitable[list[SearchResult]]
    ) -> list[SearchResult]:
        """Await one source within its deadline, degrading to no results."""
        try:
            return await asyncio.wait_for(search, timeout=self.settings.source_search_timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"{name} search timed out after {self.settings.source_search_timeout}s"
            )
        except InquiryBotError as e:
            logger.error(f"Failed to search {name}: {e}")
        except Exception as e:
            logger.error(f"Unexpected error searching {name}: {e}", exc_info=True)
        return []

    async def _search_slack(
        self, query: str, keywords: list[str], inquiry_id: int
    ) -> list[SearchResult]:
        messages = await self.slack.search_messages(query, self.settings.search_days_back)

        authors: dict[str, str] = {}
        results = []
        for msg in messages:
            if msg.user not in authors:
                authors[msg.user] = await self._resolve_author(msg.user)

            results.append(
                SearchResult(
                    inquiry_id=inquiry_id,
                    source=ResultSource.SLACK.value,
                    source_item_id=msg.timestamp,
                    title="Slack Message",
                    content=msg.text,
                    url=msg.permalink or build_slack_message_url(msg.channel, msg.timestamp),
                    score=score_keywords(msg.text, keywords),
                    author=authors[msg.user],
                    created_date=slack_ts_to_datetime(msg.timestamp),
                )
            )
        return results

    async def _resolve_author(self, user_id: str) -> str:
        try:
            return await self.slack.resolve_user(user_id)
        except InquiryBotError as e:
            logger.debug(f"Could not resolve Slack user {user_id}: {e}")
            return user_id

    async def _search_confluence(
        self, query: str, keywords: list[str], inquiry_id: int
    ) -> list[SearchResult]:
        pages = await self.confluence.search_pages(query)

        now = datetime.now(timezone.utc)
        return [
            SearchResult(
                inquiry_id=inquiry_id,
                source=ResultSource.CONFLUENCE.value,
                source_item_id=page.id,
                title=page.title,
                content=page.content,
                url=page.url,
                score=score_keywords(f"{page.title} {page.content}", keywords),
                author=page.author,
                # Search results do not carry a reliable creation date
                created_date=now,
            )
            for page in pages
        ]
