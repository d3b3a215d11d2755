"""Prompt construction and answer generation."""

import asyncio
import logging

from inquiry_bot.errors import ErrorCategory, GenerationError
from inquiry_bot.llm import LLMProvider
from inquiry_bot.storage import ResultSource, SearchResult

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful assistant for a company's internal inquiry system. You help answer questions from team members by referencing past discussions and documentation.

Your role is to:
- Provide accurate, helpful responses based on available context
- Reference specific past discussions or documentation when relevant
- Be concise but comprehensive
- Suggest follow-up actions when appropriate
- Maintain a professional but friendly tone

If you don't have enough information to provide a complete answer, acknowledge this and suggest where the person might find more information or who they should contact."""


def build_context(inquiry_text: str, search_results: list[SearchResult]) -> str:
    """Render search results as a context block grouped by source."""
    parts = [f"Original inquiry: {inquiry_text}", ""]

    if not search_results:
        parts.append("No relevant historical information found.")
        return "\n".join(parts)

    slack_results = [r for r in search_results if r.source == ResultSource.SLACK.value]
    confluence_results = [r for r in search_results if r.source == ResultSource.CONFLUENCE.value]

    if slack_results:
        parts.append("Similar past Slack discussions:")
        for i, result in enumerate(slack_results, 1):
            parts.append(f"{i}. {result.content}")
            if result.author:
                parts.append(f"   (by {result.author})")
            parts.append("")

    if confluence_results:
        parts.append("Relevant documentation:")
        for i, result in enumerate(confluence_results, 1):
            parts.append(f"{i}. {result.title}")
            if result.content:
                parts.append(f"   {result.content}")
            if result.url:
                parts.append(f"   Link: {result.url}")
            parts.append("")

    return "\n".join(parts)


def build_prompt(inquiry_text: str, context: str) -> str:
    """Create the user prompt sent alongside the system prompt."""
    return f"""Based on the following context and inquiry, please provide a helpful and accurate response.

Inquiry: {inquiry_text}

Context:
{context}

Please provide a comprehensive answer that:
1. Directly addresses the inquiry
2. References relevant information from the context
3. Is clear and actionable
4. Includes links to documentation when available
5. Suggests next steps if appropriate

Keep the response concise but thorough."""


class AnswerGenerator:
    """Turns an inquiry and its ranked evidence into an answer."""

    def __init__(self, provider: LLMProvider, timeout: float = 30.0):
        """Initialize the generator.

        Args:
            provider: LLM provider used for generation
            timeout: Deadline for a single generation call in seconds
        """
        self.provider = provider
        self.timeout = timeout

    async def generate(self, inquiry_text: str, search_results: list[SearchResult]) -> str:
        """Generate an answer.

        Raises:
            GenerationError: If the provider fails, times out or returns nothing
        """
        context = build_context(inquiry_text, search_results)
        prompt = build_prompt(inquiry_text, context)

        try:
            result = await asyncio.wait_for(
                self.provider.generate(SYSTEM_PROMPT, prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(
                f"Generation timed out after {self.timeout}s", ErrorCategory.TIMEOUT
            ) from e
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error from LLM provider: {type(e).__name__}: {e}")
            raise GenerationError(f"Provider failed: {e}", ErrorCategory.UNKNOWN) from e

        answer = result.content.strip()
        if not answer:
            raise GenerationError("No response generated", ErrorCategory.SERVER)

        logger.debug(f"Generated answer with {result.model} ({result.token_count} tokens)")
        return answer
