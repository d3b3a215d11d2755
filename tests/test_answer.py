"""Tests for prompt construction and answer generation."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from inquiry_bot.errors import ErrorCategory, GenerationError
from inquiry_bot.inquiry.answer import SYSTEM_PROMPT, AnswerGenerator, build_context, build_prompt
from inquiry_bot.llm import LLMProvider, ResponseResult
from inquiry_bot.storage import SearchResult


@pytest.fixture
def search_results():
    return [
        SearchResult(
            inquiry_id=1,
            source="slack",
            title="Slack Message",
            content="Run make deploy ENV=staging",
            author="Jane Doe",
            score=1.0,
        ),
        SearchResult(
            inquiry_id=1,
            source="confluence",
            title="Staging Deploy Guide",
            content="Step by step rollout",
            url="https://wiki.example.com/pages/viewpage.action?pageId=12345",
            score=1.0,
        ),
    ]


@pytest.fixture
def provider():
    mock = MagicMock(spec=LLMProvider)
    mock.generate = AsyncMock(
        return_value=ResponseResult(content="  Use the deploy pipeline.  ", model="gpt-4o-mini")
    )
    return mock


class TestPrompts:
    """Test prompt and context construction."""

    def test_context_groups_by_source(self, search_results):
        """Test that Slack discussions and docs are listed separately."""
        context = build_context("How to deploy?", search_results)

        assert context.startswith("Original inquiry: How to deploy?")
        assert "Similar past Slack discussions:\n1. Run make deploy ENV=staging\n   (by Jane Doe)" in context
        assert "Relevant documentation:\n1. Staging Deploy Guide\n   Step by step rollout" in context
        assert "   Link: https://wiki.example.com/pages/viewpage.action?pageId=12345" in context

    def test_context_without_results(self):
        """Test the context when nothing relevant was found."""
        context = build_context("How to deploy?", [])

        assert context == "Original inquiry: How to deploy?\n\nNo relevant historical information found."

    def test_prompt_embeds_inquiry_and_context(self):
        """Test the user prompt layout."""
        prompt = build_prompt("How to deploy?", "CONTEXT BLOCK")

        assert "Inquiry: How to deploy?" in prompt
        assert "Context:\nCONTEXT BLOCK" in prompt
        assert prompt.endswith("Keep the response concise but thorough.")


class TestAnswerGenerator:
    """Test answer generation."""

    @pytest.mark.asyncio
    async def test_generate(self, provider, search_results):
        """Test that the answer is generated from both prompts."""
        generator = AnswerGenerator(provider)

        answer = await generator.generate("How to deploy?", search_results)

        assert answer == "Use the deploy pipeline."
        system_prompt, user_prompt = provider.generate.call_args.args
        assert system_prompt == SYSTEM_PROMPT
        assert "Staging Deploy Guide" in user_prompt

    @pytest.mark.asyncio
    async def test_empty_answer(self, provider):
        """Test that a blank completion is an error."""
        provider.generate.return_value = ResponseResult(content="   ", model="gpt-4o-mini")

        with pytest.raises(GenerationError) as exc_info:
            await AnswerGenerator(provider).generate("How to deploy?", [])

        assert exc_info.value.category == ErrorCategory.SERVER

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, provider):
        """Test that provider errors keep their category."""
        provider.generate.side_effect = GenerationError("rate limited", ErrorCategory.RATE_LIMIT)

        with pytest.raises(GenerationError) as exc_info:
            await AnswerGenerator(provider).generate("How to deploy?", [])

        assert exc_info.value.category == ErrorCategory.RATE_LIMIT

    @pytest.mark.asyncio
    async def test_timeout(self, provider):
        """Test that a slow provider is cut off."""

        async def slow_generate(system_prompt, user_prompt):
            await asyncio.sleep(5)

        provider.generate.side_effect = slow_generate

        with pytest.raises(GenerationError) as exc_info:
            await AnswerGenerator(provider, timeout=0.05).generate("How to deploy?", [])

        assert exc_info.value.category == ErrorCategory.TIMEOUT

    @pytest.mark.asyncio
    async def test_unexpected_provider_error_is_wrapped(self, provider):
        """Test that arbitrary provider exceptions become generation errors."""
        provider.generate.side_effect = AttributeError("'list' object has no attribute 'get'")

        with pytest.raises(GenerationError) as exc_info:
            await AnswerGenerator(provider).generate("How to deploy?", [])

        assert exc_info.value.category == ErrorCategory.UNKNOWN
        assert isinstance(exc_info.value.__cause__, AttributeError)
