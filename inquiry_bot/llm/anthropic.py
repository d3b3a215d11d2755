"""Anthropic Claude LLM provider implementation."""

import logging
from typing import Any

import anthropic
from pydantic import BaseModel

from inquiry_bot.errors import ErrorCategory, GenerationError, category_for_status
from inquiry_bot.llm.base import LLMProvider, ResponseResult

logger = logging.getLogger(__name__)


class AnthropicConfig(BaseModel):
    """Configuration for Anthropic provider."""

    api_key: str
    model: str = "claude-3-5-haiku-20241022"
    max_tokens: int = 1000
    temperature: float = 0.3
    timeout: float = 30.0


def _categorize(error: anthropic.AnthropicError) -> ErrorCategory:
    if isinstance(error, anthropic.APITimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, anthropic.APIConnectionError):
        return ErrorCategory.TRANSPORT
    if isinstance(error, anthropic.APIStatusError):
        return category_for_status(error.status_code)
    return ErrorCategory.UNKNOWN


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation."""

    def __init__(self, config: AnthropicConfig | None = None, **kwargs: Any) -> None:
        """Initialize Anthropic provider.

        Args:
            config: Anthropic configuration
            **kwargs: Additional configuration options
        """
        self.config = config or AnthropicConfig(**kwargs)
        self.client = anthropic.AsyncAnthropic(
            api_key=self.config.api_key,
            timeout=self.config.timeout,
            max_retries=0,
        )

    async def generate(self, system_prompt: str, user_prompt: str) -> ResponseResult:
        """Generate response using Anthropic's Claude model.

        Args:
            system_prompt: System instructions
            user_prompt: User message

        Returns:
            ResponseResult with generated response
        """
        try:
            response = await self.client.messages.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except anthropic.AnthropicError as e:
            category = _categorize(e)
            logger.error(f"Anthropic response request failed ({category.value}): {type(e).__name__}")
            raise GenerationError(f"Anthropic request failed: {e}", category) from e

        # Anthropic returns content as a list of blocks
        content = ""
        for block in response.content:
            if block.type == "text":
                content += block.text

        return ResponseResult(
            content=content,
            model=self.config.model,
            token_count=response.usage.output_tokens + response.usage.input_tokens,
            finish_reason=response.stop_reason,
        )

    async def health_check(self) -> bool:
        """Check if Anthropic service is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            await self.client.models.list(limit=1)
            return True
        except Exception as e:
            logger.warning(f"Anthropic health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.close()
