"""OpenAI-compatible LLM provider (OpenAI or a LiteLLM gateway)."""

import logging
from typing import Any

import openai
from pydantic import BaseModel

from inquiry_bot.errors import ErrorCategory, GenerationError, category_for_status
from inquiry_bot.llm.base import LLMProvider, ResponseResult

logger = logging.getLogger(__name__)


class OpenAIConfig(BaseModel):
    """Configuration for OpenAI provider."""

    api_key: str
    base_url: str | None = None
    model: str = "gpt-4o-mini"
    max_tokens: int = 1000
    temperature: float = 0.3
    timeout: float = 30.0


def _categorize(error: openai.OpenAIError) -> ErrorCategory:
    if isinstance(error, openai.APITimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, openai.APIConnectionError):
        return ErrorCategory.TRANSPORT
    if isinstance(error, openai.APIStatusError):
        return category_for_status(error.status_code)
    return ErrorCategory.UNKNOWN


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions provider."""

    def __init__(self, config: OpenAIConfig | None = None, **kwargs: Any) -> None:
        """Initialize OpenAI provider.

        Args:
            config: OpenAI configuration
            **kwargs: Additional configuration options
        """
        self.config = config or OpenAIConfig(**kwargs)
        default_headers = None
        if self.config.base_url:
            # LiteLLM proxies authenticate with their own header
            default_headers = {"x-litellm-api-key": self.config.api_key}
        self.client = openai.AsyncOpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            max_retries=0,
            default_headers=default_headers,
        )

    async def generate(self, system_prompt: str, user_prompt: str) -> ResponseResult:
        """Generate a response with the chat completions API.

        Args:
            system_prompt: System instructions
            user_prompt: User message

        Returns:
            ResponseResult with generated response
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            )
        except openai.OpenAIError as e:
            category = _categorize(e)
            logger.error(f"OpenAI response request failed ({category.value}): {type(e).__name__}")
            raise GenerationError(f"OpenAI request failed: {e}", category) from e

        if not response.choices:
            raise GenerationError("No response generated", ErrorCategory.SERVER)

        choice = response.choices[0]
        return ResponseResult(
            content=choice.message.content or "",
            model=self.config.model,
            token_count=response.usage.total_tokens if response.usage else None,
            finish_reason=choice.finish_reason,
        )

    async def health_check(self) -> bool:
        """Check if the OpenAI-compatible endpoint is reachable.

        Returns:
            True if healthy, False otherwise
        """
        try:
            await self.client.models.list()
            return True
        except Exception as e:
            logger.warning(f"OpenAI health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.close()
