"""Ollama LLM provider implementation."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from inquiry_bot.errors import ErrorCategory, GenerationError, category_for_status
from inquiry_bot.llm.base import LLMProvider, ResponseResult

logger = logging.getLogger(__name__)


class OllamaConfig(BaseModel):
    """Configuration for Ollama provider."""

    host: str = "http://localhost:11434"
    model: str = "llama3.2"
    temperature: float = 0.3
    max_tokens: int = 1000
    timeout: float = 30.0


class OllamaProvider(LLMProvider):
    """Ollama LLM provider implementation."""

    def __init__(self, config: OllamaConfig | None = None, **kwargs: Any) -> None:
        """Initialize Ollama provider.

        Args:
            config: Ollama configuration
            **kwargs: Additional configuration options
        """
        self.config = config or OllamaConfig(**kwargs)
        self.client = httpx.AsyncClient(
            base_url=self.config.host,
            timeout=self.config.timeout,
        )

    async def generate(self, system_prompt: str, user_prompt: str) -> ResponseResult:
        """Generate response using Ollama's chat endpoint.

        Args:
            system_prompt: System instructions
            user_prompt: User message

        Returns:
            ResponseResult with generated response
        """
        try:
            logger.debug(f"Sending request to Ollama with model: {self.config.model}")
            response = await self.client.post(
                "/api/chat",
                json={
                    "model": self.config.model,
                    "messages": [
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    "stream": False,
                    "options": {
                        "temperature": self.config.temperature,
                        "num_predict": self.config.max_tokens,
                    },
                },
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Ollama request timed out: {e}")
            raise GenerationError(f"Ollama request timed out: {e}", ErrorCategory.TIMEOUT) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Ollama response HTTP error: {status}")
            raise GenerationError(f"Ollama API error: {status}", category_for_status(status)) from e
        except httpx.RequestError as e:
            logger.error(f"Ollama response request failed: {e}")
            logger.error(f"Model: {self.config.model}, Host: {self.config.host}")
            raise GenerationError(f"Failed to reach Ollama: {e}", ErrorCategory.TRANSPORT) from e
        except ValueError as e:
            raise GenerationError(f"Invalid Ollama response: {e}", ErrorCategory.SERVER) from e

        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            logger.error(f"Ollama returned a malformed chat response for model {self.config.model}")
            raise GenerationError("Malformed Ollama response", ErrorCategory.SERVER)

        return ResponseResult(
            content=content,
            model=self.config.model,
            token_count=data.get("eval_count"),
            finish_reason=data.get("done_reason"),
        )

    async def health_check(self) -> bool:
        """Check if Ollama service is healthy.

        Returns:
            True if healthy, False otherwise
        """
        try:
            response = await self.client.get("/api/tags")
            return response.status_code == 200
        except Exception as e:
            logger.warning(f"Ollama health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()
