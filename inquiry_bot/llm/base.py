"""Base LLM provider interface and factory pattern."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


class ResponseResult(BaseModel):
    """Result from response generation."""

    content: str
    model: str
    token_count: int | None = None
    finish_reason: str | None = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Implementations raise ``GenerationError`` with a category describing the
    cause (auth, rate limit, server, bad request, timeout, transport) and do
    not retry on their own.
    """

    @abstractmethod
    async def generate(self, system_prompt: str, user_prompt: str) -> ResponseResult:
        """Generate a response for a system/user prompt pair.

        Args:
            system_prompt: Instructions describing the assistant's role
            user_prompt: The inquiry together with its context

        Returns:
            ResponseResult with generated text and metadata
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is healthy and accessible.

        Returns:
            True if healthy, False otherwise
        """
        pass

    async def close(self) -> None:
        """Release network resources held by the provider."""


class LLMProviderFactory:
    """Factory for creating LLM providers."""

    _providers: dict[str, type[LLMProvider]] = {}

    @classmethod
    def register(cls, name: str, provider_class: type[LLMProvider]) -> None:
        """Register a provider class.

        Args:
            name: Provider name (e.g., "openai", "ollama")
            provider_class: Provider class to register
        """
        cls._providers[name] = provider_class

    @classmethod
    def create(cls, name: str, **kwargs: Any) -> LLMProvider:
        """Create a provider instance.

        Args:
            name: Provider name
            **kwargs: Provider-specific configuration

        Returns:
            LLMProvider instance

        Raises:
            ValueError: If provider name is not registered
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(f"Unknown provider '{name}'. Available: {available}")

        return cls._providers[name](**kwargs)

    @classmethod
    def list_providers(cls) -> list[str]:
        """List all registered provider names."""
        return list(cls._providers.keys())
