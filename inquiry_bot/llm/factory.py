"""Factory for creating LLM providers from configuration."""

from inquiry_bot.config import LLMProvider as LLMProviderEnum
from inquiry_bot.config import Settings
from inquiry_bot.llm.base import LLMProvider, LLMProviderFactory


def create_llm_provider(settings: Settings, provider_name: str | None = None) -> LLMProvider:
    """Create LLM provider from configuration.

    Args:
        settings: Application settings
        provider_name: Override provider name, defaults to settings.llm_provider

    Returns:
        Configured LLM provider instance

    Raises:
        ValueError: If provider configuration is invalid
    """
    provider_name = provider_name or settings.llm_provider

    if provider_name == LLMProviderEnum.OPENAI:
        from inquiry_bot.llm.openai import OpenAIConfig

        if not settings.openai_api_key:
            raise ValueError("OpenAI API key is required")

        config = OpenAIConfig(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout=settings.generation_timeout,
        )
        return LLMProviderFactory.create("openai", config=config)

    elif provider_name == LLMProviderEnum.ANTHROPIC:
        from inquiry_bot.llm.anthropic import AnthropicConfig

        if not settings.anthropic_api_key:
            raise ValueError("Anthropic API key is required")

        config = AnthropicConfig(
            api_key=settings.anthropic_api_key,
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout=settings.generation_timeout,
        )
        return LLMProviderFactory.create("anthropic", config=config)

    elif provider_name == LLMProviderEnum.OLLAMA:
        from inquiry_bot.llm.ollama import OllamaConfig

        config = OllamaConfig(
            host=settings.ollama_host,
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout=settings.generation_timeout,
        )
        return LLMProviderFactory.create("ollama", config=config)

    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
