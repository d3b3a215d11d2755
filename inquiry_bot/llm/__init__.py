"""LLM providers module."""

from inquiry_bot.llm.anthropic import AnthropicConfig, AnthropicProvider
from inquiry_bot.llm.base import LLMProvider, LLMProviderFactory, ResponseResult
from inquiry_bot.llm.factory import create_llm_provider
from inquiry_bot.llm.ollama import OllamaConfig, OllamaProvider
from inquiry_bot.llm.openai import OpenAIConfig, OpenAIProvider

# Register all providers
LLMProviderFactory.register("openai", OpenAIProvider)
LLMProviderFactory.register("anthropic", AnthropicProvider)
LLMProviderFactory.register("ollama", OllamaProvider)

__all__ = [
    "AnthropicConfig",
    "AnthropicProvider",
    "LLMProvider",
    "LLMProviderFactory",
    "OllamaConfig",
    "OllamaProvider",
    "OpenAIConfig",
    "OpenAIProvider",
    "ResponseResult",
    "create_llm_provider",
]
