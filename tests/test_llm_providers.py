"""Tests for LLM providers."""

from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai
import pytest

from inquiry_bot.errors import ErrorCategory, GenerationError
from inquiry_bot.llm.anthropic import AnthropicConfig, AnthropicProvider
from inquiry_bot.llm.base import LLMProviderFactory, ResponseResult
from inquiry_bot.llm.ollama import OllamaConfig, OllamaProvider
from inquiry_bot.llm.openai import OpenAIConfig, OpenAIProvider

OPENAI_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
ANTHROPIC_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


class TestLLMProviderFactory:
    """Test the LLM provider factory."""

    def test_list_providers(self):
        """Test listing registered providers."""
        providers = LLMProviderFactory.list_providers()
        assert "ollama" in providers
        assert "openai" in providers
        assert "anthropic" in providers

    def test_create_ollama_provider(self):
        """Test creating Ollama provider."""
        provider = LLMProviderFactory.create("ollama", host="http://test:11434")
        assert isinstance(provider, OllamaProvider)
        assert provider.config.host == "http://test:11434"

    def test_create_openai_provider(self):
        """Test creating OpenAI provider."""
        provider = LLMProviderFactory.create("openai", api_key="test-key")
        assert isinstance(provider, OpenAIProvider)
        assert provider.config.api_key == "test-key"

    def test_create_unknown_provider(self):
        """Test creating unknown provider raises error."""
        with pytest.raises(ValueError, match="Unknown provider 'unknown'"):
            LLMProviderFactory.create("unknown")


class TestOllamaProvider:
    """Test Ollama provider."""

    @pytest.fixture
    def ollama_provider(self):
        """Create Ollama provider for testing."""
        config = OllamaConfig(host="http://test:11434")
        return OllamaProvider(config=config)

    @pytest.mark.asyncio
    async def test_generate_success(self, ollama_provider):
        """Test successful response generation."""
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "message": {"role": "assistant", "content": "This is a test response"},
            "eval_count": 50,
            "done_reason": "stop",
        }
        mock_response.raise_for_status.return_value = None

        with patch.object(ollama_provider.client, "post", return_value=mock_response) as mock_post:
            result = await ollama_provider.generate("system prompt", "user prompt")

            assert isinstance(result, ResponseResult)
            assert result.content == "This is a test response"
            assert result.model == "llama3.2"
            assert result.token_count == 50

            # Verify the chat messages carry both prompts
            payload = mock_post.call_args[1]["json"]
            assert payload["stream"] is False
            assert payload["messages"][0] == {"role": "system", "content": "system prompt"}
            assert payload["messages"][1] == {"role": "user", "content": "user prompt"}

    @pytest.mark.asyncio
    async def test_generate_rate_limited(self, ollama_provider):
        """Test that a 429 response is categorized as rate limiting."""
        response = httpx.Response(429, request=httpx.Request("POST", "http://test:11434/api/chat"))

        with patch.object(ollama_provider.client, "post", return_value=response):
            with pytest.raises(GenerationError) as exc_info:
                await ollama_provider.generate("system", "user")

        assert exc_info.value.category == ErrorCategory.RATE_LIMIT

    @pytest.mark.asyncio
    async def test_generate_connection_error(self, ollama_provider):
        """Test that connection failures are categorized as transport errors."""
        with patch.object(
            ollama_provider.client, "post", side_effect=httpx.ConnectError("Connection refused")
        ):
            with pytest.raises(GenerationError) as exc_info:
                await ollama_provider.generate("system", "user")

        assert exc_info.value.category == ErrorCategory.TRANSPORT

    @pytest.mark.asyncio
    async def test_generate_timeout(self, ollama_provider):
        """Test that timeouts are categorized."""
        with patch.object(
            ollama_provider.client, "post", side_effect=httpx.ReadTimeout("timed out")
        ):
            with pytest.raises(GenerationError) as exc_info:
                await ollama_provider.generate("system", "user")

        assert exc_info.value.category == ErrorCategory.TIMEOUT

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body", [{"message": {"content": None}}, {"done": True}, ["not", "an", "object"]]
    )
    async def test_generate_malformed_response(self, ollama_provider, body):
        """Test that a body without message content is a server error."""
        mock_response = MagicMock()
        mock_response.json.return_value = body
        mock_response.raise_for_status.return_value = None

        with patch.object(ollama_provider.client, "post", return_value=mock_response):
            with pytest.raises(GenerationError) as exc_info:
                await ollama_provider.generate("system", "user")

        assert exc_info.value.category == ErrorCategory.SERVER

    @pytest.mark.asyncio
    async def test_health_check_success(self, ollama_provider):
        """Test successful health check."""
        mock_response = MagicMock()
        mock_response.status_code = 200

        with patch.object(ollama_provider.client, "get", return_value=mock_response):
            result = await ollama_provider.health_check()
            assert result is True

    @pytest.mark.asyncio
    async def test_health_check_failure(self, ollama_provider):
        """Test failed health check."""
        with patch.object(ollama_provider.client, "get", side_effect=Exception("Connection error")):
            result = await ollama_provider.health_check()
            assert result is False


class TestOpenAIProvider:
    """Test OpenAI provider."""

    @pytest.fixture
    def openai_provider(self):
        """Create OpenAI provider for testing."""
        config = OpenAIConfig(api_key="test-key")
        return OpenAIProvider(config=config)

    @pytest.mark.asyncio
    async def test_generate_success(self, openai_provider):
        """Test successful response generation."""
        mock_choice = MagicMock()
        mock_choice.message.content = "This is a test response"
        mock_choice.finish_reason = "stop"

        mock_response = MagicMock()
        mock_response.choices = [mock_choice]
        mock_response.usage.total_tokens = 50

        with patch.object(
            openai_provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ) as mock_create:
            result = await openai_provider.generate("system prompt", "user prompt")

            assert isinstance(result, ResponseResult)
            assert result.content == "This is a test response"
            assert result.model == "gpt-4o-mini"
            assert result.token_count == 50
            assert result.finish_reason == "stop"

            messages = mock_create.call_args[1]["messages"]
            assert messages == [
                {"role": "system", "content": "system prompt"},
                {"role": "user", "content": "user prompt"},
            ]
            assert mock_create.call_args[1]["temperature"] == 0.3
            assert mock_create.call_args[1]["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_generate_no_choices(self, openai_provider):
        """Test that an empty completion is reported as an error."""
        mock_response = MagicMock()
        mock_response.choices = []

        with patch.object(
            openai_provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ):
            with pytest.raises(GenerationError, match="No response generated"):
                await openai_provider.generate("system", "user")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status_code,category",
        [
            (401, ErrorCategory.AUTH),
            (429, ErrorCategory.RATE_LIMIT),
            (400, ErrorCategory.BAD_REQUEST),
            (503, ErrorCategory.SERVER),
        ],
    )
    async def test_generate_status_errors(self, openai_provider, status_code, category):
        """Test that API status errors are categorized."""
        error = openai.APIStatusError(
            "request failed",
            response=httpx.Response(status_code, request=OPENAI_REQUEST),
            body=None,
        )

        with patch.object(
            openai_provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=error,
        ):
            with pytest.raises(GenerationError) as exc_info:
                await openai_provider.generate("system", "user")

        assert exc_info.value.category == category
        assert exc_info.value.service == "llm"

    @pytest.mark.asyncio
    async def test_generate_timeout(self, openai_provider):
        """Test that request timeouts are categorized."""
        with patch.object(
            openai_provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=openai.APITimeoutError(request=OPENAI_REQUEST),
        ):
            with pytest.raises(GenerationError) as exc_info:
                await openai_provider.generate("system", "user")

        assert exc_info.value.category == ErrorCategory.TIMEOUT

    @pytest.mark.asyncio
    async def test_generate_connection_error(self, openai_provider):
        """Test that connection failures are categorized."""
        with patch.object(
            openai_provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=openai.APIConnectionError(request=OPENAI_REQUEST),
        ):
            with pytest.raises(GenerationError) as exc_info:
                await openai_provider.generate("system", "user")

        assert exc_info.value.category == ErrorCategory.TRANSPORT

    def test_gateway_header(self):
        """Test that a gateway base URL adds the LiteLLM key header."""
        provider = OpenAIProvider(
            config=OpenAIConfig(api_key="gateway-key", base_url="https://litellm.example.com")
        )

        assert provider.client.default_headers["x-litellm-api-key"] == "gateway-key"


class TestAnthropicProvider:
    """Test Anthropic provider."""

    @pytest.fixture
    def anthropic_provider(self):
        """Create Anthropic provider for testing."""
        return AnthropicProvider(config=AnthropicConfig(api_key="test-key"))

    @pytest.mark.asyncio
    async def test_generate_success(self, anthropic_provider):
        """Test that text blocks are joined into the response."""
        first = MagicMock(type="text", text="Part one. ")
        second = MagicMock(type="text", text="Part two.")

        mock_response = MagicMock()
        mock_response.content = [first, second]
        mock_response.usage.input_tokens = 20
        mock_response.usage.output_tokens = 30
        mock_response.stop_reason = "end_turn"

        with patch.object(
            anthropic_provider.client.messages,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ) as mock_create:
            result = await anthropic_provider.generate("system prompt", "user prompt")

            assert result.content == "Part one. Part two."
            assert result.token_count == 50
            assert mock_create.call_args[1]["system"] == "system prompt"
            assert mock_create.call_args[1]["messages"] == [
                {"role": "user", "content": "user prompt"}
            ]

    @pytest.mark.asyncio
    async def test_generate_rate_limited(self, anthropic_provider):
        """Test that rate limiting is categorized."""
        error = anthropic.RateLimitError(
            "rate limited",
            response=httpx.Response(429, request=ANTHROPIC_REQUEST),
            body=None,
        )

        with patch.object(
            anthropic_provider.client.messages,
            "create",
            new_callable=AsyncMock,
            side_effect=error,
        ):
            with pytest.raises(GenerationError) as exc_info:
                await anthropic_provider.generate("system", "user")

        assert exc_info.value.category == ErrorCategory.RATE_LIMIT

    @pytest.mark.asyncio
    async def test_health_check_failure(self, anthropic_provider):
        """Test failed health check."""
        with patch.object(
            anthropic_provider.client.models,
            "list",
            new_callable=AsyncMock,
            side_effect=Exception("Connection error"),
        ):
            assert await anthropic_provider.health_check() is False
