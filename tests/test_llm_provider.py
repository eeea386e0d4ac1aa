"""Tests for LLMProvider."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from agentfleet.llm import DEFAULT_MODEL, LLMProvider


def mock_client(text: str = "Test response") -> Mock:
    client = Mock()
    response = Mock()
    response.content = [Mock(text=text)]
    client.messages.create = AsyncMock(return_value=response)
    return client


class TestLLMProviderInit:
    """Tests for LLMProvider initialization."""

    def test_init_with_api_key(self, monkeypatch):
        """Test initialization with API key from the environment."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")

        with patch("agentfleet.llm.llm_provider.anthropic.AsyncAnthropic") as ctor:
            provider = LLMProvider()
            assert provider is not None
            ctor.assert_called_once_with(api_key="test_key")

    def test_explicit_key_wins(self, monkeypatch):
        """Test that an explicit key is used without the environment."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with patch("agentfleet.llm.llm_provider.anthropic.AsyncAnthropic") as ctor:
            LLMProvider(api_key="explicit")
            ctor.assert_called_once_with(api_key="explicit")

    def test_init_without_api_key(self, monkeypatch):
        """Test initialization without API key raises error."""
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with patch("agentfleet.llm.llm_provider.anthropic.AsyncAnthropic"):
            with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
                LLMProvider()


class TestLLMProviderComplete:
    """Tests for LLMProvider.complete() method."""

    @pytest.mark.asyncio
    async def test_complete_returns_response(self, monkeypatch):
        """Test that complete() returns LLM response text."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        client = mock_client()

        with patch(
            "agentfleet.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=client,
        ):
            provider = LLMProvider()
            response = await provider.complete(
                messages=[{"role": "user", "content": "Hello"}]
            )

        assert response == "Test response"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == DEFAULT_MODEL
        assert kwargs["max_tokens"] == 1024
        assert "system" not in kwargs

    @pytest.mark.asyncio
    async def test_complete_sends_system_and_model(self, monkeypatch):
        """Test that system prompt and model override are forwarded."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        client = mock_client()

        with patch(
            "agentfleet.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=client,
        ):
            provider = LLMProvider()
            await provider.complete(
                messages=[{"role": "user", "content": "Hello"}],
                system="You are helpful",
                max_tokens=2048,
                model="claude-other",
            )

        client.messages.create.assert_called_once_with(
            model="claude-other",
            messages=[{"role": "user", "content": "Hello"}],
            max_tokens=2048,
            system="You are helpful",
        )

    @pytest.mark.asyncio
    async def test_complete_wraps_errors(self, monkeypatch):
        """Test that API errors are wrapped in RuntimeError."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        client = Mock()
        client.messages.create = AsyncMock(side_effect=Exception("rate limited"))

        with patch(
            "agentfleet.llm.llm_provider.anthropic.AsyncAnthropic",
            return_value=client,
        ):
            provider = LLMProvider()
            with pytest.raises(RuntimeError, match="LLM API error: rate limited"):
                await provider.complete(messages=[{"role": "user", "content": "x"}])
