"""LLM Provider implementation using Anthropic Claude API."""

import os
from typing import Protocol

import anthropic

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"


class ILLMProvider(Protocol):
    """Abstraction for the external executor agents delegate work to."""

    async def complete(
        self,
        messages: list[dict],  # [{"role": "user", "content": "..."}]
        system: str | None = None,
        max_tokens: int = 1024,
        model: str | None = None,
    ) -> str:
        """Generate completion."""
        ...


class LLMProvider:
    """Anthropic Claude API provider."""

    def __init__(self, api_key: str | None = None, model: str = DEFAULT_MODEL):
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self._api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")

        self._model = model
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)

    async def complete(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 1024,
        model: str | None = None,
    ) -> str:
        """Generate completion using Claude API; model overrides the default."""
        kwargs = {
            "model": model or self._model,
            "messages": messages,
            "max_tokens": max_tokens,
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self._client.messages.create(**kwargs)
            return response.content[0].text

        except Exception as e:
            raise RuntimeError(f"LLM API error: {e}") from e
