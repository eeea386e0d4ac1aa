"""LLM module."""

from .llm_provider import DEFAULT_MODEL, ILLMProvider, LLMProvider

__all__ = ["DEFAULT_MODEL", "ILLMProvider", "LLMProvider"]
