"""Agents module."""

from .base import BaseAgent, IAgent
from .echo_agent import EchoAgent
from .llm_agent import LLMAgent
from .registry import AgentFactory, AgentRegistry, UnknownAgentTypeError

__all__ = [
    "AgentFactory",
    "AgentRegistry",
    "BaseAgent",
    "EchoAgent",
    "IAgent",
    "LLMAgent",
    "UnknownAgentTypeError",
]
