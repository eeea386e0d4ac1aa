"""Agent registry: factories by type name, live agents by id."""

from typing import Callable

from ..logging_config import get_logger
from ..models import AgentConfig
from .base import BaseAgent

logger = get_logger(__name__)


AgentFactory = Callable[[AgentConfig], BaseAgent]


class UnknownAgentTypeError(ValueError):
    """Raised when no factory is registered for an agent type."""

    def __init__(self, type_name: str):
        super().__init__(f"Unknown agent type: {type_name}")
        self.type_name = type_name


class AgentRegistry:
    """Creates agents from registered factories and keeps them by id."""

    def __init__(self):
        self._factories: dict[str, AgentFactory] = {}
        self._agents: dict[str, BaseAgent] = {}

    def register(self, type_name: str, factory: AgentFactory) -> None:
        """Register (or replace) the factory for an agent type."""
        self._factories[type_name] = factory

    def agent_types(self) -> list[str]:
        """Names of registered agent types."""
        return list(self._factories)

    def create_agent(self, type_name: str, config: AgentConfig) -> BaseAgent:
        """
        Create an agent and store it under its config id.

        Raises:
            UnknownAgentTypeError: If no factory is registered for type_name
        """
        factory = self._factories.get(type_name)
        if factory is None:
            raise UnknownAgentTypeError(type_name)

        agent = factory(config)
        if config.id in self._agents:
            logger.warning("Replacing existing agent %s", config.id)
        self._agents[config.id] = agent
        logger.info("Created %s agent %s", type_name, config.id)
        return agent

    def get_agent(self, agent_id: str) -> BaseAgent | None:
        """Get an agent by id."""
        return self._agents.get(agent_id)

    def get_all_agents(self) -> list[BaseAgent]:
        """All agents in registration order."""
        return list(self._agents.values())

    def remove_agent(self, agent_id: str) -> bool:
        """Remove an agent; returns True if it existed."""
        return self._agents.pop(agent_id, None) is not None
