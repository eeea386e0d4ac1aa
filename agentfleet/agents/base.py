"""Agent contract and shared base class."""

from abc import ABC, abstractmethod
from typing import Protocol

from ..domain import CATCH_ALL, can_read, can_write
from ..models import AgentConfig, AgentContext, AgentMessage, AgentRunResult, AgentStatus


class IAgent(Protocol):
    """A named unit of work owning a file-path domain."""

    @property
    def id(self) -> str:
        """Agent identifier."""
        ...

    @property
    def config(self) -> AgentConfig:
        """Immutable agent configuration."""
        ...

    @property
    def status(self) -> AgentStatus:
        """Current lifecycle status."""
        ...

    async def generate_prompt(self, context: AgentContext) -> str:
        """Describe what the agent would ask its executor to do."""
        ...

    async def execute(self, context: AgentContext) -> AgentRunResult:
        """Perform the agent's unit of work."""
        ...

    async def handle_message(self, message: AgentMessage) -> None:
        """React to an inbound message."""
        ...


class BaseAgent(ABC):
    """Domain enforcement and status tracking shared by all agents.

    Subclasses implement ``generate_prompt``, ``execute`` and
    ``handle_message``. ``execute`` is expected to set the status to
    RUNNING on entry and COMPLETED on success.
    """

    def __init__(self, config: AgentConfig):
        self._config = config
        self._status = AgentStatus.IDLE

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def status(self) -> AgentStatus:
        return self._status

    def _set_status(self, status: AgentStatus) -> None:
        self._status = status

    def can_write(self, path: str) -> bool:
        """Check if a path is within this agent's write domain."""
        return can_write(self._config.domain, path)

    def can_read(self, path: str) -> bool:
        """Check if a path is within this agent's read domain."""
        return can_read(self._config.domain, path)

    def get_context_files(self) -> list[str]:
        """Patterns of files this agent should read before execution."""
        if self._config.domain.read_paths is not None:
            return list(self._config.domain.read_paths)
        return [CATCH_ALL]

    @abstractmethod
    async def generate_prompt(self, context: AgentContext) -> str:
        """Describe what the agent would ask its executor to do."""

    @abstractmethod
    async def execute(self, context: AgentContext) -> AgentRunResult:
        """Perform the agent's unit of work."""

    @abstractmethod
    async def handle_message(self, message: AgentMessage) -> None:
        """React to an inbound message."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, status={self._status.value!r})"
