"""agentfleet: domain-owning agents coordinated over a message bus."""

from .agents import (
    AgentRegistry,
    BaseAgent,
    EchoAgent,
    IAgent,
    LLMAgent,
    UnknownAgentTypeError,
)
from .app import Application, IApplication
from .config import load_config, load_config_file, validate_config
from .coordinator import Coordinator, ICoordinator
from .domain import can_read, can_write, matches
from .github import GitHubClient, ISourceControlGateway, PRManager, PRNotFoundError
from .llm import ILLMProvider, LLMProvider
from .message_bus import IMessageBus, MessageBus
from .models import (
    AgentConfig,
    AgentContext,
    AgentDomain,
    AgentMessage,
    AgentPersona,
    AgentRunResult,
    CoordinatorRunResult,
    PRDecision,
    PRInfo,
    RunOptions,
    SystemConfig,
)
from .storage import IStorage, Storage

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Config
    "load_config",
    "load_config_file",
    "validate_config",
    # Models
    "AgentConfig",
    "AgentContext",
    "AgentDomain",
    "AgentMessage",
    "AgentPersona",
    "AgentRunResult",
    "CoordinatorRunResult",
    "PRDecision",
    "PRInfo",
    "RunOptions",
    "SystemConfig",
    # Domain matching
    "can_read",
    "can_write",
    "matches",
    # Components
    "AgentRegistry",
    "BaseAgent",
    "EchoAgent",
    "IAgent",
    "LLMAgent",
    "UnknownAgentTypeError",
    "Coordinator",
    "ICoordinator",
    "GitHubClient",
    "ISourceControlGateway",
    "PRManager",
    "PRNotFoundError",
    "ILLMProvider",
    "LLMProvider",
    "IMessageBus",
    "MessageBus",
    "IStorage",
    "Storage",
]
