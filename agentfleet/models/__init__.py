"""Core data models for agentfleet."""

from .messages import BROADCAST, COORDINATOR, AgentMessage, MessageType, SignalType
from .agents import (
    AgentConfig,
    AgentContext,
    AgentDomain,
    AgentPersona,
    AgentRunResult,
    AgentStatus,
    RunStatus,
)
from .pull_requests import CIStatus, PRAction, PRComment, PRDecision, PRInfo, PRStatus
from .runs import CoordinatorRunResult, CoordinatorState, CoordinatorStatus, RunOptions
from .system import DEFAULT_BLOCKING_LABELS, AutoMergeConfig, SystemConfig

__all__ = [
    # Messages
    "BROADCAST",
    "COORDINATOR",
    "AgentMessage",
    "MessageType",
    "SignalType",
    # Agents
    "AgentConfig",
    "AgentContext",
    "AgentDomain",
    "AgentPersona",
    "AgentRunResult",
    "AgentStatus",
    "RunStatus",
    # Pull requests
    "CIStatus",
    "PRAction",
    "PRComment",
    "PRDecision",
    "PRInfo",
    "PRStatus",
    # Runs
    "CoordinatorRunResult",
    "CoordinatorState",
    "CoordinatorStatus",
    "RunOptions",
    # System
    "DEFAULT_BLOCKING_LABELS",
    "AutoMergeConfig",
    "SystemConfig",
]
