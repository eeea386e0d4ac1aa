"""Agent-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .messages import AgentMessage


class AgentStatus(str, Enum):
    """Lifecycle status of a running agent."""

    IDLE = "idle"
    RUNNING = "running"
    WAITING = "waiting"
    ERROR = "error"
    COMPLETED = "completed"


class RunStatus(str, Enum):
    """Outcome of an agent run or a coordinator run."""

    SUCCESS = "success"
    FAILURE = "failure"
    PARTIAL = "partial"


@dataclass(frozen=True)
class AgentDomain:
    """File paths (glob patterns) an agent owns."""

    write_paths: list[str]
    read_paths: list[str] | None = None  # None or empty: read everything


@dataclass(frozen=True)
class AgentPersona:
    """Agent identity and voice, opaque to the coordinator."""

    name: str
    role: str
    traits: list[str] = field(default_factory=list)
    voice: str = "neutral"


@dataclass(frozen=True)
class AgentConfig:
    """Static configuration of a single agent."""

    id: str
    persona: AgentPersona
    domain: AgentDomain
    schedule: str | None = None  # cron expression
    model: str | None = None
    prompt_template: str | None = None
    metadata: dict[str, Any] | None = None
    agent_type: str = "llm"  # registry factory name


@dataclass
class AgentRunResult:
    """Result of a single agent execution."""

    agent_id: str
    status: RunStatus
    files_changed: list[str]
    timestamp: datetime
    duration_ms: int
    error: str | None = None
    output: str | None = None


@dataclass
class AgentContext:
    """Input handed to an agent for one execution."""

    repository_files: list[str]
    file_contents: dict[str, str]
    messages: list[AgentMessage]
    timestamp: datetime
    previous_run: AgentRunResult | None = None
