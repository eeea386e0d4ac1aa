"""Coordinator run models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .agents import AgentRunResult, RunStatus
from .pull_requests import PRDecision


class CoordinatorState(str, Enum):
    """Coordinator lifecycle state."""

    IDLE = "idle"
    RUNNING = "running"
    PROCESSING = "processing"
    ERROR = "error"
    STOPPED = "stopped"


@dataclass
class RunOptions:
    """Options for a single coordinator run."""

    agents: list[str] | None = None  # None: every registered agent
    skip_pr_processing: bool = False
    dry_run: bool = False


@dataclass
class CoordinatorRunResult:
    """Aggregate result of one coordinator run."""

    status: RunStatus
    timestamp: datetime
    agent_results: list[AgentRunResult] = field(default_factory=list)
    pr_decisions: list[PRDecision] = field(default_factory=list)
    duration_ms: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class CoordinatorStatus:
    """Summary of the coordinator and its agents."""

    state: CoordinatorState
    agent_count: int
    agent_statuses: list[dict[str, str]]
    total_runs: int
    last_run: datetime | None = None
