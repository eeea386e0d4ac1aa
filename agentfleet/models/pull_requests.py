"""Pull request and merge decision models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class PRStatus(str, Enum):
    """Pull request state."""

    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


class CIStatus(str, Enum):
    """Aggregated CI check status."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    CANCELLED = "cancelled"


class PRAction(str, Enum):
    """Action decided for a pull request."""

    MERGE = "merge"
    CLOSE = "close"
    WAIT = "wait"
    REVIEW = "review"


@dataclass
class PRInfo:
    """Pull request as reported by the source-control gateway."""

    number: int
    title: str
    status: PRStatus
    ci_status: CIStatus
    branch: str
    created_at: datetime
    updated_at: datetime
    url: str
    auto_merge_enabled: bool = False
    agent_id: str | None = None
    labels: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PRDecision:
    """Resolved action for a pull request at a point in time."""

    pr_number: int
    action: PRAction
    reason: str
    timestamp: datetime
    wait_conditions: list[str] | None = None  # only for WAIT


@dataclass
class PRComment:
    """A comment on a pull request."""

    id: int
    body: str
    author: str
    created_at: datetime
