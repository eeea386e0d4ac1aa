"""Pydantic response/request models shared by the API routes."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from ..models import (
    AgentMessage,
    AgentRunResult,
    CoordinatorRunResult,
    CoordinatorStatus,
    MessageType,
    PRDecision,
)


class StatusResponse(BaseModel):
    """Generic acknowledgement."""

    status: str


class AgentResultResponse(BaseModel):
    """Result of one agent execution."""

    agent_id: str
    status: str
    files_changed: list[str]
    timestamp: datetime
    duration_ms: int
    error: str | None = None
    output: str | None = None


class DecisionResponse(BaseModel):
    """PR decision."""

    pr_number: int
    action: str
    reason: str
    timestamp: datetime
    wait_conditions: list[str] | None = None


class RunResponse(BaseModel):
    """Coordinator run result."""

    status: str
    agent_results: list[AgentResultResponse]
    pr_decisions: list[DecisionResponse]
    timestamp: datetime
    duration_ms: int
    errors: list[str]


class AgentStatusResponse(BaseModel):
    """Id and status of one agent."""

    id: str
    status: str


class CoordinatorStatusResponse(BaseModel):
    """Coordinator status summary."""

    state: str
    agent_count: int
    agent_statuses: list[AgentStatusResponse]
    last_run: datetime | None = None
    total_runs: int


class RunRequest(BaseModel):
    """Request model for triggering a run."""

    agents: list[str] | None = None
    skip_pr_processing: bool = False
    dry_run: bool = False


class MessageRequest(BaseModel):
    """Request model for publishing a message."""

    sender: str
    target: str
    type: MessageType
    payload: dict[str, Any] = Field(default_factory=dict)
    related_files: list[str] | None = None


class MessageResponse(BaseModel):
    """A stored message."""

    id: str
    sender: str
    target: str
    type: str
    payload: dict[str, Any]
    timestamp: datetime
    related_files: list[str] | None = None


class PublishResponse(BaseModel):
    """Response for a published message."""

    id: str
    path: str


def agent_result_to_response(result: AgentRunResult) -> AgentResultResponse:
    return AgentResultResponse(
        agent_id=result.agent_id,
        status=result.status.value,
        files_changed=result.files_changed,
        timestamp=result.timestamp,
        duration_ms=result.duration_ms,
        error=result.error,
        output=result.output,
    )


def decision_to_response(decision: PRDecision) -> DecisionResponse:
    return DecisionResponse(
        pr_number=decision.pr_number,
        action=decision.action.value,
        reason=decision.reason,
        timestamp=decision.timestamp,
        wait_conditions=decision.wait_conditions,
    )


def run_to_response(result: CoordinatorRunResult) -> RunResponse:
    return RunResponse(
        status=result.status.value,
        agent_results=[agent_result_to_response(r) for r in result.agent_results],
        pr_decisions=[decision_to_response(d) for d in result.pr_decisions],
        timestamp=result.timestamp,
        duration_ms=result.duration_ms,
        errors=result.errors,
    )


def status_to_response(status: CoordinatorStatus) -> CoordinatorStatusResponse:
    return CoordinatorStatusResponse(
        state=status.state.value,
        agent_count=status.agent_count,
        agent_statuses=[AgentStatusResponse(**entry) for entry in status.agent_statuses],
        last_run=status.last_run,
        total_runs=status.total_runs,
    )


def message_to_response(message: AgentMessage) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        sender=message.sender,
        target=message.target,
        type=message.type.value,
        payload=message.payload,
        timestamp=message.timestamp,
        related_files=message.related_files,
    )
