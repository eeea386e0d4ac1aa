"""Inter-agent message models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

BROADCAST = "broadcast"
COORDINATOR = "coordinator"


class MessageType(str, Enum):
    """Kind of message exchanged through the MessageBus."""

    SIGNAL = "signal"
    DECISION = "decision"
    REQUEST = "request"
    STATUS = "status"


class SignalType(str, Enum):
    """Well-known values of payload["signal"] for SIGNAL messages."""

    TASK_COMPLETED = "task_completed"
    INPUT_NEEDED = "input_needed"
    CONFLICT_DETECTED = "conflict_detected"
    PRIORITY_SUGGESTION = "priority_suggestion"
    STATUS_UPDATE = "status_update"


@dataclass(frozen=True)
class AgentMessage:
    """A message passed between agents (or from the coordinator)."""

    id: str
    sender: str  # agent id or COORDINATOR
    target: str  # agent id or BROADCAST
    type: MessageType
    payload: dict[str, Any]
    timestamp: datetime
    related_files: list[str] | None = None
