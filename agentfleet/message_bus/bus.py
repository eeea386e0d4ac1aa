"""MessageBus implementation for agent-to-agent pub/sub messaging."""

import asyncio
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Protocol

from ..config import DEFAULT_MESSAGING_PATH
from ..logging_config import get_logger
from ..models import BROADCAST, AgentMessage, MessageType

logger = get_logger(__name__)


MessageHandler = Callable[[AgentMessage], Awaitable[None]]


class IMessageBus(Protocol):
    """In-memory pub/sub keyed by agent id."""

    def create_message(
        self,
        sender: str,
        target: str,
        type: MessageType,
        payload: dict[str, Any],
        related_files: list[str] | None = None,
    ) -> AgentMessage:
        """Build a new message without publishing it."""
        ...

    async def publish(self, message: AgentMessage) -> None:
        """Deliver a message to its subscribers."""
        ...

    async def broadcast(
        self, sender: str, type: MessageType, payload: dict[str, Any]
    ) -> None:
        """Publish a message to every agent except the sender."""
        ...

    def subscribe(self, agent_id: str, handler: MessageHandler) -> None:
        """Register a handler for messages addressed to agent_id."""
        ...

    def unsubscribe(self, agent_id: str, handler: MessageHandler) -> None:
        """Remove a previously registered handler."""
        ...

    def get_message_path(self, message: AgentMessage) -> str:
        """Storage path of a message."""
        ...


class MessageBus:
    """In-memory pub/sub message bus.

    Messages are not retained: durable storage is done by callers using
    ``get_message_path`` and ``serialize_message``.
    """

    def __init__(self, base_path: str = DEFAULT_MESSAGING_PATH):
        self._base_path = str(base_path).rstrip("/")
        self._subscribers: dict[str, list[MessageHandler]] = {}

    @property
    def base_path(self) -> str:
        return self._base_path

    def create_message(
        self,
        sender: str,
        target: str,
        type: MessageType,
        payload: dict[str, Any],
        related_files: list[str] | None = None,
    ) -> AgentMessage:
        """Build a new message with a fresh id and timestamp."""
        return AgentMessage(
            id=str(uuid.uuid4()),
            sender=sender,
            target=target,
            type=MessageType(type),
            payload=payload,
            timestamp=datetime.now(timezone.utc),
            related_files=related_files,
        )

    async def publish(self, message: AgentMessage) -> None:
        """Deliver a message; re-raises the first handler failure."""
        handlers = self._resolve_handlers(message)
        if not handlers:
            logger.debug(
                "No subscribers for message %s to %s", message.id, message.target
            )
            return

        # Call all handlers concurrently, wait for every one of them
        results = await asyncio.gather(
            *[handler(message) for handler in handlers],
            return_exceptions=True,
        )

        errors = [result for result in results if isinstance(result, BaseException)]
        for error in errors:
            logger.error(
                "Error in handler for message %s (%s -> %s): %s",
                message.id,
                message.sender,
                message.target,
                error,
            )
        if errors:
            raise errors[0]

    async def broadcast(
        self, sender: str, type: MessageType, payload: dict[str, Any]
    ) -> None:
        """Publish a message to every agent except the sender."""
        message = self.create_message(sender, BROADCAST, type, payload)
        await self.publish(message)

    def subscribe(self, agent_id: str, handler: MessageHandler) -> None:
        """Register a handler for messages addressed to agent_id."""
        self._subscribers.setdefault(agent_id, []).append(handler)

    def unsubscribe(self, agent_id: str, handler: MessageHandler) -> None:
        """Remove the first matching handler; unknown handlers are ignored."""
        handlers = self._subscribers.get(agent_id, [])
        if handler in handlers:
            handlers.remove(handler)

    def _resolve_handlers(self, message: AgentMessage) -> list[MessageHandler]:
        if message.target == BROADCAST:
            return [
                handler
                for agent_id, handlers in self._subscribers.items()
                if agent_id != message.sender
                for handler in handlers
            ]
        return list(self._subscribers.get(message.target, []))

    def get_message_path(self, message: AgentMessage) -> str:
        """Path as <base>/<UTC date>/<id>.json."""
        date_str = message.timestamp.astimezone(timezone.utc).date().isoformat()
        return f"{self._base_path}/{date_str}/{message.id}.json"

    def serialize_message(self, message: AgentMessage) -> str:
        return serialize_message(message)

    def parse_message(self, text: str) -> AgentMessage:
        return parse_message(text)


def serialize_message(message: AgentMessage) -> str:
    """Serialize a message to JSON text."""
    return json.dumps(
        {
            "id": message.id,
            "from": message.sender,
            "to": message.target,
            "type": message.type.value,
            "payload": message.payload,
            "timestamp": message.timestamp.isoformat(),
            "related_files": message.related_files,
        },
        indent=2,
    )


def parse_message(text: str) -> AgentMessage:
    """Parse a message from JSON text produced by serialize_message."""
    data = json.loads(text)
    timestamp = datetime.fromisoformat(data["timestamp"])
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    return AgentMessage(
        id=data["id"],
        sender=data["from"],
        target=data["to"],
        type=MessageType(data["type"]),
        payload=data.get("payload") or {},
        timestamp=timestamp,
        related_files=data.get("related_files"),
    )
