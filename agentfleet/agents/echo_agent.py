"""Echo agent implementation."""

import time
from datetime import datetime, timezone

from ..logging_config import get_logger
from ..models import AgentContext, AgentMessage, AgentRunResult, AgentStatus, RunStatus
from .base import BaseAgent

logger = get_logger(__name__)


class EchoAgent(BaseAgent):
    """Minimal agent for testing coordination flow; changes no files."""

    def __init__(self, config):
        super().__init__(config)
        self._inbox: list[AgentMessage] = []

    @property
    def inbox(self) -> list[AgentMessage]:
        """Messages received through handle_message."""
        return list(self._inbox)

    async def generate_prompt(self, context: AgentContext) -> str:
        return (
            f"Echo {len(context.messages)} messages "
            f"and {len(self._inbox)} received for {self.id}"
        )

    async def execute(self, context: AgentContext) -> AgentRunResult:
        self._set_status(AgentStatus.RUNNING)
        started = time.monotonic()

        output = await self.generate_prompt(context)
        logger.info("EchoAgent %s: %s", self.id, output)

        self._set_status(AgentStatus.COMPLETED)
        return AgentRunResult(
            agent_id=self.id,
            status=RunStatus.SUCCESS,
            files_changed=[],
            timestamp=datetime.now(timezone.utc),
            duration_ms=int((time.monotonic() - started) * 1000),
            output=output,
        )

    async def handle_message(self, message: AgentMessage) -> None:
        self._inbox.append(message)
