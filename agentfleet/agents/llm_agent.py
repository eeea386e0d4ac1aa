"""Agent that delegates its work to an LLM provider."""

import time
from datetime import datetime, timezone

from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import (
    AgentConfig,
    AgentContext,
    AgentMessage,
    AgentRunResult,
    AgentStatus,
    RunStatus,
)
from .base import BaseAgent

logger = get_logger(__name__)


class LLMAgent(BaseAgent):
    """Builds a prompt from persona, domain and messages and sends it to the LLM."""

    def __init__(
        self,
        config: AgentConfig,
        llm_provider: ILLMProvider,
        max_tokens: int = 4096,
    ):
        super().__init__(config)
        self._llm = llm_provider
        self._max_tokens = max_tokens
        self._pending: list[AgentMessage] = []

    @property
    def pending_messages(self) -> list[AgentMessage]:
        """Messages received since the last execution."""
        return list(self._pending)

    def system_prompt(self) -> str:
        """Persona description sent as the system prompt."""
        persona = self.config.persona
        lines = [f"You are {persona.name}, {persona.role}."]
        if persona.traits:
            lines.append(f"Traits: {', '.join(persona.traits)}.")
        lines.append(f"Voice: {persona.voice}.")
        return "\n".join(lines)

    async def generate_prompt(self, context: AgentContext) -> str:
        sections = []
        if self.config.prompt_template:
            sections.append(self.config.prompt_template)

        domain = self.config.domain
        sections.append(
            "You may only write to:\n"
            + "\n".join(f"- {pattern}" for pattern in domain.write_paths)
        )
        sections.append(
            "Read before acting:\n"
            + "\n".join(f"- {pattern}" for pattern in self.get_context_files())
        )

        # Stored and live-delivered copies of a message share its id
        messages = list({m.id: m for m in [*context.messages, *self._pending]}.values())
        if messages:
            sections.append(
                "Messages:\n"
                + "\n".join(
                    f"- [{m.type.value}] from {m.sender}: {m.payload}" for m in messages
                )
            )

        if context.previous_run:
            previous = context.previous_run
            summary = (
                f"Previous run ({previous.timestamp.isoformat()}): "
                f"{previous.status.value}"
            )
            if previous.error:
                summary += f", error: {previous.error}"
            if previous.output:
                summary += f"\n{previous.output}"
            sections.append(summary)

        sections.append(f"Current time: {context.timestamp.isoformat()}")
        return "\n\n".join(sections)

    async def execute(self, context: AgentContext) -> AgentRunResult:
        self._set_status(AgentStatus.RUNNING)
        started = time.monotonic()

        prompt = await self.generate_prompt(context)
        try:
            output = await self._llm.complete(
                messages=[{"role": "user", "content": prompt}],
                system=self.system_prompt(),
                max_tokens=self._max_tokens,
                model=self.config.model,
            )
        except Exception:
            self._set_status(AgentStatus.ERROR)
            logger.exception("LLMAgent %s failed", self.id)
            raise

        self._pending.clear()
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
        logger.debug(
            "LLMAgent %s received %s from %s",
            self.id,
            message.type.value,
            message.sender,
        )
        self._pending.append(message)
