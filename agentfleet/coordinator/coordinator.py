"""Coordinator: runs agents, broadcasts signals, drives PR decisions."""

import time
from datetime import datetime, timezone
from typing import Any, Protocol

from ..agents import AgentRegistry, BaseAgent
from ..github import ISourceControlGateway, PRManager
from ..logging_config import get_logger
from ..message_bus import MessageBus
from ..models import (
    BROADCAST,
    COORDINATOR,
    AgentContext,
    AgentMessage,
    AgentRunResult,
    CoordinatorRunResult,
    CoordinatorState,
    CoordinatorStatus,
    MessageType,
    PRAction,
    PRDecision,
    RunOptions,
    RunStatus,
    SignalType,
    SystemConfig,
)
from ..storage import IStorage

logger = get_logger(__name__)

# Upper bound on stored messages handed to an agent per run
MAX_CONTEXT_MESSAGES = 100


class ICoordinator(Protocol):
    """Orchestrates agent runs and PR processing."""

    @property
    def state(self) -> CoordinatorState:
        """Current coordinator state."""
        ...

    async def initialize(self) -> None:
        """Subscribe agents to the bus and announce start."""
        ...

    async def run(self, options: RunOptions | None = None) -> CoordinatorRunResult:
        """Run one coordination cycle."""
        ...

    async def stop(self) -> None:
        """Stop the coordinator."""
        ...

    def get_status(self) -> CoordinatorStatus:
        """Status summary."""
        ...


class Coordinator:
    """Central orchestrator of the agent fleet.

    A run executes the selected agents one after another, broadcasting a
    ``task_completed`` signal after each success, then decides (and
    optionally executes) an action for every open pull request.
    """

    def __init__(
        self,
        config: SystemConfig,
        gateway: ISourceControlGateway,
        registry: AgentRegistry | None = None,
        message_bus: MessageBus | None = None,
        pr_manager: PRManager | None = None,
        storage: IStorage | None = None,
    ):
        self._config = config
        self._gateway = gateway
        self._registry = registry or AgentRegistry()
        self._bus = message_bus or MessageBus(config.messaging_path)
        self._pr_manager = pr_manager or PRManager(gateway)
        self._storage = storage
        self._state = CoordinatorState.IDLE
        self._run_history: list[CoordinatorRunResult] = []

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def config(self) -> SystemConfig:
        return self._config

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    @property
    def message_bus(self) -> MessageBus:
        return self._bus

    @property
    def pr_manager(self) -> PRManager:
        return self._pr_manager

    def _ensure_not_stopped(self) -> None:
        # Stopped is terminal
        if self._state == CoordinatorState.STOPPED:
            raise RuntimeError("Coordinator stopped")

    async def initialize(self) -> None:
        """Subscribe every registered agent to its messages."""
        self._ensure_not_stopped()
        self._state = CoordinatorState.RUNNING

        for agent in self._registry.get_all_agents():
            self._bus.subscribe(agent.id, agent.handle_message)

        await self.broadcast(
            MessageType.STATUS,
            {
                "event": "coordinator_initialized",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.info(
            "Coordinator initialized with %s agents",
            len(self._registry.get_all_agents()),
        )

    async def send(self, message: AgentMessage) -> None:
        """Persist a message (when storage is configured) and publish it."""
        if self._storage:
            path = self._bus.get_message_path(message)
            await self._storage.save_message(message, path)
        await self._bus.publish(message)

    async def broadcast(self, type: MessageType, payload: dict[str, Any]) -> None:
        """Broadcast a message from the coordinator."""
        message = self._bus.create_message(COORDINATOR, BROADCAST, type, payload)
        await self.send(message)

    async def run(self, options: RunOptions | None = None) -> CoordinatorRunResult:
        """Run the coordination cycle."""
        self._ensure_not_stopped()
        options = options or RunOptions()
        started = time.monotonic()
        result = CoordinatorRunResult(
            status=RunStatus.SUCCESS,
            timestamp=datetime.now(timezone.utc),
        )

        try:
            self._state = CoordinatorState.PROCESSING

            for agent in self._resolve_agents(options.agents):
                try:
                    context = await self._build_agent_context(agent)
                    agent_result = await agent.execute(context)
                except Exception as e:
                    logger.warning(
                        "Agent %s failed: %s",
                        agent.id,
                        e,
                        extra={"context": {"agent_id": agent.id}},
                    )
                    result.errors.append(f"Agent {agent.id}: {e}")
                    continue

                result.agent_results.append(agent_result)
                await self.broadcast(
                    MessageType.SIGNAL,
                    {
                        "signal": SignalType.TASK_COMPLETED.value,
                        "agent_id": agent.id,
                        "status": agent_result.status.value,
                        "files_changed": agent_result.files_changed,
                    },
                )

            if not options.skip_pr_processing:
                result.pr_decisions = await self._process_prs(options.dry_run)

            if result.errors:
                result.status = (
                    RunStatus.PARTIAL if result.agent_results else RunStatus.FAILURE
                )

            self._state = CoordinatorState.IDLE

        except Exception as e:
            logger.exception("Coordinator run failed")
            result.errors.append(f"Coordinator: {e}")
            result.status = RunStatus.FAILURE
            self._state = CoordinatorState.ERROR

        result.duration_ms = int((time.monotonic() - started) * 1000)
        self._run_history.append(result)
        logger.info(
            "Run finished: %s (%s agents, %s decisions, %s errors)",
            result.status.value,
            len(result.agent_results),
            len(result.pr_decisions),
            len(result.errors),
            extra={
                "context": {
                    "run_timestamp": result.timestamp,
                    "agents": [r.agent_id for r in result.agent_results],
                    "duration_ms": result.duration_ms,
                }
            },
        )

        await self._persist(result)
        return result

    def _resolve_agents(self, agent_ids: list[str] | None) -> list[BaseAgent]:
        if agent_ids is None:
            return self._registry.get_all_agents()

        # Unknown ids are dropped
        agents = [self._registry.get_agent(agent_id) for agent_id in agent_ids]
        return [agent for agent in agents if agent is not None]

    async def _build_agent_context(self, agent: BaseAgent) -> AgentContext:
        previous_run = self._get_last_agent_result(agent.id)
        if previous_run is None and self._storage:
            previous_run = await self._get_stored_agent_result(agent.id)

        messages: list[AgentMessage] = []
        if self._storage:
            messages = await self._storage.get_messages_for_agent(
                agent.id,
                after=previous_run.timestamp if previous_run else None,
                limit=MAX_CONTEXT_MESSAGES,
            )

        return AgentContext(
            repository_files=[],
            file_contents={},
            messages=messages,
            timestamp=datetime.now(timezone.utc),
            previous_run=previous_run,
        )

    def _get_last_agent_result(self, agent_id: str) -> AgentRunResult | None:
        for run in reversed(self._run_history):
            for agent_result in run.agent_results:
                if agent_result.agent_id == agent_id:
                    return agent_result
        return None

    async def _get_stored_agent_result(self, agent_id: str) -> AgentRunResult | None:
        # Runs persisted by an earlier process (newest first)
        for run in await self._storage.get_runs():
            for agent_result in run.agent_results:
                if agent_result.agent_id == agent_id:
                    return agent_result
        return None

    async def _process_prs(self, dry_run: bool) -> list[PRDecision]:
        decisions = []

        for pr in await self._gateway.list_open_prs():
            decision = await self._pr_manager.decide(pr.number)
            decisions.append(decision)

            if not dry_run and decision.action == PRAction.MERGE:
                await self._pr_manager.execute_decision(decision)

        auto_merge = self._config.auto_merge
        if auto_merge.enabled:
            decisions.extend(
                await self._pr_manager.auto_merge_ready(
                    auto_merge.required_checks,
                    blocking_labels=auto_merge.blocking_labels,
                    execute=not dry_run,
                )
            )

        return decisions

    async def _persist(self, result: CoordinatorRunResult) -> None:
        if not self._storage:
            return
        try:
            for decision in result.pr_decisions:
                await self._storage.save_decision(decision)
            await self._storage.save_run(result)
        except Exception:
            logger.exception("Failed to persist run result")

    async def stop(self) -> None:
        """Stop the coordinator."""
        self._state = CoordinatorState.STOPPED

        await self.broadcast(
            MessageType.STATUS,
            {
                "event": "coordinator_stopped",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.info("Coordinator stopped")

    def get_run_history(self) -> list[CoordinatorRunResult]:
        """All run results, oldest first (copy)."""
        return list(self._run_history)

    def get_last_run(self) -> CoordinatorRunResult | None:
        """Most recent run result."""
        return self._run_history[-1] if self._run_history else None

    def get_status(self) -> CoordinatorStatus:
        """Summary of state and agents."""
        agents = self._registry.get_all_agents()
        last_run = self.get_last_run()
        return CoordinatorStatus(
            state=self._state,
            agent_count=len(agents),
            agent_statuses=[
                {"id": agent.id, "status": agent.status.value} for agent in agents
            ],
            total_runs=len(self._run_history),
            last_run=last_run.timestamp if last_run else None,
        )
