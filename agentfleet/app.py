"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .agents import AgentRegistry, EchoAgent, LLMAgent, UnknownAgentTypeError
from .config import DEFAULT_CONFIG_PATH, load_config_file, validate_config
from .coordinator import Coordinator
from .github import GitHubClient, ISourceControlGateway, PRManager
from .llm import ILLMProvider, LLMProvider
from .logging_config import get_logger
from .message_bus import MessageBus
from .models import SystemConfig
from .storage import IStorage, Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    @property
    def coordinator(self) -> Coordinator:
        """Running coordinator."""
        ...

    @property
    def storage(self) -> IStorage:
        """Storage instance."""
        ...


class Application:
    """Wires storage, bus, registry, gateway and coordinator together."""

    def __init__(
        self,
        config: SystemConfig | None = None,
        db_path: str | None = None,
        github_token: str | None = None,
        gateway: ISourceControlGateway | None = None,
        llm_provider: ILLMProvider | None = None,
    ):
        if config is None:
            config_path = os.getenv("FLEET_CONFIG", str(DEFAULT_CONFIG_PATH))
            config = load_config_file(config_path)
        self._config = config
        self._db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._github_token = github_token or os.getenv("GITHUB_TOKEN")

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._bus: MessageBus | None = None
        self._registry: AgentRegistry | None = None
        self._gateway: ISourceControlGateway | None = gateway
        self._owns_gateway = gateway is None
        self._llm: ILLMProvider | None = llm_provider
        self._coordinator: Coordinator | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info(
            "Starting application for %s/%s", self._config.owner, self._config.repo
        )

        # 1. Registry with agent factories (no dependencies)
        self._registry = self._create_registry()

        validation = validate_config(
            self._config, agent_types=self._registry.agent_types()
        )
        for warning in validation.warnings:
            logger.warning("Config: %s", warning)
        # Invalid configurations still start; matching is best-effort
        for error in validation.errors:
            logger.error("Config: %s", error)

        # 2. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        try:
            await self._start_components()
        except Exception:
            logger.exception("Application start failed")
            await self._release_resources()
            raise

        logger.info("All components initialized successfully")

    async def _start_components(self) -> None:
        # 3. MessageBus (no dependencies)
        self._bus = MessageBus(self._config.messaging_path)

        # 4. Source-control gateway
        if self._gateway is None:
            self._gateway = GitHubClient(
                token=self._github_token,
                owner=self._config.owner,
                repo=self._config.repo,
            )

        # 5. Coordinator (depends on all of the above)
        self._coordinator = Coordinator(
            config=self._config,
            gateway=self._gateway,
            registry=self._registry,
            message_bus=self._bus,
            pr_manager=PRManager(self._gateway),
            storage=self._storage,
        )

        for agent_config in self._config.agents:
            try:
                self._registry.create_agent(agent_config.agent_type, agent_config)
            except UnknownAgentTypeError as e:
                logger.error(
                    "Skipping agent %s: %s",
                    agent_config.id,
                    e,
                    extra={"context": {"agent_id": agent_config.id}},
                )

        await self._coordinator.initialize()

    def _create_registry(self) -> AgentRegistry:
        registry = AgentRegistry()
        registry.register("echo", EchoAgent)
        registry.register("llm", lambda config: LLMAgent(config, self._get_llm()))
        return registry

    def _get_llm(self) -> ILLMProvider:
        # Created on first LLM agent so echo-only fleets need no API key
        if self._llm is None:
            self._llm = LLMProvider()
            logger.info("LLM provider initialized")
        return self._llm

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._coordinator:
            await self._coordinator.stop()
        await self._release_resources()

    async def _release_resources(self) -> None:
        if self._owns_gateway and isinstance(self._gateway, GitHubClient):
            await self._gateway.aclose()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    @property
    def config(self) -> SystemConfig:
        return self._config

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def coordinator(self) -> Coordinator:
        """Get coordinator instance."""
        if not self._coordinator:
            raise RuntimeError("Application not started")
        return self._coordinator
