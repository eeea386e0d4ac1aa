"""Pytest configuration and fixtures."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from agentfleet.agents import BaseAgent  # noqa: E402
from agentfleet.models import (  # noqa: E402
    AgentConfig,
    AgentDomain,
    AgentPersona,
    AgentRunResult,
    AgentStatus,
    CIStatus,
    PRInfo,
    PRStatus,
    RunStatus,
    SystemConfig,
)


class ScriptedAgent(BaseAgent):
    """Test agent that records calls and optionally fails."""

    def __init__(self, config: AgentConfig, error: Exception | None = None):
        super().__init__(config)
        self.error = error
        self.contexts = []
        self.received = []

    async def generate_prompt(self, context) -> str:
        return f"prompt for {self.id}"

    async def execute(self, context) -> AgentRunResult:
        self._set_status(AgentStatus.RUNNING)
        self.contexts.append(context)
        if self.error:
            self._set_status(AgentStatus.ERROR)
            raise self.error
        self._set_status(AgentStatus.COMPLETED)
        return AgentRunResult(
            agent_id=self.id,
            status=RunStatus.SUCCESS,
            files_changed=[f"{self.id}/out.md"],
            timestamp=datetime.now(timezone.utc),
            duration_ms=1,
        )

    async def handle_message(self, message) -> None:
        self.received.append(message)


def make_agent_config(
    agent_id: str,
    write_paths: list[str] | None = None,
    read_paths: list[str] | None = None,
    agent_type: str = "scripted",
) -> AgentConfig:
    """Build an AgentConfig with a throwaway persona."""
    return AgentConfig(
        id=agent_id,
        persona=AgentPersona(name=agent_id.title(), role="Tester"),
        domain=AgentDomain(
            write_paths=write_paths or [f"{agent_id}/**"],
            read_paths=read_paths,
        ),
        agent_type=agent_type,
    )


def make_pr(
    number: int,
    ci_status: CIStatus = CIStatus.PENDING,
    auto_merge: bool = False,
    labels: list[str] | None = None,
) -> PRInfo:
    """Build an open PRInfo."""
    now = datetime.now(timezone.utc)
    return PRInfo(
        number=number,
        title=f"PR {number}",
        status=PRStatus.OPEN,
        ci_status=ci_status,
        branch=f"agent/branch-{number}",
        created_at=now,
        updated_at=now,
        url=f"https://github.com/example/repo/pull/{number}",
        auto_merge_enabled=auto_merge,
        labels=labels or [],
    )


def serve_prs(gateway: Mock, prs: list[PRInfo], passing: set[int] | None = None) -> None:
    """Make a mock gateway answer for the given PRs."""
    by_number = {pr.number: pr for pr in prs}
    passing = passing or set()

    gateway.list_open_prs.return_value = list(prs)
    gateway.get_pr.side_effect = lambda n: by_number.get(n)
    gateway.get_ci_status.side_effect = lambda n: by_number[n].ci_status
    gateway.all_checks_passed.side_effect = lambda n, checks: n in passing


@pytest.fixture
def gateway():
    """Create mock source-control gateway."""
    gw = Mock()
    gw.list_open_prs = AsyncMock(return_value=[])
    gw.get_pr = AsyncMock(return_value=None)
    gw.get_ci_status = AsyncMock(return_value=CIStatus.PENDING)
    gw.all_checks_passed = AsyncMock(return_value=False)
    gw.merge_pr = AsyncMock(return_value=True)
    gw.close_pr = AsyncMock(return_value=True)
    return gw


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from agentfleet.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def message_bus():
    """Create MessageBus with a test base path."""
    from agentfleet.message_bus import MessageBus

    return MessageBus(".agents/messages")


@pytest.fixture
def registry():
    """Create AgentRegistry with the scripted test agent type."""
    from agentfleet.agents import AgentRegistry

    reg = AgentRegistry()
    reg.register("scripted", ScriptedAgent)
    return reg


@pytest.fixture
def system_config():
    """Create SystemConfig with auto-merge disabled."""
    from agentfleet.config import load_config

    return load_config(
        {"owner": "example", "repo": "repo", "auto_merge": {"enabled": False}}
    )


@pytest.fixture
def coordinator(system_config, gateway, registry, message_bus):
    """Create Coordinator without storage."""
    from agentfleet.coordinator import Coordinator

    return Coordinator(
        config=system_config,
        gateway=gateway,
        registry=registry,
        message_bus=message_bus,
    )


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="Test response")
    return llm


def system(**overrides) -> SystemConfig:
    """SystemConfig with test defaults."""
    from agentfleet.config import load_config

    data = {"owner": "example", "repo": "repo"}
    data.update(overrides)
    return load_config(data)
