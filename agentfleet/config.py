"""Project-level configuration: path helpers and SystemConfig loading."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Union

from .models import (
    DEFAULT_BLOCKING_LABELS,
    AgentConfig,
    AgentDomain,
    AgentPersona,
    AutoMergeConfig,
    SystemConfig,
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_DB_PATH = DATA_DIR / "agentfleet.db"
DEFAULT_LOG_PATH = LOGS_DIR / "agentfleet.log"
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "fleet.json"

DEFAULT_BRANCH = "main"
DEFAULT_MESSAGING_PATH = ".agents/messages"
DEFAULT_DECISIONS_PATH = ".agents/decisions"
DEFAULT_MERGE_DELAY_MS = 60000


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


@dataclass
class ValidationResult:
    """Outcome of configuration validation."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def agent_config_from_dict(data: dict[str, Any]) -> AgentConfig:
    """Build an AgentConfig from its JSON representation."""
    persona = data.get("persona") or {}
    domain = data.get("domain") or {}
    read_paths = domain.get("read_paths")

    return AgentConfig(
        id=data.get("id", ""),
        persona=AgentPersona(
            name=persona.get("name", ""),
            role=persona.get("role", ""),
            traits=list(persona.get("traits", [])),
            voice=persona.get("voice", "neutral"),
        ),
        domain=AgentDomain(
            write_paths=list(domain.get("write_paths", [])),
            read_paths=list(read_paths) if read_paths is not None else None,
        ),
        schedule=data.get("schedule"),
        model=data.get("model"),
        prompt_template=data.get("prompt_template"),
        metadata=data.get("metadata"),
        agent_type=data.get("agent_type", "llm"),
    )


def load_config(data: dict[str, Any]) -> SystemConfig:
    """
    Build a SystemConfig from a mapping, filling in defaults.

    Args:
        data: Parsed configuration. ``owner`` and ``repo`` are required;
              ``auto_merge`` may be partial and is merged over the defaults.

    Returns:
        Fully populated SystemConfig

    Raises:
        ValueError: If owner or repo is missing
    """
    for key in ("owner", "repo"):
        if not data.get(key):
            raise ValueError(f"Missing required field: {key}")

    auto_merge = data.get("auto_merge") or {}
    agents = [
        agent if isinstance(agent, AgentConfig) else agent_config_from_dict(agent)
        for agent in data.get("agents") or []
    ]

    return SystemConfig(
        owner=data["owner"],
        repo=data["repo"],
        default_branch=data.get("default_branch") or DEFAULT_BRANCH,
        messaging_path=data.get("messaging_path") or DEFAULT_MESSAGING_PATH,
        decisions_path=data.get("decisions_path") or DEFAULT_DECISIONS_PATH,
        auto_merge=AutoMergeConfig(
            enabled=auto_merge.get("enabled", True),
            required_checks=list(auto_merge.get("required_checks", [])),
            merge_delay_ms=auto_merge.get("merge_delay_ms", DEFAULT_MERGE_DELAY_MS),
            blocking_labels=list(
                auto_merge.get("blocking_labels", DEFAULT_BLOCKING_LABELS)
            ),
        ),
        agents=agents,
    )


def load_config_file(path: PathLike) -> SystemConfig:
    """Load a SystemConfig from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return load_config(data)


def validate_agent_config(config: AgentConfig) -> ValidationResult:
    """Validate a single agent configuration."""
    errors = []
    warnings = []

    if not config.id:
        errors.append("Missing required field: id")
    if not config.persona.name:
        errors.append("Missing required field: persona.name")
    if not config.persona.role:
        errors.append("Missing required field: persona.role")
    if not config.domain.write_paths:
        errors.append("Agent must have at least one write path")

    if not config.prompt_template:
        warnings.append("No custom prompt template defined")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def find_domain_conflicts(agents: list[AgentConfig]) -> list[str]:
    """Report write patterns claimed by more than one agent."""
    owners: dict[str, list[str]] = {}
    for agent in agents:
        for path in agent.domain.write_paths:
            owners.setdefault(path, []).append(agent.id)

    return [
        f'Path "{path}" is owned by multiple agents: {", ".join(agent_ids)}'
        for path, agent_ids in owners.items()
        if len(agent_ids) > 1
    ]


def validate_config(
    config: SystemConfig, agent_types: Iterable[str] | None = None
) -> ValidationResult:
    """
    Validate a system configuration.

    Args:
        config: Configuration to check
        agent_types: Registered agent types; when given, agents of any
                     other type are reported
    """
    errors = []
    warnings = []
    known_types = set(agent_types) if agent_types is not None else None

    if not config.owner:
        errors.append("Missing required field: owner")
    if not config.repo:
        errors.append("Missing required field: repo")

    seen_ids: set[str] = set()
    for agent in config.agents:
        if agent.id in seen_ids:
            errors.append(f"Duplicate agent ID: {agent.id}")
        seen_ids.add(agent.id)

        result = validate_agent_config(agent)
        errors.extend(f"Agent {agent.id}: {e}" for e in result.errors)
        if known_types is not None and agent.agent_type not in known_types:
            errors.append(f"Agent {agent.id}: Unknown agent type: {agent.agent_type}")
        warnings.extend(f"Agent {agent.id}: {w}" for w in result.warnings)

    errors.extend(find_domain_conflicts(config.agents))

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def create_agent_config(
    agent_id: str, name: str, role: str, write_paths: list[str]
) -> AgentConfig:
    """Create a minimal agent configuration."""
    return AgentConfig(
        id=agent_id,
        persona=AgentPersona(name=name, role=role, traits=[], voice="neutral"),
        domain=AgentDomain(write_paths=list(write_paths)),
    )


def _founder(agent_id: str, domain_path: str) -> AgentConfig:
    return AgentConfig(
        id=agent_id,
        persona=AgentPersona(
            name="Founder",
            role="Vision and direction setter",
            traits=["visionary", "decisive", "philosophical"],
            voice="authoritative yet inspiring",
        ),
        domain=AgentDomain(write_paths=[domain_path]),
        prompt_template=(
            "You define the vision and meaning of the system.\n"
            'You create the "why" that guides all other decisions.\n'
            "Your writing is philosophical but actionable."
        ),
    )


def _architect(agent_id: str, domain_path: str) -> AgentConfig:
    return AgentConfig(
        id=agent_id,
        persona=AgentPersona(
            name="Architect",
            role="System structure engineer",
            traits=["systematic", "precise", "forward-thinking"],
            voice="technical and structured",
        ),
        domain=AgentDomain(write_paths=[domain_path]),
        prompt_template=(
            "You design the structural skeleton of the system.\n"
            "You think in systems, modules, interfaces, and failure modes.\n"
            "Your writing is technically precise and systematically organized."
        ),
    )


def _builder(agent_id: str, code_paths: list[str]) -> AgentConfig:
    return AgentConfig(
        id=agent_id,
        persona=AgentPersona(
            name="Builder",
            role="Code implementation specialist",
            traits=["pragmatic", "skilled", "quality-focused"],
            voice="silent - code speaks",
        ),
        domain=AgentDomain(write_paths=list(code_paths)),
        prompt_template=(
            "You translate vision into working software.\n"
            "You read specifications and implement them.\n"
            "Your code is clean, tested, and maintainable."
        ),
    )


def _orchestrator(agent_id: str, domain_path: str) -> AgentConfig:
    return AgentConfig(
        id=agent_id,
        persona=AgentPersona(
            name="Orchestrator",
            role="Meta-coordinator and decision executor",
            traits=["calm", "decisive", "egoless"],
            voice="clinical and summary-oriented",
        ),
        domain=AgentDomain(write_paths=[domain_path]),
        prompt_template=(
            "You synthesize outputs from all other agents.\n"
            "You prioritize, reject, and schedule work.\n"
            "You have no creative authority, only execution power."
        ),
    )


# Ready-made personas for common agent roles
AGENT_TEMPLATES = {
    "founder": _founder,
    "architect": _architect,
    "builder": _builder,
    "orchestrator": _orchestrator,
}
