"""System-wide configuration models."""

from dataclasses import dataclass, field

from .agents import AgentConfig

DEFAULT_BLOCKING_LABELS = ["do-not-merge", "wip", "blocked"]


@dataclass
class AutoMergeConfig:
    """Auto-merge policy."""

    enabled: bool = True
    required_checks: list[str] = field(default_factory=list)
    merge_delay_ms: int = 60000
    blocking_labels: list[str] = field(
        default_factory=lambda: list(DEFAULT_BLOCKING_LABELS)
    )


@dataclass
class SystemConfig:
    """Fully populated system configuration."""

    owner: str
    repo: str
    default_branch: str = "main"
    messaging_path: str = ".agents/messages"
    decisions_path: str = ".agents/decisions"
    auto_merge: AutoMergeConfig = field(default_factory=AutoMergeConfig)
    agents: list[AgentConfig] = field(default_factory=list)
