"""Source-control module."""

from .client import GitHubClient, ISourceControlGateway
from .pr_manager import PRManager, PRNotFoundError, decision_for_ci_status

__all__ = [
    "GitHubClient",
    "ISourceControlGateway",
    "PRManager",
    "PRNotFoundError",
    "decision_for_ci_status",
]
