"""PR decision engine: CI status to merge/close/wait/review."""

from datetime import datetime, timezone
from typing import Iterable

from ..logging_config import get_logger
from ..models import CIStatus, PRAction, PRDecision
from .client import ISourceControlGateway

logger = get_logger(__name__)

DEFAULT_MERGE_METHOD = "squash"
WAIT_FOR_CI = "CI checks must complete"


class PRNotFoundError(LookupError):
    """Raised when a PR number does not resolve through the gateway."""

    def __init__(self, pr_number: int):
        super().__init__(f"PR #{pr_number} not found")
        self.pr_number = pr_number


def decision_for_ci_status(pr_number: int, ci_status: CIStatus) -> PRDecision:
    """Map a CI status to a decision."""
    now = datetime.now(timezone.utc)

    if ci_status == CIStatus.SUCCESS:
        return PRDecision(
            pr_number=pr_number,
            action=PRAction.MERGE,
            reason="all CI checks passed",
            timestamp=now,
        )
    if ci_status in (CIStatus.FAILURE, CIStatus.ERROR):
        return PRDecision(
            pr_number=pr_number,
            action=PRAction.REVIEW,
            reason=f"CI status: {CIStatus(ci_status).value}",
            timestamp=now,
        )
    return PRDecision(
        pr_number=pr_number,
        action=PRAction.WAIT,
        reason="CI checks still pending",
        timestamp=now,
        wait_conditions=[WAIT_FOR_CI],
    )


class PRManager:
    """Decides, records and executes actions for pull requests."""

    def __init__(
        self,
        client: ISourceControlGateway,
        merge_method: str = DEFAULT_MERGE_METHOD,
    ):
        self._client = client
        self._merge_method = merge_method
        self._decisions: dict[int, PRDecision] = {}

    def record_decision(self, decision: PRDecision) -> None:
        """Store a decision, replacing any earlier one for the same PR."""
        self._decisions[decision.pr_number] = decision

    def get_decision(self, pr_number: int) -> PRDecision | None:
        """Last decision for a PR."""
        return self._decisions.get(pr_number)

    def decisions(self) -> list[PRDecision]:
        """Latest decision for every PR seen so far."""
        return list(self._decisions.values())

    async def decide(self, pr_number: int) -> PRDecision:
        """
        Decide what to do with a PR based on its CI status.

        Raises:
            PRNotFoundError: If the gateway does not know the PR
        """
        pr = await self._client.get_pr(pr_number)
        if pr is None:
            raise PRNotFoundError(pr_number)

        ci_status = await self._client.get_ci_status(pr_number)
        decision = decision_for_ci_status(pr_number, ci_status)
        self.record_decision(decision)

        logger.info(
            "PR #%s: %s (%s)",
            pr_number,
            decision.action.value,
            decision.reason,
            extra={"context": {"pr_number": pr_number, "ci_status": ci_status}},
        )
        return decision

    async def execute_decision(self, decision: PRDecision) -> bool:
        """Apply a decision through the gateway; wait/review have no effect."""
        if decision.action == PRAction.MERGE:
            return await self._client.merge_pr(decision.pr_number, self._merge_method)
        if decision.action == PRAction.CLOSE:
            return await self._client.close_pr(decision.pr_number, decision.reason)
        if decision.action in (PRAction.WAIT, PRAction.REVIEW):
            return True
        return False

    async def auto_merge_ready(
        self,
        required_checks: list[str],
        blocking_labels: Iterable[str] = (),
        execute: bool = True,
    ) -> list[PRDecision]:
        """
        Merge open PRs that opted into auto-merge and passed required checks.

        PRs without auto-merge, carrying a blocking label, or with failing
        checks are skipped silently.

        Args:
            required_checks: Check names that must have passed
            blocking_labels: Labels that exclude a PR from auto-merge
            execute: When False, decisions are made and recorded but not merged

        Returns:
            One merge decision per qualifying PR
        """
        blocking = set(blocking_labels)
        decisions = []

        for pr in await self._client.list_open_prs():
            if not pr.auto_merge_enabled:
                continue
            if blocking.intersection(pr.labels):
                logger.info("PR #%s blocked from auto-merge by labels", pr.number)
                continue
            if not await self._client.all_checks_passed(pr.number, required_checks):
                continue

            decision = PRDecision(
                pr_number=pr.number,
                action=PRAction.MERGE,
                reason="auto-merge: all required checks passed",
                timestamp=datetime.now(timezone.utc),
            )
            self.record_decision(decision)
            if execute:
                await self.execute_decision(decision)
            decisions.append(decision)

        return decisions
