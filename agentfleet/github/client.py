"""GitHub REST client implementing the source-control gateway."""

from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from ..logging_config import get_logger
from ..models import CIStatus, PRComment, PRInfo, PRStatus

logger = get_logger(__name__)

GITHUB_API_URL = "https://api.github.com"
AGENT_LABEL_PREFIX = "agent:"
AUTO_MERGE_LABEL = "auto-merge"

_FAILED_CONCLUSIONS = {"failure", "timed_out", "action_required", "startup_failure"}


class ISourceControlGateway(Protocol):
    """PR/CI operations the coordinator depends on."""

    async def list_open_prs(self) -> list[PRInfo]:
        """List open pull requests."""
        ...

    async def get_pr(self, pr_number: int) -> PRInfo | None:
        """Get a pull request, or None if it does not exist."""
        ...

    async def get_ci_status(self, pr_number: int) -> CIStatus:
        """Aggregated CI status of the PR head commit."""
        ...

    async def all_checks_passed(
        self, pr_number: int, required_checks: list[str]
    ) -> bool:
        """Check that every required check has passed."""
        ...

    async def merge_pr(self, pr_number: int, method: str = "squash") -> bool:
        """Merge a pull request."""
        ...

    async def close_pr(self, pr_number: int, comment: str | None = None) -> bool:
        """Close a pull request without merging."""
        ...


class GitHubClient:
    """GitHub REST API client for PR and CI management."""

    def __init__(
        self,
        token: str | None,
        owner: str,
        repo: str,
        base_url: str = GITHUB_API_URL,
        client: httpx.AsyncClient | None = None,
    ):
        self._owner = owner
        self._repo = repo
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = client or httpx.AsyncClient(
            base_url=base_url, headers=headers, timeout=30.0
        )

    @property
    def repo_path(self) -> str:
        return f"/repos/{self._owner}/{self._repo}"

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await self._client.request(method, f"{self.repo_path}{path}", **kwargs)
        logger.debug("%s %s -> %s", method, path, response.status_code)
        return response

    # Pull requests
    async def create_pr(
        self,
        title: str,
        body: str,
        head: str,
        base: str,
        agent_id: str | None = None,
        labels: list[str] | None = None,
        auto_merge: bool = False,
    ) -> PRInfo:
        """Open a pull request, labelling it with its agent and auto-merge opt-in."""
        response = await self._request(
            "POST",
            "/pulls",
            json={"title": title, "body": body, "head": head, "base": base},
        )
        response.raise_for_status()
        data = response.json()

        pr_labels = list(labels or [])
        if agent_id:
            pr_labels.append(f"{AGENT_LABEL_PREFIX}{agent_id}")
        if auto_merge:
            pr_labels.append(AUTO_MERGE_LABEL)
        if pr_labels:
            await self.add_labels(data["number"], pr_labels)
            data["labels"] = [{"name": name} for name in pr_labels]

        logger.info("Created PR #%s from %s", data["number"], head)
        return self._to_pr_info(data, CIStatus.PENDING)

    async def get_pr(self, pr_number: int) -> PRInfo | None:
        data = await self._get_pr_data(pr_number)
        if data is None:
            return None
        ci_status = await self._ci_status_for_sha(data["head"]["sha"])
        return self._to_pr_info(data, ci_status)

    async def list_open_prs(self) -> list[PRInfo]:
        response = await self._request(
            "GET", "/pulls", params={"state": "open", "per_page": 100}
        )
        response.raise_for_status()

        prs = []
        for data in response.json():
            ci_status = await self._ci_status_for_sha(data["head"]["sha"])
            prs.append(self._to_pr_info(data, ci_status))
        return prs

    async def list_prs_by_agent(self, agent_id: str) -> list[PRInfo]:
        """Open PRs labelled as created by agent_id."""
        return [pr for pr in await self.list_open_prs() if pr.agent_id == agent_id]

    async def merge_pr(self, pr_number: int, method: str = "squash") -> bool:
        response = await self._request(
            "PUT", f"/pulls/{pr_number}/merge", json={"merge_method": method}
        )
        # 405: not mergeable, 409: head changed
        if response.status_code in (405, 409):
            logger.warning(
                "PR #%s could not be merged: %s", pr_number, response.status_code
            )
            return False
        response.raise_for_status()
        merged = bool(response.json().get("merged", False))
        logger.info("Merge PR #%s (%s): %s", pr_number, method, merged)
        return merged

    async def close_pr(self, pr_number: int, comment: str | None = None) -> bool:
        if comment:
            await self.add_comment(pr_number, comment)
        response = await self._request(
            "PATCH", f"/pulls/{pr_number}", json={"state": "closed"}
        )
        response.raise_for_status()
        logger.info("Closed PR #%s", pr_number)
        return response.json().get("state") == "closed"

    # CI
    async def get_ci_status(self, pr_number: int) -> CIStatus:
        data = await self._get_pr_data(pr_number)
        if data is None:
            return CIStatus.PENDING
        return await self._ci_status_for_sha(data["head"]["sha"])

    async def all_checks_passed(
        self, pr_number: int, required_checks: list[str]
    ) -> bool:
        """
        Check that each required check has a successful completed run.

        With no required checks this falls back to overall CI success.
        """
        data = await self._get_pr_data(pr_number)
        if data is None:
            return False
        sha = data["head"]["sha"]

        if not required_checks:
            return await self._ci_status_for_sha(sha) == CIStatus.SUCCESS

        runs = await self._check_runs(sha)
        passed = {
            run["name"]
            for run in runs
            if run.get("status") == "completed" and run.get("conclusion") == "success"
        }
        return all(check in passed for check in required_checks)

    # Labels and comments
    async def add_labels(self, pr_number: int, labels: list[str]) -> None:
        response = await self._request(
            "POST", f"/issues/{pr_number}/labels", json={"labels": labels}
        )
        response.raise_for_status()

    async def remove_labels(self, pr_number: int, labels: list[str]) -> None:
        for label in labels:
            response = await self._request(
                "DELETE", f"/issues/{pr_number}/labels/{label}"
            )
            if response.status_code != 404:
                response.raise_for_status()

    async def add_comment(self, pr_number: int, body: str) -> None:
        response = await self._request(
            "POST", f"/issues/{pr_number}/comments", json={"body": body}
        )
        response.raise_for_status()

    async def get_comments(self, pr_number: int) -> list[PRComment]:
        response = await self._request("GET", f"/issues/{pr_number}/comments")
        response.raise_for_status()
        return [
            PRComment(
                id=item["id"],
                body=item.get("body") or "",
                author=(item.get("user") or {}).get("login", ""),
                created_at=_parse_datetime(item["created_at"]),
            )
            for item in response.json()
        ]

    # Branches
    async def branch_exists(self, branch: str) -> bool:
        response = await self._request("GET", f"/branches/{branch}")
        if response.status_code == 404:
            return False
        response.raise_for_status()
        return True

    async def create_branch(self, name: str, from_ref: str) -> None:
        """Create branch name pointing at the head of from_ref."""
        response = await self._request("GET", f"/git/ref/heads/{from_ref}")
        response.raise_for_status()
        sha = response.json()["object"]["sha"]

        response = await self._request(
            "POST", "/git/refs", json={"ref": f"refs/heads/{name}", "sha": sha}
        )
        response.raise_for_status()

    async def delete_branch(self, name: str) -> None:
        response = await self._request("DELETE", f"/git/refs/heads/{name}")
        if response.status_code != 404:
            response.raise_for_status()

    # Helpers
    async def _get_pr_data(self, pr_number: int) -> dict | None:
        response = await self._request("GET", f"/pulls/{pr_number}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    async def _check_runs(self, sha: str) -> list[dict]:
        response = await self._request(
            "GET", f"/commits/{sha}/check-runs", params={"per_page": 100}
        )
        response.raise_for_status()
        return response.json().get("check_runs", [])

    async def _ci_status_for_sha(self, sha: str) -> CIStatus:
        runs = await self._check_runs(sha)
        if runs:
            return _aggregate_check_runs(runs)

        # No check runs: fall back to the legacy combined commit status
        response = await self._request("GET", f"/commits/{sha}/status")
        response.raise_for_status()
        state = response.json().get("state", "pending")
        try:
            return CIStatus(state)
        except ValueError:
            return CIStatus.PENDING

    def _to_pr_info(self, data: dict, ci_status: CIStatus) -> PRInfo:
        labels = [label["name"] for label in data.get("labels", [])]
        agent_id = next(
            (
                label[len(AGENT_LABEL_PREFIX):]
                for label in labels
                if label.startswith(AGENT_LABEL_PREFIX)
            ),
            None,
        )

        if data.get("merged_at") or data.get("merged"):
            status = PRStatus.MERGED
        else:
            status = PRStatus(data.get("state", "open"))

        return PRInfo(
            number=data["number"],
            title=data.get("title", ""),
            status=status,
            ci_status=ci_status,
            branch=data["head"]["ref"],
            created_at=_parse_datetime(data["created_at"]),
            updated_at=_parse_datetime(data["updated_at"]),
            url=data.get("html_url", ""),
            auto_merge_enabled=(
                data.get("auto_merge") is not None or AUTO_MERGE_LABEL in labels
            ),
            agent_id=agent_id,
            labels=labels,
        )


def _aggregate_check_runs(runs: list[dict]) -> CIStatus:
    """Reduce check runs to a single CI status."""
    if any(run.get("status") != "completed" for run in runs):
        return CIStatus.PENDING

    conclusions = {run.get("conclusion") for run in runs}
    if conclusions & _FAILED_CONCLUSIONS:
        return CIStatus.FAILURE
    if "cancelled" in conclusions:
        return CIStatus.CANCELLED
    return CIStatus.SUCCESS


def _parse_datetime(value: str) -> datetime:
    """Parse GitHub's ISO-8601 timestamps (trailing Z)."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
