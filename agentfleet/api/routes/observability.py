"""Observability API routes."""

from fastapi import APIRouter, HTTPException, Query

from ...app import IApplication
from ..schemas import (
    CoordinatorStatusResponse,
    DecisionResponse,
    RunResponse,
    decision_to_response,
    run_to_response,
    status_to_response,
)


def create_observability_router(app: IApplication) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/status", response_model=CoordinatorStatusResponse)
    async def get_status() -> CoordinatorStatusResponse:
        """Coordinator state and agent statuses."""
        return status_to_response(app.coordinator.get_status())

    @router.get("/runs", response_model=list[RunResponse])
    async def get_runs(limit: int = Query(100, ge=1, le=1000)) -> list[RunResponse]:
        """Run results of this process, newest first."""
        history = app.coordinator.get_run_history()
        return [run_to_response(r) for r in reversed(history[-limit:])]

    @router.get("/decisions", response_model=list[DecisionResponse])
    async def get_decisions(
        pr_number: int | None = Query(None, description="Filter by PR number"),
        limit: int = Query(100, ge=1, le=1000),
    ) -> list[DecisionResponse]:
        """Decision log, newest first."""
        try:
            decisions = await app.storage.get_decisions(pr_number=pr_number, limit=limit)
            return [decision_to_response(d) for d in decisions]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/decisions/{pr_number}", response_model=DecisionResponse)
    async def get_latest_decision(pr_number: int) -> DecisionResponse:
        """Latest decision for a PR."""
        decision = app.coordinator.pr_manager.get_decision(pr_number)
        if decision is None:
            raise HTTPException(status_code=404, detail=f"No decision for PR #{pr_number}")
        return decision_to_response(decision)

    return router
