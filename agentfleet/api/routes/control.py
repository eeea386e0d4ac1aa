"""Control API routes."""

from fastapi import APIRouter, HTTPException

from ...app import IApplication
from ...models import RunOptions
from ..schemas import RunRequest, RunResponse, StatusResponse, run_to_response


def create_control_router(app: IApplication) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/run", response_model=RunResponse)
    async def run_coordinator(request: RunRequest) -> RunResponse:
        """Run one coordination cycle."""
        try:
            result = await app.coordinator.run(
                RunOptions(
                    agents=request.agents,
                    skip_pr_processing=request.skip_pr_processing,
                    dry_run=request.dry_run,
                )
            )
            return run_to_response(result)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/stop", response_model=StatusResponse)
    async def stop_coordinator() -> dict:
        """Stop the coordinator."""
        try:
            await app.coordinator.stop()
            return {"status": "ok"}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
