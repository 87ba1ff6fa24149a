"""
Automation Runs API Endpoints.

Read a run's status and live progress, and cancel runs that are in flight.
"""

from fastapi import APIRouter, HTTPException

from automation_engine.core.logging_config import get_logger
from automation_engine.schemas.domain import AutomationRun
from automation_engine.server.schemas import CancelResponse
from automation_engine.server.services.deps import AutomationServiceDep

logger = get_logger(__name__)
router = APIRouter()


@router.get(
    "/{run_id}",
    response_model=AutomationRun,
    summary="Get Run Details",
    description="Retrieve the status, progress log, result or error of a run.",
    response_description="The automation run object.",
    responses={404: {"description": "Run not found"}},
)
async def get_run(run_id: str, service: AutomationServiceDep):
    """
    Get run details.

    ``progress`` holds the latest snapshot: current step, total steps, log
    entries and variables.
    """
    run = await service.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    return run


@router.post(
    "/{run_id}/cancel",
    response_model=CancelResponse,
    summary="Cancel Run",
    description="Request cancellation of a run executing in this process.",
    response_description="Whether a running execution was signalled.",
    responses={404: {"description": "Run not found"}},
)
async def cancel_run(run_id: str, service: AutomationServiceDep):
    """
    Cancel an active run.

    The run stops before its next step (or during a delay) and is marked failed.
    """
    run = await service.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    cancelled = service.cancel(run_id)
    logger.info(f"Cancel requested for run {run_id}: signalled={cancelled}")
    return CancelResponse(run_id=run_id, cancelled=cancelled)
