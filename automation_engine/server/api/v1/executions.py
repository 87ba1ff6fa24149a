"""
Execution API Endpoints.

Starts an automation run and waits for its outcome. The run record is created
before any step executes, so its progress can be followed through the runs
endpoints while the request is in flight.
"""

from fastapi import APIRouter

from automation_engine.core.logging_config import get_logger
from automation_engine.server.schemas import ExecutionCreate
from automation_engine.server.services.deps import AutomationServiceDep
from automation_engine.service import ExecutionResult

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=ExecutionResult,
    summary="Execute Automation",
    description="Execute a stored automation blueprint for a user and return the outcome.",
    response_description="The execution result with the run id and final variables or the error.",
)
async def execute_automation(execution_in: ExecutionCreate, service: AutomationServiceDep):
    """
    Execute an automation.

    - **automation_id**: The automation to run.
    - **user_id**: The user whose credentials are used.
    - **trigger_data**: Optional values overlaid on the blueprint variables.

    Execution failures are reported in the body (``success=false``), not as HTTP errors.
    """
    logger.info(f"Executing automation {execution_in.automation_id} for user {execution_in.user_id}")
    result = await service.execute(
        automation_id=execution_in.automation_id,
        user_id=execution_in.user_id,
        trigger_data=execution_in.trigger_data,
    )
    if not result.success:
        logger.warning(f"Automation {execution_in.automation_id} failed: {result.error}")
    return result
