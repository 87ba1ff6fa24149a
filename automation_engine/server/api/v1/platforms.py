"""
Platform API Endpoints.

Inspect the configuration discovered for a platform and test a credential
bundle against it without running an automation.
"""

from fastapi import APIRouter, HTTPException

from automation_engine.core.logging_config import get_logger
from automation_engine.integrations.errors import InvalidPlatformName
from automation_engine.integrations.identifiers import PlatformName
from automation_engine.integrations.models import PlatformConfig
from automation_engine.integrations.verification import CredentialCheckResult
from automation_engine.server.schemas import CredentialCheckRequest
from automation_engine.server.services.deps import AutomationServiceDep

logger = get_logger(__name__)
router = APIRouter()


def _platform_or_422(platform: str) -> PlatformName:
    try:
        return PlatformName(platform)
    except InvalidPlatformName as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.get(
    "/{platform}/config",
    response_model=PlatformConfig,
    summary="Discover Platform",
    description="Discover the platform's API description, or return the generic fallback configuration.",
    response_description="The platform configuration.",
)
async def get_platform_config(platform: str, service: AutomationServiceDep):
    """Discover a platform's configuration."""
    return await service.discover_platform(_platform_or_422(platform))


@router.post(
    "/{platform}/test",
    response_model=CredentialCheckResult,
    summary="Test Platform Credentials",
    description="Call the platform's test endpoint with the given credentials.",
    response_description="The classified outcome of the test call.",
)
async def verify_platform_credentials(platform: str, check_in: CredentialCheckRequest, service: AutomationServiceDep):
    """
    Test a credential bundle.

    ``error_type`` is ``authentication_error``, ``api_error`` or ``connection_error`` on failure.
    """
    name = _platform_or_422(platform)
    result = await service.check_credentials(name, check_in.credentials)
    logger.info(f"Credential test for {name}: success={result.success}")
    return result
