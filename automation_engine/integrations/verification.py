"""Check a credential bundle against a platform without running a blueprint.

The platform is discovered, its test endpoint (the first parameter-free
``GET`` found in its API description, else ``GET /me``) is called with the
credentials and the answer is classified.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from automation_engine.schemas.base import BaseSchema

from .auth import DEFAULT_USER_AGENT, build_auth
from .caller import parse_response_body
from .discovery import PlatformDiscovery
from .errors import InvalidPlatformName
from .identifiers import PlatformName

logger = logging.getLogger(__name__)


class CredentialCheckResult(BaseSchema):
    success: bool
    message: str
    platform: str
    endpoint_tested: str
    status_code: Optional[int] = None
    error_type: Optional[str] = None
    details: Any = None


async def check_platform_credentials(
    platform: str,
    credentials: Mapping[str, Any],
    *,
    discovery: PlatformDiscovery,
    client: httpx.AsyncClient,
    timeout: float = 30.0,
    user_agent: str = DEFAULT_USER_AGENT,
    error_body_limit: int = 500,
) -> CredentialCheckResult:
    """Call the platform's test endpoint with ``credentials``.

    ``error_type`` is ``authentication_error`` for 401/403 answers,
    ``api_error`` for any other non-2xx answer and ``connection_error`` when no
    answer arrived. An invalid platform name is reported as an ``api_error``.
    """
    try:
        name = PlatformName(platform)
    except InvalidPlatformName as e:
        return CredentialCheckResult(
            success=False,
            message=str(e),
            platform=str(platform),
            endpoint_tested="",
            error_type="api_error",
        )
    config = await discovery.discover(name)
    endpoint = config.test_endpoint
    url = f"{config.base_url.rstrip('/')}/{endpoint.path.lstrip('/')}"
    tested = f"{endpoint.method} {endpoint.path}"
    auth = build_auth(config.auth_config, credentials, user_agent=user_agent)

    logger.debug("check_platform_credentials: %s %s", endpoint.method, url)
    try:
        response = await client.request(
            endpoint.method,
            url,
            params=auth.query_params or None,
            headers=auth.headers,
            timeout=timeout,
        )
    except httpx.HTTPError as e:
        return CredentialCheckResult(
            success=False,
            message=f"Could not reach {name}: {e.__class__.__name__}",
            platform=name,
            endpoint_tested=tested,
            error_type="connection_error",
        )

    if response.is_success:
        return CredentialCheckResult(
            success=True,
            message=f"Credentials for {name} are valid",
            platform=name,
            endpoint_tested=tested,
            status_code=response.status_code,
            details=parse_response_body(response),
        )

    error_type = "authentication_error" if response.status_code in (401, 403) else "api_error"
    details: Dict[str, Any] = {"body": response.text[:error_body_limit]}
    return CredentialCheckResult(
        success=False,
        message=f"{name} rejected the request: {response.status_code} {response.reason_phrase}",
        platform=name,
        endpoint_tested=tested,
        status_code=response.status_code,
        error_type=error_type,
        details=details,
    )
