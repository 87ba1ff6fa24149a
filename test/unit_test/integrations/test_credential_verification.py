from __future__ import annotations

import httpx
import pytest

from automation_engine.integrations import PlatformDiscovery
from automation_engine.integrations.verification import check_platform_credentials

pytestmark = pytest.mark.asyncio

_DOC = {
    "openapi": "3.0.0",
    "servers": [{"url": "https://api.acme.com"}],
    "paths": {"/users/{id}": {"get": {}}, "/account": {"get": {}}},
}


def _handler(test_status: int, body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == "https://api.acme.com/openapi.json":
            return httpx.Response(200, json=_DOC)
        if request.url.path == "/account":
            return httpx.Response(test_status, json=body or {})
        return httpx.Response(404)

    return handler


async def _check(handler, credentials=None):
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        return await check_platform_credentials(
            "acme",
            credentials or {"token": "t"},
            discovery=PlatformDiscovery(client=client),
            client=client,
        )


async def test_valid_credentials() -> None:
    result = await _check(_handler(200, {"name": "acme-account"}))

    assert result.success is True
    assert result.status_code == 200
    assert result.endpoint_tested == "GET /account"
    assert result.details == {"name": "acme-account"}
    assert result.error_type is None


@pytest.mark.parametrize("status", [401, 403])
async def test_rejected_credentials(status: int) -> None:
    result = await _check(_handler(status))

    assert result.success is False
    assert result.status_code == status
    assert result.error_type == "authentication_error"


async def test_other_errors_are_api_errors() -> None:
    result = await _check(_handler(500, {"error": "boom"}))

    assert result.error_type == "api_error"
    assert "boom" in result.details["body"]


async def test_unreachable_platform() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    result = await _check(handler)

    assert result.success is False
    assert result.error_type == "connection_error"
    assert result.status_code is None
    assert result.endpoint_tested == "GET /me"


async def test_fallback_platform_tests_me_endpoint() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(f"{request.method} {request.url}")
        if request.url.path == "/me":
            assert request.headers["Authorization"] == "Bearer tok"
            return httpx.Response(200, json={"id": "me"})
        return httpx.Response(404)

    result = await _check(handler, {"access_token": "tok"})

    assert result.success is True
    assert seen[-1] == "GET https://api.acme.com/me"


@pytest.mark.parametrize("platform", ["!!!", "   "])
async def test_invalid_platform_name_is_reported_not_raised(platform: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request to {request.url}")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await check_platform_credentials(
            platform,
            {"token": "t"},
            discovery=PlatformDiscovery(client=client),
            client=client,
        )

    assert result.success is False
    assert result.error_type == "api_error"
    assert result.platform == platform
    assert result.endpoint_tested == ""
