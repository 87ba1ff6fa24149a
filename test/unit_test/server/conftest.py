from typing import AsyncGenerator

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


def platform_handler(request: httpx.Request) -> httpx.Response:
    """Outbound platform traffic: no API descriptions, ``/me`` accepts one token."""
    if request.url.path == "/me":
        if request.headers.get("Authorization") == "Bearer good":
            return httpx.Response(200, json={"id": "me"})
        return httpx.Response(401, text="invalid_auth")
    if request.method == "GET":
        return httpx.Response(404)
    return httpx.Response(200, json={"ok": True})


@pytest_asyncio.fixture
async def service(fake_repos):
    from automation_engine.service import AutomationService

    return AutomationService(
        deps=fake_repos.service_deps(),
        http_client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(platform_handler)),
    )


@pytest_asyncio.fixture(name="client")
async def client_fixture(service) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with the automation service overridden."""
    from automation_engine.server.main import app
    from automation_engine.server.services.deps import get_automation_service

    app.dependency_overrides[get_automation_service] = lambda: service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()
