"""Build request headers and query parameters from a credential bundle.

Missing credential fields never raise: the request is simply built without
authentication and the platform decides whether that is acceptable.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional

from .models import AuthConfig, AuthLocation, AuthType

DEFAULT_USER_AGENT = "AutomationEngine-Universal-Integrator/1.0"

_SECRET_PLACEHOLDERS = ("{token}", "{access_token}", "{api_key}", "{key}")


@dataclass(frozen=True)
class AuthMaterial:
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, str] = field(default_factory=dict)


def base_headers(user_agent: str = DEFAULT_USER_AGENT) -> Dict[str, str]:
    return {"Content-Type": "application/json", "User-Agent": user_agent}


def _first_present(credentials: Mapping[str, Any], keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        value = credentials.get(key)
        if value is not None and value != "":
            return str(value)
    return None


def _render(template: str, secret: str) -> str:
    rendered = template
    for placeholder in _SECRET_PLACEHOLDERS:
        rendered = rendered.replace(placeholder, secret)
    return rendered


def build_auth(
    auth_config: AuthConfig,
    credentials: Optional[Mapping[str, Any]],
    *,
    user_agent: str = DEFAULT_USER_AGENT,
) -> AuthMaterial:
    """Return the headers and query parameters that authenticate a request.

    Args:
        auth_config: The platform's auth scheme.
        credentials: The decoded credential bundle for the platform.
        user_agent: Value of the ``User-Agent`` header.

    Returns:
        AuthMaterial with the base headers always present.
    """
    headers = base_headers(user_agent)
    query: Dict[str, str] = {}
    credentials = credentials or {}

    if auth_config.type is AuthType.bearer:
        token = _first_present(credentials, ("access_token", "token", "api_key"))
        if token:
            headers[auth_config.parameter_name or "Authorization"] = _render(auth_config.format or "Bearer {token}", token)
    elif auth_config.type is AuthType.api_key:
        key = _first_present(credentials, ("api_key", "key"))
        if key:
            value = _render(auth_config.format or "{api_key}", key)
            name = auth_config.parameter_name or "X-API-Key"
            if auth_config.location is AuthLocation.query:
                query[name] = value
            else:
                headers[name] = value
    elif auth_config.type is AuthType.basic:
        username = _first_present(credentials, ("username", "email"))
        secret = _first_present(credentials, ("password", "api_key"))
        if username and secret:
            encoded = base64.b64encode(f"{username}:{secret}".encode("utf-8")).decode("ascii")
            headers["Authorization"] = f"Basic {encoded}"

    return AuthMaterial(headers=headers, query_params=query)
