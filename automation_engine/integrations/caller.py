from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

import httpx

from .auth import DEFAULT_USER_AGENT, build_auth
from .discovery import PlatformDiscovery
from .errors import APICallFailure, EndpointNotFound
from .identifiers import PlatformName
from .models import EndpointSpec, PlatformConfig

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

_PATH_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


@dataclass(frozen=True)
class PreparedRequest:
    method: str
    url: str
    params: Dict[str, Any]
    json_body: Optional[Dict[str, Any]]


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def prepare_request(
    config: PlatformConfig,
    endpoint: EndpointSpec,
    parameters: Mapping[str, Any],
    *,
    exclude_path_params_from_body: bool = True,
) -> PreparedRequest:
    """Substitute path placeholders and split parameters into query or body.

    Placeholder values are URL-encoded. ``GET``, ``DELETE`` and other
    body-less methods send the remaining parameters as the query string;
    ``POST``, ``PUT`` and ``PATCH`` send them as a JSON body.
    """
    consumed: set[str] = set()

    def _substitute(match: re.Match) -> str:
        key = match.group(1)
        if key in parameters and parameters[key] is not None:
            consumed.add(key)
            return quote(str(parameters[key]), safe="")
        return match.group(0)

    path = _PATH_PLACEHOLDER.sub(_substitute, endpoint.path)
    url = f"{config.base_url.rstrip('/')}/{path.lstrip('/')}"
    method = endpoint.method.upper()

    if method in BODY_METHODS:
        body = {
            key: value
            for key, value in parameters.items()
            if not (exclude_path_params_from_body and key in consumed)
        }
        return PreparedRequest(method=method, url=url, params={}, json_body=body)

    params = {key: _query_value(value) for key, value in parameters.items() if key not in consumed and value is not None}
    return PreparedRequest(method=method, url=url, params=params, json_body=None)


def parse_response_body(response: httpx.Response) -> Any:
    """Decode a successful response: JSON when possible, otherwise ``{"raw": text}``."""
    text = response.text
    if not text.strip():
        return {}
    try:
        return response.json()
    except ValueError:
        return {"raw": text}


class UniversalApiCaller:
    """
    Call any platform endpoint by name.

    The caller asks :class:`PlatformDiscovery` for the platform's config,
    resolves the endpoint (falling back to ``universal_call``), builds auth
    from the credential bundle and performs one HTTP request. Non-2xx answers
    and transport errors are raised as :class:`APICallFailure`.
    """

    def __init__(
        self,
        *,
        discovery: PlatformDiscovery,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        error_body_limit: int = 500,
        exclude_path_params_from_body: bool = True,
    ) -> None:
        self._discovery = discovery
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(follow_redirects=True)
        self._timeout = timeout
        self._user_agent = user_agent
        self._error_body_limit = error_body_limit
        self._exclude_path_params_from_body = exclude_path_params_from_body
        self._logger = logging.getLogger(__name__)

    async def __aenter__(self) -> "UniversalApiCaller":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def call(
        self,
        platform: str,
        endpoint_name: str,
        parameters: Optional[Mapping[str, Any]],
        credentials: Optional[Mapping[str, Any]],
    ) -> Any:
        """Invoke ``endpoint_name`` on ``platform`` and return the decoded body.

        Raises:
            EndpointNotFound: neither the endpoint nor ``universal_call`` is known.
            APICallFailure: transport error or non-2xx response.
        """
        name = PlatformName(platform)
        config = await self._discovery.discover(name)
        endpoint = config.resolve_endpoint(endpoint_name)
        if endpoint is None:
            raise EndpointNotFound(name, endpoint_name)

        request = prepare_request(
            config,
            endpoint,
            dict(parameters or {}),
            exclude_path_params_from_body=self._exclude_path_params_from_body,
        )
        auth = build_auth(config.auth_config, credentials, user_agent=self._user_agent)
        params = {**request.params, **auth.query_params}

        self._logger.debug("UniversalApiCaller.call: %s %s (%s.%s)", request.method, request.url, name, endpoint_name)
        try:
            response = await self._http.request(
                request.method,
                request.url,
                params=params or None,
                json=request.json_body,
                headers=auth.headers,
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            raise APICallFailure(
                f"Request to {name}.{endpoint_name} failed: {e.__class__.__name__}: {e}",
                platform=name,
                endpoint=endpoint_name,
            ) from e

        if not response.is_success:
            body = response.text[: self._error_body_limit]
            raise APICallFailure(
                f"API call failed: {response.status_code} {response.reason_phrase} - {body}",
                platform=name,
                endpoint=endpoint_name,
                status_code=response.status_code,
                status_text=response.reason_phrase,
                body=body,
            )

        self._logger.debug("UniversalApiCaller.call: %s.%s answered %d", name, endpoint_name, response.status_code)
        return parse_response_body(response)
