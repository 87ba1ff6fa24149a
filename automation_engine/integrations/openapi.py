"""Translate OpenAPI 3 / Swagger 2 documents into a :class:`PlatformConfig`.

Only the parts the universal caller needs are read: the server base URL, the
first declared security scheme and one endpoint per path/method pair. Endpoint
names are derived from the method and path (``POST /chat.postMessage`` becomes
``post_chat_postmessage``); when an operation declares an ``operationId`` its
snake_case form is registered as an alias as well (``chat_post_message``).
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urljoin

from .identifiers import PlatformName
from .models import AuthConfig, AuthLocation, AuthType, EndpointSpec, PlatformConfig

HTTP_METHODS = ("get", "put", "post", "delete", "patch", "head", "options")

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_PATH_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")
_SERVER_VARIABLE = re.compile(r"\{([^{}]+)\}")


def fallback_base_url(platform: PlatformName) -> str:
    return f"https://api.{platform.host_label}.com"


def endpoint_name(method: str, path: str) -> str:
    """Derive the canonical endpoint key for a method/path pair."""
    slug = _NON_ALNUM.sub("_", path).strip("_").lower()
    return f"{method.lower()}_{slug}" if slug else method.lower()


def operation_alias(operation_id: Any) -> Optional[str]:
    if not isinstance(operation_id, str) or not operation_id.strip():
        return None
    snake = _CAMEL_BOUNDARY.sub("_", operation_id.strip())
    alias = _NON_ALNUM.sub("_", snake).strip("_").lower()
    return alias or None


def path_placeholders(path: str) -> List[str]:
    return _PATH_PLACEHOLDER.findall(path)


def parse_openapi_document(platform: PlatformName, document: Dict[str, Any], *, spec_url: str) -> PlatformConfig:
    """Build a platform config from a parsed OpenAPI/Swagger document.

    Raises:
        ValueError: the document is not a JSON object.
    """
    if not isinstance(document, dict):
        raise ValueError("OpenAPI document must be a JSON object")

    endpoints = _collect_endpoints(document)
    return PlatformConfig(
        name=str(platform),
        base_url=_base_url(platform, document, spec_url),
        auth_config=_auth_config(document),
        endpoints=endpoints,
        test_endpoint=_pick_test_endpoint(endpoints.values()),
        source="openapi",
        spec_url=spec_url,
    )


def _base_url(platform: PlatformName, document: Dict[str, Any], spec_url: str) -> str:
    servers = document.get("servers")
    if isinstance(servers, list) and servers and isinstance(servers[0], dict) and servers[0].get("url"):
        server = servers[0]
        url = _expand_server_variables(str(server["url"]), server.get("variables"))
        return urljoin(spec_url, url).rstrip("/")

    host = document.get("host")
    if isinstance(host, str) and host:
        schemes = document.get("schemes")
        scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
        return f"{scheme}://{host}{document.get('basePath') or ''}".rstrip("/")
    base_path = document.get("basePath")
    if isinstance(base_path, str) and base_path:
        return urljoin(spec_url, base_path).rstrip("/")

    return fallback_base_url(platform)


def _expand_server_variables(url: str, variables: Any) -> str:
    if not isinstance(variables, dict):
        return url

    def _replace(match: re.Match) -> str:
        spec = variables.get(match.group(1))
        if isinstance(spec, dict) and spec.get("default") is not None:
            return str(spec["default"])
        return match.group(0)

    return _SERVER_VARIABLE.sub(_replace, url)


def _security_schemes(document: Dict[str, Any]) -> Dict[str, Any]:
    components = document.get("components")
    if isinstance(components, dict) and isinstance(components.get("securitySchemes"), dict):
        return components["securitySchemes"]
    if isinstance(document.get("securityDefinitions"), dict):
        return document["securityDefinitions"]
    return {}


def _auth_config(document: Dict[str, Any]) -> AuthConfig:
    for scheme in _security_schemes(document).values():
        if not isinstance(scheme, dict):
            continue
        kind = str(scheme.get("type", "")).lower()
        if kind == "apikey":
            location = AuthLocation.query if scheme.get("in") == "query" else AuthLocation.header
            return AuthConfig(
                type=AuthType.api_key,
                location=location,
                parameter_name=str(scheme.get("name") or "X-API-Key"),
                format="{api_key}",
            )
        if kind == "basic" or (kind == "http" and str(scheme.get("scheme", "")).lower() == "basic"):
            return AuthConfig(type=AuthType.basic, format="Basic {token}")
        # http bearer, oauth2 and openIdConnect all end up as a bearer token.
        return AuthConfig()
    return AuthConfig()


def _collect_endpoints(document: Dict[str, Any]) -> Dict[str, EndpointSpec]:
    paths = document.get("paths")
    if not isinstance(paths, dict):
        return {}

    endpoints: Dict[str, EndpointSpec] = {}
    aliases: Dict[str, EndpointSpec] = {}
    for path, item in paths.items():
        if not isinstance(item, dict):
            continue
        shared = item.get("parameters") if isinstance(item.get("parameters"), list) else []
        for method, operation in item.items():
            if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            own = operation.get("parameters") if isinstance(operation.get("parameters"), list) else []
            required, optional = _split_parameters(path, [*shared, *own], operation.get("requestBody"))
            spec = EndpointSpec(method=method, path=path, required_params=required, optional_params=optional)
            endpoints[endpoint_name(method, path)] = spec
            alias = operation_alias(operation.get("operationId"))
            if alias:
                aliases.setdefault(alias, spec)

    for alias, spec in aliases.items():
        endpoints.setdefault(alias, spec)
    return endpoints


def _split_parameters(path: str, parameters: Iterable[Any], request_body: Any) -> Tuple[List[str], List[str]]:
    required: List[str] = []
    optional: List[str] = []

    def _add(name: str, is_required: bool) -> None:
        if name in required or name in optional:
            return
        (required if is_required else optional).append(name)

    for name in path_placeholders(path):
        _add(name, True)

    for parameter in parameters:
        if not isinstance(parameter, dict):
            continue
        if parameter.get("in") == "body":
            # Swagger 2 body parameter: its schema properties are the real fields.
            _add_schema_properties(parameter.get("schema"), _add)
            continue
        name = parameter.get("name")
        if isinstance(name, str) and name:
            _add(name, bool(parameter.get("required")) or parameter.get("in") == "path")

    if isinstance(request_body, dict):
        content = request_body.get("content")
        if isinstance(content, dict):
            media = content.get("application/json") or next(iter(content.values()), None)
            if isinstance(media, dict):
                _add_schema_properties(media.get("schema"), _add)

    return required, optional


def _add_schema_properties(schema: Any, add) -> None:
    if not isinstance(schema, dict) or not isinstance(schema.get("properties"), dict):
        return
    required_fields = schema.get("required") if isinstance(schema.get("required"), list) else []
    for name in schema["properties"]:
        add(str(name), name in required_fields)


def _pick_test_endpoint(endpoints: Iterable[EndpointSpec]) -> EndpointSpec:
    for spec in endpoints:
        if spec.method == "GET" and not spec.required_params and not path_placeholders(spec.path):
            return spec
    return EndpointSpec(method="GET", path="/me")
