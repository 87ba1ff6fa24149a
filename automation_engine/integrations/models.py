from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import Field, field_validator

from automation_engine.schemas.base import BaseSchema

UNIVERSAL_ENDPOINT = "universal_call"


class AuthType(str, Enum):
    bearer = "bearer"
    api_key = "api_key"
    basic = "basic"


class AuthLocation(str, Enum):
    header = "header"
    query = "query"


class AuthConfig(BaseSchema):
    """How a platform expects credentials to be presented.

    ``format`` is a template for the credential value; the placeholders
    ``{token}``, ``{access_token}``, ``{api_key}`` and ``{key}`` are replaced
    with the selected secret.
    """

    type: AuthType = AuthType.bearer
    location: AuthLocation = AuthLocation.header
    parameter_name: str = "Authorization"
    format: str = "Bearer {token}"


class EndpointSpec(BaseSchema):
    method: str
    path: str
    required_params: List[str] = Field(default_factory=list)
    optional_params: List[str] = Field(default_factory=list)

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.strip().upper()


DEFAULT_TEST_ENDPOINT = EndpointSpec(method="GET", path="/me")


class PlatformConfig(BaseSchema):
    """Everything needed to call a platform: base URL, auth scheme and endpoints."""

    name: str
    base_url: str
    auth_config: AuthConfig = Field(default_factory=AuthConfig)
    endpoints: Dict[str, EndpointSpec] = Field(default_factory=dict)
    test_endpoint: EndpointSpec = Field(default_factory=lambda: DEFAULT_TEST_ENDPOINT.model_copy())
    source: Literal["openapi", "fallback"] = "fallback"
    spec_url: Optional[str] = None

    def resolve_endpoint(self, name: str) -> Optional[EndpointSpec]:
        """Look up ``name``, falling back to the ``universal_call`` endpoint."""
        endpoint = self.endpoints.get(name)
        if endpoint is None:
            endpoint = self.endpoints.get(UNIVERSAL_ENDPOINT)
        return endpoint
