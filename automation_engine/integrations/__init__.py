"""Universal platform integration: discovery, auth, calls and credentials."""

from .auth import AuthMaterial, build_auth
from .caller import UniversalApiCaller
from .credentials import CredentialLoader, decode_credentials
from .discovery import DiscoveryCache, PlatformDiscovery
from .errors import (
    APICallFailure,
    CredentialDecodeError,
    DiscoveryFailure,
    EndpointNotFound,
    InvalidPlatformName,
    MissingCredentials,
)
from .identifiers import PlatformName
from .models import AuthConfig, AuthLocation, AuthType, EndpointSpec, PlatformConfig

__all__ = [
    "APICallFailure",
    "AuthConfig",
    "AuthLocation",
    "AuthMaterial",
    "AuthType",
    "CredentialDecodeError",
    "CredentialLoader",
    "DiscoveryCache",
    "DiscoveryFailure",
    "EndpointNotFound",
    "EndpointSpec",
    "InvalidPlatformName",
    "MissingCredentials",
    "PlatformConfig",
    "PlatformDiscovery",
    "PlatformName",
    "UniversalApiCaller",
    "build_auth",
    "decode_credentials",
]
