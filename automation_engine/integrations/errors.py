"""Error types raised by the platform integration layer.

Purpose:
- Provide typed exceptions for platform calls, endpoint resolution and
  credential handling.
- Expose HTTP-oriented context (status code, status text, truncated body) on
  call failures for diagnosis.

Usage:
- Catch `APICallFailure` for any failed platform request and inspect
  `status_code` (``None`` for transport failures), `status_text` or `body`.
- Catch `MissingCredentials` when a run has no credential record for the
  platform an action targets.
"""

from __future__ import annotations

from typing import Any, List, Optional

from automation_engine.core.errors import AutomationError


class InvalidPlatformName(AutomationError, ValueError):
    """Raised when a platform identifier cannot be normalised."""

    code = "invalid_platform_name"

    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid platform name: {value!r}")
        self.value = value


class MissingCredentials(AutomationError):
    """Raised when no credential bundle is loaded for a platform."""

    code = "missing_credentials"

    def __init__(self, platform: str) -> None:
        super().__init__(f"No credentials found for platform: {platform}")
        self.platform = platform


class CredentialDecodeError(AutomationError):
    """Raised when a stored credential bundle is not a JSON object."""

    code = "credential_decode_error"


class EndpointNotFound(AutomationError):
    """Raised when neither the named endpoint nor ``universal_call`` exists."""

    code = "endpoint_not_found"

    def __init__(self, platform: str, endpoint: str) -> None:
        super().__init__(f"Endpoint {endpoint} not found for platform {platform}")
        self.platform = platform
        self.endpoint = endpoint


class APICallFailure(AutomationError):
    """A platform request failed.

    Args:
        message: Human-readable error description.
        platform: Platform the request targeted.
        endpoint: Endpoint name that was resolved.
        status_code: HTTP status code, or ``None`` when no response arrived.
        status_text: HTTP reason phrase when a response arrived.
        body: Response body, truncated to the configured limit.
    """

    code = "api_call_failure"

    def __init__(
        self,
        message: str,
        *,
        platform: str,
        endpoint: str,
        status_code: Optional[int] = None,
        status_text: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.platform = platform
        self.endpoint = endpoint
        self.status_code = status_code
        self.status_text = status_text
        self.body = body


class DiscoveryFailure(AutomationError):
    """Every discovery probe failed; discovery falls back to a generic config."""

    code = "discovery_failure"

    def __init__(self, platform: str, attempts: List[str]) -> None:
        super().__init__(f"No API description found for platform {platform}")
        self.platform = platform
        self.attempts = attempts
