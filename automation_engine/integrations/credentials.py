"""Load a run's platform credentials into a name-keyed index.

Each stored record carries a platform name and a credential bundle (usually a
JSON text). Records are decoded once per run; a record that cannot be decoded
is logged and skipped so one bad bundle does not abort the run.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

from automation_engine.repos.interfaces import CredentialRepository

from .errors import CredentialDecodeError, InvalidPlatformName, MissingCredentials
from .identifiers import PlatformName

logger = logging.getLogger(__name__)

CredentialIndex = Dict[PlatformName, Dict[str, Any]]


def decode_credentials(raw: Any) -> Dict[str, Any]:
    """Decode a stored credential bundle into a dict.

    Raises:
        CredentialDecodeError: the bundle is not a JSON object.
    """
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        raise CredentialDecodeError(f"Unsupported credential bundle type: {type(raw).__name__}")
    try:
        decoded = json.loads(raw)
    except ValueError as e:
        raise CredentialDecodeError(f"Credential bundle is not valid JSON: {e}") from e
    if not isinstance(decoded, dict):
        raise CredentialDecodeError("Credential bundle must be a JSON object")
    return decoded


def index_credentials(bundles: Mapping[str, Any]) -> CredentialIndex:
    """Build an index from already-decoded ``{platform: bundle}`` pairs."""
    index: CredentialIndex = {}
    for platform, bundle in bundles.items():
        index[PlatformName(platform)] = decode_credentials(bundle)
    return index


def require_credentials(index: Mapping[str, Dict[str, Any]], platform: PlatformName) -> Dict[str, Any]:
    """Return the bundle for ``platform``.

    Raises:
        MissingCredentials: no bundle is indexed for the platform.
    """
    bundle = index.get(platform)
    if bundle is None:
        raise MissingCredentials(platform)
    return bundle


class CredentialLoader:
    """Read a run's credential records through a ``CredentialRepository``."""

    def __init__(self, repository: CredentialRepository) -> None:
        self._repository = repository

    async def load(self, *, user_id: str, automation_id: Optional[str] = None) -> CredentialIndex:
        """
        Load the active credentials usable by a run.

        Args:
            user_id: The user the run executes for.
            automation_id: The automation being run.

        Returns:
            Decoded bundles keyed by normalised platform name; when several
            records share a platform the most recent one wins.
        """
        records = await self._repository.list_active(user_id=user_id, automation_id=automation_id)
        index: CredentialIndex = {}
        for record in records:
            try:
                name = PlatformName(record.platform_name)
                index[name] = decode_credentials(record.credentials)
            except (CredentialDecodeError, InvalidPlatformName) as e:
                logger.error(
                    "Failed to load credentials for platform %r (record %s): %s", record.platform_name, record.id, e
                )
        logger.info("Loaded credentials for platforms: %s", sorted(index))
        return index
