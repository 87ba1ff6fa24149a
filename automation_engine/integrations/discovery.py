"""Runtime platform discovery.

`PlatformDiscovery` turns a platform name into a :class:`PlatformConfig`. It
probes a fixed, ordered list of well-known OpenAPI/Swagger locations derived
from the name and uses the first one that answers ``200`` with a JSON object.
When every probe fails a generic bearer-token configuration is synthesized, so
discovery itself never fails.

Highlights:
- Per-instance memo: a platform is probed at most once per discovery object
  (one discovery object is created per run).
- Optional process-wide :class:`DiscoveryCache` with TTL for sharing results
  across runs; off unless a positive TTL is configured.
- Probes run sequentially, each bounded by its own timeout.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Callable, Dict, List, Optional, Tuple

import httpx

from .errors import DiscoveryFailure, InvalidPlatformName
from .identifiers import PlatformName
from .models import UNIVERSAL_ENDPOINT, AuthConfig, EndpointSpec, PlatformConfig
from .openapi import fallback_base_url, parse_openapi_document

PROBE_URL_TEMPLATES: Tuple[str, ...] = (
    "https://api.{host}.com/openapi.json",
    "https://api.{host}.com/swagger.json",
    "https://{host}.com/api/docs/openapi.json",
    "https://developers.{host}.com/openapi.json",
)

_FALLBACK_NAME = re.compile(r"[^a-z0-9-]")


def probe_urls(platform: PlatformName) -> List[str]:
    return [template.format(host=platform.host_label) for template in PROBE_URL_TEMPLATES]


def fallback_config(platform: PlatformName) -> PlatformConfig:
    """Generic configuration used when no API description can be found."""
    return PlatformConfig(
        name=str(platform),
        base_url=fallback_base_url(platform),
        auth_config=AuthConfig(),
        endpoints={UNIVERSAL_ENDPOINT: EndpointSpec(method="POST", path="/api/v1/execute")},
        source="fallback",
    )


class DiscoveryCache:
    """Process-wide cache of discovered platform configs with a TTL.

    A non-positive TTL disables caching entirely.
    """

    def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[PlatformConfig, float]] = {}

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def get(self, platform: str) -> Optional[PlatformConfig]:
        if not self.enabled:
            return None
        cached = self._entries.get(platform)
        if cached is None:
            return None
        config, expires_at = cached
        if self._clock() >= expires_at:
            self._entries.pop(platform, None)
            return None
        return config

    def put(self, platform: str, config: PlatformConfig) -> None:
        if self.enabled:
            self._entries[platform] = (config, self._clock() + self._ttl)

    def clear(self) -> None:
        self._entries.clear()


class PlatformDiscovery:
    """Resolve platform names to platform configs by probing for OpenAPI documents."""

    def __init__(
        self,
        *,
        client: Optional[httpx.AsyncClient] = None,
        probe_timeout: float = 5.0,
        shared_cache: Optional[DiscoveryCache] = None,
    ) -> None:
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(follow_redirects=True)
        self._probe_timeout = probe_timeout
        self._shared_cache = shared_cache
        self._memo: Dict[str, PlatformConfig] = {}
        self._logger = logging.getLogger(__name__)

    async def discover(self, platform: str) -> PlatformConfig:
        """Return the config for ``platform``; never raises for unreachable platforms."""
        try:
            name = PlatformName(platform)
        except InvalidPlatformName:
            self._logger.warning("PlatformDiscovery.discover: invalid platform name %r, using fallback", platform)
            sanitized = _FALLBACK_NAME.sub("", str(platform).lower()).strip("-")
            return fallback_config(PlatformName(sanitized or "unknown"))

        memoized = self._memo.get(name)
        if memoized is not None:
            return memoized
        shared = self._shared_cache.get(name) if self._shared_cache else None
        if shared is not None:
            self._logger.debug("PlatformDiscovery.discover: shared cache hit for %s", name)
            self._memo[name] = shared
            return shared

        try:
            config = await self._probe(name)
        except DiscoveryFailure as e:
            self._logger.info(
                "PlatformDiscovery.discover: %s, using fallback config (tried: %s)", e, "; ".join(e.attempts)
            )
            config = fallback_config(name)
        else:
            self._logger.info(
                "PlatformDiscovery.discover: %s discovered from %s (%d endpoints)",
                name,
                config.spec_url,
                len(config.endpoints),
            )

        self._memo[name] = config
        if self._shared_cache:
            self._shared_cache.put(name, config)
        return config

    async def _probe(self, name: PlatformName) -> PlatformConfig:
        attempts: List[str] = []
        for url in probe_urls(name):
            self._logger.debug("PlatformDiscovery._probe: GET %s", url)
            try:
                response = await self._http.get(
                    url, headers={"Accept": "application/json"}, timeout=self._probe_timeout
                )
            except httpx.HTTPError as e:
                attempts.append(f"{url} ({e.__class__.__name__})")
                continue
            if response.status_code != 200:
                attempts.append(f"{url} ({response.status_code})")
                continue
            try:
                document = response.json()
            except ValueError:
                attempts.append(f"{url} (not JSON)")
                continue
            if not isinstance(document, dict):
                attempts.append(f"{url} (not an object)")
                continue
            try:
                return parse_openapi_document(name, document, spec_url=url)
            except (ValueError, TypeError, AttributeError) as e:
                self._logger.warning("PlatformDiscovery._probe: could not parse document at %s: %s", url, e)
                attempts.append(f"{url} (unparseable)")
                continue
        raise DiscoveryFailure(name, attempts)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
