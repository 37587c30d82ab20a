"""
services/zone_service.py

Responsibility: Maps opaque zone identifiers to their base domain names,
asking the provider at most once per zone per run.
Does NOT: list or write records.
"""

from __future__ import annotations

import logging

from cloudflare.dns_provider import DNSProvider
from services.cache import RunCache

logger = logging.getLogger(__name__)


class ZoneService:
    """
    Memoized zone-name lookup.

    The cache is never invalidated within a run: if a zone is renamed at the
    provider mid-run, hostnames processed later still see the earlier name.

    Collaborators:
        - DNSProvider: answers get_zone()
    """

    def __init__(self, dns_provider: DNSProvider) -> None:
        self._provider = dns_provider
        self._cache: RunCache[str, str] = RunCache("zone")

    @property
    def lookups(self) -> int:
        """Number of provider lookups made this run."""
        return self._cache.loads

    async def get_zone_name(self, zone_id: str) -> str:
        """
        Returns the base domain name of `zone_id`.

        Raises:
            ProviderError: If the zone is unknown or the provider call fails
                           (ApiError for a success=false envelope).
        """
        return await self._cache.get_or_load(zone_id, lambda: self._load(zone_id))

    async def _load(self, zone_id: str) -> str:
        zone = await self._provider.get_zone(zone_id)
        logger.debug("Zone %s resolves to %s", zone_id, zone.name)
        return zone.name
