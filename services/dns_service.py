"""
services/dns_service.py

Responsibility: Reconciles one configured hostname: composes its FQDN,
compares the provider's current A/AAAA records with the desired state and
issues the minimal create/patch calls to converge.
Does NOT: make HTTP calls directly, iterate over hostnames, or catch errors
on behalf of the driver.
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass, field
from enum import Enum

from cloudflare.dns_provider import AddressFamily, DnsRecord, DNSProvider, NewRecord
from config import (
    DEFAULT_A,
    DEFAULT_AAAA,
    DEFAULT_PROXIED,
    DEFAULT_TTL,
    HostnameConfig,
    resolve,
)
from exceptions import ConfigError
from services.ip_service import IpService
from services.zone_service import ZoneService

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """What happened to one address family of one hostname."""

    SKIPPED = "skipped"
    UNCHANGED = "unchanged"
    UPDATED = "updated"
    CREATED = "created"


@dataclass
class ReconcileResult:
    """Per-family outcomes for one hostname."""

    hostname: str
    fqdn: str | None = None
    outcomes: dict[AddressFamily, Outcome] = field(
        default_factory=lambda: {family: Outcome.SKIPPED for family in AddressFamily}
    )

    @property
    def changed(self) -> bool:
        return any(o in (Outcome.CREATED, Outcome.UPDATED) for o in self.outcomes.values())


def build_fqdn(name: str, base_domain: str) -> str:
    """
    Composes the fully-qualified name for a hostname prefix.

    Args:
        name: Hostname prefix from the config; "" or "@" mean the zone apex.
        base_domain: The zone's base domain, e.g. "example.com".

    Returns:
        base_domain for the apex, else "<lowercased, trimmed name>.<base_domain>".
    """
    name = name.lower().strip()
    if name in ("", "@"):
        return base_domain
    return f"{name}.{base_domain}"


class DnsService:
    """
    The reconciliation engine.

    One instance serves one run: it owns the zone-name cache (through
    ZoneService) and the public-IP cache (through IpService), so a zone
    shared by many hostnames is looked up once and each address family is
    fetched at most once.

    Collaborators:
        - DNSProvider: lists, creates and patches records
        - IpService: provides the current public address per family
        - ZoneService: maps zone ids to base domains
    """

    def __init__(
        self,
        dns_provider: DNSProvider,
        ip_service: IpService,
        defaults: HostnameConfig | None = None,
        zone_service: ZoneService | None = None,
    ) -> None:
        """
        Initialises the service with all required collaborators.

        Args:
            dns_provider: Any DNSProvider implementation (e.g. CloudflareClient).
            ip_service: Per-run public IP oracle.
            defaults: Global defaults applied under every hostname entry.
            zone_service: Per-run zone resolver; built on dns_provider if omitted.
        """
        self._provider = dns_provider
        self._ip_service = ip_service
        self._defaults = defaults or HostnameConfig()
        self._zones = zone_service or ZoneService(dns_provider)

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def commit_record(self, hostname: str, config: HostnameConfig) -> ReconcileResult:
        """
        Converges the A/AAAA records of one hostname on the desired state.

        Families are handled in the fixed order A then AAAA. The first error
        aborts the call; anything already written stays written.

        Args:
            hostname: Hostname prefix as written in the config.
            config: The entry's own settings (unset fields use the defaults).

        Returns:
            A ReconcileResult with one Outcome per family.

        Raises:
            ConfigError: If no zone id is available (should be caught at startup).
            ProviderError: If zone lookup, record listing or a write fails.
            NetworkError, ProtocolError: If the public IP cannot be determined.
        """
        logger.debug("[commit_record] subdomain: %s", hostname)
        defaults = self._defaults
        result = ReconcileResult(hostname=hostname)

        zone_id = resolve(config.zone_id, defaults.zone_id, None)
        if zone_id is None:
            raise ConfigError(f"zone_id is not set for subdomain {hostname!r}.")

        base_domain = await self._zones.get_zone_name(zone_id)
        logger.debug("Base domain name: %s", base_domain)

        fqdn = build_fqdn(hostname, base_domain)
        result.fqdn = fqdn
        logger.debug("fqdn: %s", fqdn)

        use_a = resolve(config.a, defaults.a, DEFAULT_A)
        use_aaaa = resolve(config.aaaa, defaults.aaaa, DEFAULT_AAAA)
        if not use_a and not use_aaaa:
            logger.warning("A = false and AAAA = false for subdomain %s", hostname)
            return result

        records = await self._provider.list_records(zone_id, fqdn)

        proxied = resolve(config.proxied, defaults.proxied, DEFAULT_PROXIED)
        ttl = resolve(config.ttl, defaults.ttl, DEFAULT_TTL)

        for use, family in ((use_a, AddressFamily.V4), (use_aaaa, AddressFamily.V6)):
            if not use:
                continue
            result.outcomes[family] = await self._converge(
                zone_id, fqdn, family, records, proxied, ttl
            )

        return result

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _converge(
        self,
        zone_id: str,
        fqdn: str,
        family: AddressFamily,
        records: list[DnsRecord],
        proxied: bool,
        ttl: int,
    ) -> Outcome:
        record_type = family.record_type
        existing = _find_record(records, record_type, fqdn)

        ip = await self._ip_service.get_ip(family)
        desired = NewRecord(name=fqdn, type=record_type, content=ip, proxied=proxied, ttl=ttl)

        if existing is None:
            logger.info("%s: %s record not found, creating it", fqdn, record_type)
            created = await self._provider.create_record(zone_id, desired)
            logger.info(
                "%s: successfully created %s record. id: %s, ip: %s",
                fqdn, record_type, created.id, created.content,
            )
            return Outcome.CREATED

        if (existing.proxied, existing.ttl) == (proxied, ttl) and _same_address(existing.content, ip):
            logger.info("%s: record %s doesn't need to be modified", fqdn, existing.id)
            return Outcome.UNCHANGED

        logger.info(
            "%s: updating %s record with id %s. Old ip: %s",
            fqdn, record_type, existing.id, existing.content,
        )
        logger.debug("%s: old record: %s", fqdn, existing)
        updated = await self._provider.update_record(zone_id, existing.id, desired)
        logger.info(
            "%s: successfully updated %s record with id %s. New ip: %s",
            fqdn, record_type, existing.id, ip,
        )
        logger.debug("%s: new record: %s", fqdn, updated)
        return Outcome.UPDATED


def _same_address(content: str, ip: str) -> bool:
    """Compares addresses by value, so "2001:0db8::0007" matches "2001:db8::7"."""
    try:
        return ipaddress.ip_address(content) == ipaddress.ip_address(ip)
    except ValueError:
        return content == ip


def _find_record(records: list[DnsRecord], record_type: str, fqdn: str) -> DnsRecord | None:
    """
    Returns the first record of `record_type` in provider order.

    Duplicates are left alone; their ids are logged so they can be cleaned
    up by hand.
    """
    matches = [r for r in records if r.type == record_type]
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            "%s: %d %s records exist; using %s and ignoring %s",
            fqdn, len(matches), record_type, matches[0].id, [r.id for r in matches[1:]],
        )
    return matches[0]
