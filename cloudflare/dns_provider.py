"""
cloudflare/dns_provider.py

Responsibility: Defines the DNSProvider Protocol, the address-record value
objects and the typed response envelopes returned by the provider.
Does NOT: make HTTP calls, read configuration, or implement any provider logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class AddressFamily(Enum):
    """The two address families this application manages."""

    V4 = "A"
    V6 = "AAAA"

    @property
    def record_type(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return "IPv4" if self is AddressFamily.V4 else "IPv6"


# ---------------------------------------------------------------------------
# Value objects: stable shapes returned by all DNSProvider implementations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Zone:
    """A provider-managed zone: opaque identifier plus its base domain name."""

    id: str

    # Base domain, e.g. "example.com"
    name: str


@dataclass(frozen=True)
class DnsRecord:
    """
    Represents a single DNS record as observed at the provider.

    A snapshot fetched per hostname reconciliation; never cached across
    hostnames.
    """

    # Provider-assigned unique identifier for the record
    id: str

    # Fully-qualified DNS name, e.g. "home.example.com"
    name: str

    # Record type, e.g. "A", "AAAA", "CNAME"
    type: str

    # Record content; the address for A/AAAA records
    content: str

    # Whether the record is proxied through the provider's edge network
    proxied: bool

    # TTL in seconds; 1 means "automatic" on Cloudflare
    ttl: int

    # The zone ID to which this record belongs
    zone_id: str = ""


@dataclass(frozen=True)
class NewRecord:
    """Desired state sent to create_record / update_record."""

    name: str
    type: str
    content: str
    proxied: bool
    ttl: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "content": self.content,
            "proxied": self.proxied,
            "ttl": self.ttl,
        }


# ---------------------------------------------------------------------------
# Response envelopes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Envelope:
    """
    Fields shared by every provider response.

    Cloudflare wraps all responses in {"success": bool, "errors": [...],
    "messages": [...], "result": ...}.
    """

    success: bool
    errors: list[dict[str, Any]] = field(default_factory=list)
    messages: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class ZoneEnvelope(Envelope):
    result: Zone | None = None


@dataclass(frozen=True)
class RecordEnvelope(Envelope):
    result: DnsRecord | None = None


@dataclass(frozen=True)
class RecordListEnvelope(Envelope):
    result: list[DnsRecord] = field(default_factory=list)

    # Paging block: page, per_page, count, total_count
    result_info: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Abstract interface
# ---------------------------------------------------------------------------


@runtime_checkable
class DNSProvider(Protocol):
    """
    Abstract protocol for address-record management.

    DnsService and ZoneService depend on this abstraction, never on
    CloudflareClient directly, so tests can substitute an AsyncMock.
    """

    async def get_zone(self, zone_id: str) -> Zone:
        """
        Fetches the zone details for an identifier.

        Raises:
            ProviderError: If the zone is unknown or the API call fails.
        """
        ...

    async def list_records(
        self,
        zone_id: str,
        name: str,
        record_type: str | None = None,
        per_page: int = 100,
    ) -> list[DnsRecord]:
        """
        Returns the records published under `name`, in provider order.

        Raises:
            ProviderError: If the API call fails.
        """
        ...

    async def create_record(self, zone_id: str, record: NewRecord) -> DnsRecord:
        """
        Creates a new record in the given zone.

        Raises:
            ProviderError: If the API call fails.
        """
        ...

    async def update_record(self, zone_id: str, record_id: str, record: NewRecord) -> DnsRecord:
        """
        Patches name/content/proxied/ttl on an existing record.

        Raises:
            ProviderError: If the API call fails.
        """
        ...
