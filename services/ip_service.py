"""
services/ip_service.py

Responsibility: Fetches the current public IPv4/IPv6 address of the host
machine, once per address family per run.
Does NOT: parse DNS records, interact with the Cloudflare API, or read config files.
"""

from __future__ import annotations

import ipaddress
import logging

import httpx

from cloudflare.dns_provider import AddressFamily
from exceptions import NetworkError, ProtocolError
from services.cache import RunCache

logger = logging.getLogger(__name__)

# NOTE: Cloudflare's trace endpoint answers with a line-oriented plaintext body
# containing "ip=<caller address>". The v6 URL is only reachable over IPv6, so
# the endpoint choice decides which family is measured.
IPV4_TRACE_URL = "https://1.1.1.1/cdn-cgi/trace"
IPV6_TRACE_URL = "https://[2606:4700:4700::1111]/cdn-cgi/trace"

_IP_PREFIX = "ip="


class IpService:
    """
    Resolves the host machine's current public address per family.

    Uses an injected httpx.AsyncClient so the service is fully testable
    without real network calls (use respx.mock in tests). Results are
    memoized for the lifetime of the instance; failures are not, so a
    later request for the same family goes back to the network.

    Collaborators:
        - httpx.AsyncClient: injected; must be kept alive externally
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        ipv4_url: str = IPV4_TRACE_URL,
        ipv6_url: str = IPV6_TRACE_URL,
    ) -> None:
        """
        Initialises the service with a shared HTTP client.

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            ipv4_url: Trace endpoint reachable over IPv4.
            ipv6_url: Trace endpoint reachable only over IPv6.
        """
        self._client = http_client
        self._urls = {AddressFamily.V4: ipv4_url, AddressFamily.V6: ipv6_url}
        self._cache: RunCache[AddressFamily, str] = RunCache("ip")

    @property
    def lookups(self) -> int:
        """Number of network lookups that reached the loader this run."""
        return self._cache.loads

    async def get_ip(self, family: AddressFamily) -> str:
        """
        Returns the current public address for `family`.

        Args:
            family: AddressFamily.V4 or AddressFamily.V6.

        Returns:
            The address as a plain string, e.g. "203.0.113.7".

        Raises:
            NetworkError: If the trace endpoint is unreachable or answers with
                          a non-2xx status. connection_failed is set when no
                          connection could be made at all.
            ProtocolError: If the body has no `ip=` line or its value is not
                           an address of the requested family.
        """
        return await self._cache.get_or_load(family, lambda: self._fetch(family))

    async def _fetch(self, family: AddressFamily) -> str:
        url = self._urls[family]
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.ConnectError as exc:
            raise NetworkError(
                f"Connection error reaching {url}, check {family.label} connectivity: {exc}",
                connection_failed=True,
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise NetworkError(
                f"{url} returned HTTP status code {exc.response.status_code}."
            ) from exc
        except httpx.RequestError as exc:
            raise NetworkError(f"Could not reach IP provider ({url}): {exc}") from exc

        ip = parse_trace(response.text, url)
        try:
            parsed = ipaddress.ip_address(ip)
        except ValueError as exc:
            raise ProtocolError(f"{url} returned an invalid address: {ip!r}") from exc
        expected_version = 4 if family is AddressFamily.V4 else 6
        if parsed.version != expected_version:
            raise ProtocolError(f"{url} returned {ip}, which is not an {family.label} address.")

        logger.debug("Current public %s: %s", family.label, ip)
        return ip


def parse_trace(text: str, url: str = "trace endpoint") -> str:
    """
    Extracts the value of the first `ip=` line from a trace body.

    Args:
        text: The plaintext response body.
        url: Source URL, for the error message.

    Returns:
        The stripped value after `ip=`.

    Raises:
        ProtocolError: If no line starts with `ip=`.
    """
    for line in text.splitlines():
        if line.startswith(_IP_PREFIX):
            return line[len(_IP_PREFIX):].strip()
    raise ProtocolError(f"Couldn't find {_IP_PREFIX} in the response from {url}\nFull response: {text}")
