"""
cloudflare/cloudflare_client.py

Responsibility: Implements the DNSProvider protocol using the Cloudflare REST API.
All Cloudflare HTTP calls are concentrated here; no other file may call the
Cloudflare API directly.
Does NOT: read configuration, cache anything, or decide what to write.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from cloudflare.credentials import Credentials
from cloudflare.dns_provider import (
    DnsRecord,
    Envelope,
    NewRecord,
    RecordEnvelope,
    RecordListEnvelope,
    Zone,
    ZoneEnvelope,
)
from exceptions import ApiError, ProviderNetworkError, ProviderProtocolError

logger = logging.getLogger(__name__)

CLOUDFLARE_BASE = "https://api.cloudflare.com/client/v4"


class CloudflareClient:
    """
    Implements DNSProvider for the Cloudflare DNS REST API (v4).

    All outbound Cloudflare requests go through the injected httpx.AsyncClient,
    making this class fully testable without real network calls (use respx.mock).

    Collaborators:
        - httpx.AsyncClient: injected HTTP client; must be kept alive externally
        - Credentials: ApiToken or ApiKey, turned into auth headers
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        credentials: Credentials,
        base_url: str = CLOUDFLARE_BASE,
    ) -> None:
        """
        Initialises the client with an HTTP client and Cloudflare credentials.

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            credentials: Either an ApiToken or an ApiKey.
            base_url: API root; only overridden in tests.
        """
        self._client = http_client
        self._base = base_url.rstrip("/")
        self._headers = {
            **credentials.headers(),
            "Content-Type": "application/json",
        }

    # ---------------------------------------------------------------------------
    # DNSProvider implementation
    # ---------------------------------------------------------------------------

    async def get_zone(self, zone_id: str) -> Zone:
        """
        Fetches zone details for a Cloudflare zone identifier.

        Args:
            zone_id: The Cloudflare zone ID.

        Returns:
            The Zone with its base domain name.

        Raises:
            ApiError: If the zone is unknown or the API returns success=false.
            ProviderNetworkError: If the API cannot be reached.
            ProviderProtocolError: If the body is not a zone envelope.
        """
        url = f"{self._base}/zones/{zone_id}"
        logger.debug("GET %s", url)
        base, body = await self._request("GET", url)
        envelope = self._zone_envelope(base, body, url)
        if envelope.result is None:
            raise ProviderProtocolError(f"Zone envelope from {url} has no result.")
        return envelope.result

    async def list_records(
        self,
        zone_id: str,
        name: str,
        record_type: str | None = None,
        per_page: int = 100,
    ) -> list[DnsRecord]:
        """
        Returns every record published under `name` in the given zone.

        Args:
            zone_id: The Cloudflare zone ID.
            name: The fully-qualified DNS name to look up.
            record_type: Optional type filter; None returns all types.
            per_page: Page size requested from the API.

        Returns:
            A list of DnsRecord instances in provider order, possibly empty.

        Raises:
            ProviderError: If the Cloudflare API call fails.
        """
        url = f"{self._base}/zones/{zone_id}/dns_records"
        params: dict[str, Any] = {"name": name, "per_page": per_page}
        if record_type is not None:
            params["type"] = record_type

        logger.debug("GET %s params=%s", url, params)
        base, body = await self._request("GET", url, params=params)
        envelope = self._record_list_envelope(base, body, url)

        total = envelope.result_info.get("total_count")
        if isinstance(total, int) and total > len(envelope.result):
            logger.warning(
                "%s: provider reports %d records but only %d were returned.",
                name, total, len(envelope.result),
            )
        return envelope.result

    async def create_record(self, zone_id: str, record: NewRecord) -> DnsRecord:
        """
        Creates a new record in the given Cloudflare zone.

        Args:
            zone_id: The Cloudflare zone ID.
            record: Name, type, content, proxied flag and TTL of the new record.

        Returns:
            The newly created DnsRecord.

        Raises:
            ProviderError: If the Cloudflare API call fails.
        """
        url = f"{self._base}/zones/{zone_id}/dns_records"
        payload = record.to_payload()

        logger.debug("POST %s payload=%s", url, payload)
        base, body = await self._request("POST", url, json=payload)
        return self._single_record(base, body, url)

    async def update_record(self, zone_id: str, record_id: str, record: NewRecord) -> DnsRecord:
        """
        Patches an existing record with new content, proxied flag, TTL and name.

        Args:
            zone_id: The Cloudflare zone ID.
            record_id: Identifier of the record to patch.
            record: The desired state.

        Returns:
            The updated DnsRecord as confirmed by Cloudflare.

        Raises:
            ProviderError: If the Cloudflare API call fails.
        """
        url = f"{self._base}/zones/{zone_id}/dns_records/{record_id}"
        payload = record.to_payload()

        logger.debug("PATCH %s payload=%s", url, payload)
        base, body = await self._request("PATCH", url, json=payload)
        return self._single_record(base, body, url)

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> tuple[Envelope, dict[str, Any]]:
        """
        Sends an authenticated HTTP request to the Cloudflare API.

        Args:
            method: HTTP verb ("GET", "POST", "PATCH").
            url: Full URL of the Cloudflare API endpoint.
            params: Optional query-string parameters.
            json: Optional JSON request body.

        Returns:
            The successful envelope and the raw body its result is parsed from.

        Raises:
            ProviderNetworkError: If the request could not be sent.
            ApiError: If the API returns success=false or an HTTP error status.
            ProviderProtocolError: If a 2xx body is not a JSON object.
        """
        try:
            response = await self._client.request(
                method, url, headers=self._headers, params=params, json=json
            )
        except httpx.RequestError as exc:
            raise ProviderNetworkError(
                f"Network error calling Cloudflare API ({method} {url}): {exc}",
                connection_failed=isinstance(exc, httpx.ConnectError),
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            if response.is_error:
                raise ApiError(
                    f"Cloudflare API error {response.status_code} for {method} {url}: "
                    f"{response.text}",
                    status_code=response.status_code,
                ) from exc
            raise ProviderProtocolError(
                f"Cloudflare API returned a non-JSON body for {method} {url}: {response.text!r}"
            ) from exc

        if not isinstance(body, dict):
            raise ProviderProtocolError(
                f"Cloudflare API returned an unexpected body for {method} {url}: {body!r}"
            )

        # NOTE: Cloudflare returns an envelope on 4xx too; success=false is
        # authoritative even when the HTTP status is 2xx.
        envelope = Envelope(
            success=bool(body.get("success", False)),
            errors=body.get("errors") or [],
            messages=body.get("messages") or [],
        )
        if not envelope.success or response.is_error:
            raise ApiError(
                f"Cloudflare API returned success=false ({response.status_code}) for "
                f"{method} {url}. Errors: {_format_errors(envelope.errors)}",
                status_code=response.status_code,
                errors=envelope.errors,
            )

        for message in envelope.messages:
            logger.debug("Cloudflare message for %s %s: %s", method, url, message)
        return envelope, body

    def _zone_envelope(self, base: Envelope, body: dict[str, Any], url: str) -> ZoneEnvelope:
        raw = body.get("result")
        try:
            zone = Zone(id=raw["id"], name=raw["name"]) if raw else None
        except (KeyError, TypeError) as exc:
            raise ProviderProtocolError(f"Malformed zone in response from {url}: {raw!r}") from exc
        return ZoneEnvelope(
            success=base.success,
            errors=base.errors,
            messages=base.messages,
            result=zone,
        )

    def _record_list_envelope(self, base: Envelope, body: dict[str, Any], url: str) -> RecordListEnvelope:
        raw = body.get("result")
        if not isinstance(raw, list):
            raise ProviderProtocolError(f"Expected a record list from {url}, got {raw!r}")
        return RecordListEnvelope(
            success=base.success,
            errors=base.errors,
            messages=base.messages,
            result=[self._parse_record(r, url) for r in raw],
            result_info=body.get("result_info") or {},
        )

    def _single_record(self, base: Envelope, body: dict[str, Any], url: str) -> DnsRecord:
        raw = body.get("result")
        envelope = RecordEnvelope(
            success=base.success,
            errors=base.errors,
            messages=base.messages,
            result=self._parse_record(raw, url) if raw is not None else None,
        )
        if envelope.result is None:
            raise ProviderProtocolError(f"Record envelope from {url} has no result.")
        return envelope.result

    @staticmethod
    def _parse_record(raw: Any, url: str) -> DnsRecord:
        """
        Converts a raw Cloudflare API record dict into a typed DnsRecord.

        Args:
            raw: A single record object from the Cloudflare API response.
            url: Request URL, for the error message.

        Returns:
            A DnsRecord populated from the raw dict.

        Raises:
            ProviderProtocolError: If a required field is missing.
        """
        try:
            return DnsRecord(
                id=raw["id"],
                name=raw["name"],
                type=raw["type"],
                content=raw["content"],
                proxied=bool(raw.get("proxied", False)),
                ttl=int(raw.get("ttl", 1)),
                zone_id=raw.get("zone_id", ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderProtocolError(f"Malformed DNS record in response from {url}: {raw!r}") from exc


def _format_errors(errors: list[Any]) -> str:
    parts = []
    for error in errors:
        if isinstance(error, dict):
            parts.append(f"[{error.get('code', '?')}] {error.get('message', '')}".strip())
        else:
            parts.append(str(error))
    return "; ".join(parts) or "none reported"
