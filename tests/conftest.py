"""
tests/conftest.py

Shared pytest fixtures for the unit test suite.
All HTTP fixtures use respx.mock, so no real network calls are made in any test.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from cloudflare.dns_provider import AddressFamily, DnsRecord, Zone

# ---------------------------------------------------------------------------
# HTTP mock fixture: intercepts all httpx calls
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http():
    """
    Yields a respx router that intercepts all httpx.AsyncClient calls.

    No real network traffic is allowed during tests. Use this fixture
    wherever a service or client would normally make an outbound request.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ---------------------------------------------------------------------------
# Shared httpx.AsyncClient fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
async def http_client():
    """
    Yields a real httpx.AsyncClient instance for use in tests.

    Pair with the mock_http fixture so all requests are intercepted by respx.
    The client is closed after each test.
    """
    async with httpx.AsyncClient() as client:
        yield client


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


def make_record(**kwargs) -> DnsRecord:
    """Builds a DnsRecord with sensible defaults for home.example.com."""
    return DnsRecord(
        id=kwargs.get("id", "r1"),
        name=kwargs.get("name", "home.example.com"),
        type=kwargs.get("type", "A"),
        content=kwargs.get("content", "203.0.113.7"),
        proxied=kwargs.get("proxied", True),
        ttl=kwargs.get("ttl", 1),
        zone_id=kwargs.get("zone_id", "z1"),
    )


@pytest.fixture()
def provider():
    """
    An AsyncMock DNSProvider whose zone "z1" is example.com, with no records.

    Writes echo back a record built from the requested state.
    """
    mock = AsyncMock()
    mock.get_zone.return_value = Zone(id="z1", name="example.com")
    mock.list_records.return_value = []

    async def _create(zone_id, record):
        return make_record(id="new", name=record.name, type=record.type,
                           content=record.content, proxied=record.proxied, ttl=record.ttl)

    async def _update(zone_id, record_id, record):
        return make_record(id=record_id, name=record.name, type=record.type,
                           content=record.content, proxied=record.proxied, ttl=record.ttl)

    mock.create_record.side_effect = _create
    mock.update_record.side_effect = _update
    return mock


@pytest.fixture()
def ip_service():
    """An AsyncMock IpService answering 203.0.113.7 / 2001:db8::7."""
    mock = AsyncMock()

    async def _get_ip(family):
        return "203.0.113.7" if family is AddressFamily.V4 else "2001:db8::7"

    mock.get_ip.side_effect = _get_ip
    return mock
