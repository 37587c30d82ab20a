"""
tests/unit/test_dns_service.py

Unit tests for services/dns_service.py.
The DNS provider and IP oracle are AsyncMock doubles from conftest.py.
"""

from __future__ import annotations

import pytest

from cloudflare.dns_provider import AddressFamily, NewRecord
from config import HostnameConfig
from exceptions import ApiError, ConfigError, NetworkError
from services.dns_service import DnsService, Outcome, build_fqdn
from conftest import make_record

_V4 = AddressFamily.V4
_V6 = AddressFamily.V6


def _service(provider, ip_service, **defaults) -> DnsService:
    return DnsService(provider, ip_service, defaults=HostnameConfig(zone_id="z1", **defaults))


# ---------------------------------------------------------------------------
# FQDN composition
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("name", ["", "@", "  ", " @ "])
def test_build_fqdn_apex(name):
    """Empty or "@" names map to the base domain itself."""
    assert build_fqdn(name, "example.com") == "example.com"


@pytest.mark.parametrize(
    "name, expected",
    [("home", "home.example.com"), ("Home", "home.example.com"), ("  VPN.Office ", "vpn.office.example.com")],
)
def test_build_fqdn_lowercases_and_trims(name, expected):
    """Other names are lowercased, trimmed and prefixed to the base domain."""
    assert build_fqdn(name, "example.com") == expected


# ---------------------------------------------------------------------------
# Create path
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_commit_record_creates_missing_a_record(provider, ip_service):
    """With no records and defaults, one A record is created and AAAA is skipped."""
    service = _service(provider, ip_service)

    result = await service.commit_record("Home", HostnameConfig())

    provider.list_records.assert_awaited_once_with("z1", "home.example.com")
    provider.create_record.assert_awaited_once_with(
        "z1",
        NewRecord(name="home.example.com", type="A", content="203.0.113.7", proxied=True, ttl=1),
    )
    provider.update_record.assert_not_called()
    assert result.fqdn == "home.example.com"
    assert result.outcomes == {_V4: Outcome.CREATED, _V6: Outcome.SKIPPED}
    assert result.changed is True


@pytest.mark.asyncio
async def test_commit_record_creates_both_families_in_order(provider, ip_service):
    """A then AAAA are created when both are enabled and absent."""
    service = _service(provider, ip_service)

    result = await service.commit_record("home", HostnameConfig(aaaa=True))

    types = [call.args[1].type for call in provider.create_record.await_args_list]
    assert types == ["A", "AAAA"]
    assert provider.create_record.await_args_list[1].args[1].content == "2001:db8::7"
    assert result.outcomes == {_V4: Outcome.CREATED, _V6: Outcome.CREATED}


@pytest.mark.asyncio
async def test_commit_record_ignores_records_of_other_types(provider, ip_service):
    """A CNAME or AAAA under the name does not satisfy the A family."""
    provider.list_records.return_value = [
        make_record(id="c1", type="CNAME", content="elsewhere.example.net"),
        make_record(id="r6", type="AAAA", content="2001:db8::7"),
    ]
    service = _service(provider, ip_service)

    result = await service.commit_record("home", HostnameConfig())

    provider.create_record.assert_awaited_once()
    assert result.outcomes[_V4] is Outcome.CREATED


# ---------------------------------------------------------------------------
# Unchanged / update paths
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_commit_record_unchanged_issues_no_write(provider, ip_service):
    """A record already matching (proxied, content, ttl) is left alone."""
    provider.list_records.return_value = [make_record()]
    service = _service(provider, ip_service)

    result = await service.commit_record("Home", HostnameConfig())

    provider.create_record.assert_not_called()
    provider.update_record.assert_not_called()
    assert result.outcomes == {_V4: Outcome.UNCHANGED, _V6: Outcome.SKIPPED}
    assert result.changed is False


@pytest.mark.asyncio
async def test_commit_record_non_canonical_aaaa_is_unchanged(provider, ip_service):
    """An AAAA record written in expanded form still matches the current address."""
    provider.list_records.return_value = [make_record(id="r6", type="AAAA", content="2001:0db8::0007")]
    service = _service(provider, ip_service)

    result = await service.commit_record("home", HostnameConfig(a=False, aaaa=True))

    provider.update_record.assert_not_called()
    assert result.outcomes[_V6] is Outcome.UNCHANGED


@pytest.mark.asyncio
async def test_commit_record_updates_stale_address(provider, ip_service):
    """A record with an old address is patched by id with the new address."""
    provider.list_records.return_value = [make_record(id="r1", content="198.51.100.1")]
    service = _service(provider, ip_service)

    result = await service.commit_record("home", HostnameConfig())

    provider.update_record.assert_awaited_once_with(
        "z1",
        "r1",
        NewRecord(name="home.example.com", type="A", content="203.0.113.7", proxied=True, ttl=1),
    )
    assert result.outcomes[_V4] is Outcome.UPDATED


@pytest.mark.parametrize("field, stale", [("proxied", False), ("ttl", 300)])
@pytest.mark.asyncio
async def test_commit_record_updates_on_proxied_or_ttl_mismatch(provider, ip_service, field, stale):
    """A matching address with a different proxied flag or TTL still triggers a patch."""
    provider.list_records.return_value = [make_record(**{field: stale})]
    service = _service(provider, ip_service)

    result = await service.commit_record("home", HostnameConfig())

    provider.update_record.assert_awaited_once()
    assert result.outcomes[_V4] is Outcome.UPDATED


@pytest.mark.asyncio
async def test_commit_record_uses_first_of_duplicate_records(provider, ip_service):
    """With two A records the first in provider order is compared; the other is untouched."""
    provider.list_records.return_value = [
        make_record(id="first", content="198.51.100.1"),
        make_record(id="second", content="203.0.113.7"),
    ]
    service = _service(provider, ip_service)

    result = await service.commit_record("home", HostnameConfig())

    assert provider.update_record.await_args.args[1] == "first"
    assert result.outcomes[_V4] is Outcome.UPDATED


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_commit_record_entry_overrides_global(provider, ip_service):
    """Entry values win over global defaults, which win over hard defaults."""
    service = DnsService(
        provider, ip_service, defaults=HostnameConfig(zone_id="global", ttl=120, proxied=False)
    )

    await service.commit_record("home", HostnameConfig(zone_id="z1", ttl=300))

    provider.get_zone.assert_awaited_once_with("z1")
    desired = provider.create_record.await_args.args[1]
    assert desired.ttl == 300
    assert desired.proxied is False


@pytest.mark.asyncio
async def test_commit_record_without_zone_id_raises_config_error(provider, ip_service):
    """A missing zone id at both levels is a configuration error."""
    service = DnsService(provider, ip_service)

    with pytest.raises(ConfigError):
        await service.commit_record("home", HostnameConfig())
    provider.get_zone.assert_not_called()


# ---------------------------------------------------------------------------
# Skip path
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_commit_record_both_families_disabled_skips(provider, ip_service):
    """a=false, aaaa=false makes no record or IP calls and reports both skipped."""
    service = _service(provider, ip_service)

    result = await service.commit_record("home", HostnameConfig(a=False, aaaa=False))

    provider.list_records.assert_not_called()
    ip_service.get_ip.assert_not_called()
    assert result.outcomes == {_V4: Outcome.SKIPPED, _V6: Outcome.SKIPPED}


@pytest.mark.asyncio
async def test_commit_record_aaaa_only_never_asks_for_v4(provider, ip_service):
    """Only the requested family's address is resolved."""
    service = _service(provider, ip_service, a=False, aaaa=True)

    result = await service.commit_record("home", HostnameConfig())

    ip_service.get_ip.assert_awaited_once_with(_V6)
    assert result.outcomes == {_V4: Outcome.SKIPPED, _V6: Outcome.CREATED}


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_commit_record_stops_at_first_failure(provider, ip_service):
    """If the A write fails, AAAA is not attempted."""
    provider.create_record.side_effect = ApiError("quota exceeded")
    service = _service(provider, ip_service)

    with pytest.raises(ApiError):
        await service.commit_record("home", HostnameConfig(aaaa=True))

    assert provider.create_record.await_count == 1


@pytest.mark.asyncio
async def test_commit_record_keeps_a_record_when_aaaa_ip_fails(provider, ip_service):
    """A created A record is not rolled back when the v6 lookup fails."""

    async def _get_ip(family):
        if family is _V6:
            raise NetworkError("no route", connection_failed=True)
        return "203.0.113.7"

    ip_service.get_ip.side_effect = _get_ip
    service = _service(provider, ip_service)

    with pytest.raises(NetworkError):
        await service.commit_record("home", HostnameConfig(aaaa=True))

    provider.create_record.assert_awaited_once()
