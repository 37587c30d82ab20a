"""
updater.py

Responsibility: Drives one DDNS run: wires the per-run collaborators, then
reconciles every configured hostname in order, continuing past failures.
Does NOT: contain comparison logic (see services/dns_service.py) or parse argv.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from cloudflare.cloudflare_client import CloudflareClient
from config import HostnameConfig, Settings
from exceptions import DdnsError, NetworkError
from services.dns_service import DnsService, Outcome, ReconcileResult
from services.ip_service import IpService

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Results of one run, in the order hostnames were processed."""

    results: list[ReconcileResult] = field(default_factory=list)
    failures: dict[str, DdnsError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def summary(self) -> str:
        counts: dict[Outcome, int] = {}
        for result in self.results:
            for outcome in result.outcomes.values():
                counts[outcome] = counts.get(outcome, 0) + 1
        parts = [f"{len(self.results)} subdomain(s) reconciled"]
        for outcome in (Outcome.CREATED, Outcome.UPDATED, Outcome.UNCHANGED):
            if counts.get(outcome):
                parts.append(f"{counts[outcome]} record(s) {outcome.value}")
        if self.failures:
            parts.append(f"{len(self.failures)} failed")
        return ", ".join(parts) + "."


async def reconcile_all(
    dns_service: DnsService,
    hostnames: dict[str, HostnameConfig],
) -> RunReport:
    """
    Calls commit_record once per hostname, sequentially.

    A DdnsError for one hostname is logged with that hostname and recorded
    in the report; the loop then moves on to the next hostname.

    Args:
        dns_service: The run's reconciler.
        hostnames: Hostname prefix to entry config, in processing order.

    Returns:
        The RunReport for this run.
    """
    report = RunReport()
    for hostname, config in hostnames.items():
        try:
            result = await dns_service.commit_record(hostname, config)
        except DdnsError as exc:
            if isinstance(exc, NetworkError) and exc.connection_failed:
                logger.error("Subdomain %s failed (connectivity): %s", hostname, exc)
            else:
                logger.error("Subdomain %s failed: %s", hostname, exc)
            report.failures[hostname] = exc
            continue
        report.results.append(result)
    return report


async def run_once(settings: Settings, http_client: httpx.AsyncClient) -> RunReport:
    """
    Performs one complete run with fresh zone and IP caches.

    Args:
        settings: Validated settings.
        http_client: A long-lived httpx.AsyncClient; not closed here.

    Returns:
        The RunReport; exit_code is non-zero if any hostname failed.
    """
    provider = CloudflareClient(http_client=http_client, credentials=settings.credentials)
    ip_service = IpService(http_client=http_client)
    dns_service = DnsService(provider, ip_service, defaults=settings.defaults)

    logger.debug("Run started for %d subdomain(s).", len(settings.hostnames))
    report = await reconcile_all(dns_service, settings.hostnames)
    logger.log(logging.INFO if report.ok else logging.WARNING, "Run complete: %s", report.summary())
    return report
