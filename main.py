"""
main.py

Responsibility: Command-line entry point. Parses argv, sets up logging,
builds Settings and runs once (or on an interval).
Does NOT: contain reconciliation logic or talk to Cloudflare directly.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import httpx

from config import CliOverrides, Settings, build_settings
from exceptions import ConfigError
from logger import level_for_verbosity, setup_logging
from scheduler import create_scheduler
from updater import run_once

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 2

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def _bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cf-ddns",
        description="Cloudflare DDNS updater: point A/AAAA records at this machine's public IP.",
    )
    parser.add_argument(
        "-c", "--config", dest="config_path", type=Path,
        help="Config file path. Default: $XDG_CONFIG_HOME/cf-ddns/config.toml "
             "(~/.config/cf-ddns/config.toml if XDG_CONFIG_HOME is unset).",
    )
    parser.add_argument(
        "-t", "--ttl", type=int,
        help="Time To Live in seconds. Minimum 60, maximum 86400. 1 means auto.",
    )
    parser.add_argument("--api-token", default=os.getenv("CF_API_TOKEN"),
                        help="Cloudflare API token [env: CF_API_TOKEN].")
    parser.add_argument("--api-key", default=os.getenv("CF_API_KEY"),
                        help="Cloudflare API key, needs --account-email [env: CF_API_KEY].")
    parser.add_argument("--account-email", default=os.getenv("CF_ACCOUNT_EMAIL"),
                        help="Cloudflare account email, needs --api-key [env: CF_ACCOUNT_EMAIL].")
    parser.add_argument("--zone-id", default=os.getenv("CF_ZONE_ID"),
                        help="Default zone id [env: CF_ZONE_ID].")
    parser.add_argument("--proxied", type=_bool, metavar="BOOL", help="Proxy records through Cloudflare.")
    parser.add_argument("--a", type=_bool, metavar="BOOL", help="Manage the A record (IPv4).")
    parser.add_argument("--aaaa", type=_bool, metavar="BOOL", help="Manage the AAAA record (IPv6).")
    parser.add_argument(
        "--subdomain",
        help="Reconcile only this subdomain prefix instead of the ones in the config file.",
    )
    parser.add_argument(
        "--interval", type=_positive_int, metavar="SECONDS",
        help="Keep running and repeat every SECONDS instead of exiting after one run.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Debug output.")
    parser.add_argument("-q", "--quiet", action="count", default=0, help="Less output; repeat for errors only.")
    return parser


def overrides_from_args(args: argparse.Namespace) -> CliOverrides:
    return CliOverrides(
        config_path=args.config_path,
        api_token=args.api_token,
        api_key=args.api_key,
        account_email=args.account_email,
        zone_id=args.zone_id or None,
        ttl=args.ttl,
        proxied=args.proxied,
        a=args.a,
        aaaa=args.aaaa,
        subdomain=args.subdomain,
    )


async def _run(settings: Settings, interval: int | None) -> int:
    async with httpx.AsyncClient() as http_client:
        if interval is None:
            report = await run_once(settings, http_client)
            return report.exit_code

        scheduler = create_scheduler(settings, http_client, interval_seconds=interval)
        scheduler.start()
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.shutdown(wait=False)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level_for_verbosity(args.verbose, args.quiet))

    try:
        settings = build_settings(overrides_from_args(args))
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIG_ERROR

    try:
        return asyncio.run(_run(settings, args.interval))
    except KeyboardInterrupt:
        logger.info("Interrupted; exiting.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
