"""
config.py

Responsibility: Builds the immutable run Settings from the TOML config file,
environment-derived CLI values and hard-coded defaults, and validates them.
Does NOT: parse argv (see main.py) or make HTTP calls.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, TypeVar

from cloudflare.credentials import ApiKey, ApiToken, Credentials
from exceptions import ConfigError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Hard defaults, used when neither the hostname entry nor the global
# [subdomains] table sets a field.
DEFAULT_TTL = 1  # 1 = automatic TTL on Cloudflare
DEFAULT_PROXIED = True
DEFAULT_A = True
DEFAULT_AAAA = False

MIN_TTL = 60
MAX_TTL = 86400


def resolve(entry_value: T | None, global_value: T | None, hard_default: T) -> T:
    """
    Three-tier resolution for a single config field.

    Args:
        entry_value: Value set on the hostname entry, or None.
        global_value: Value set on the global defaults, or None.
        hard_default: Fallback when both are unset.

    Returns:
        The first of the three that is not None.
    """
    if entry_value is not None:
        return entry_value
    if global_value is not None:
        return global_value
    return hard_default


@dataclass(frozen=True)
class HostnameConfig:
    """
    Desired state for one hostname entry, or the global defaults.

    Every field is optional; unset fields fall back to the global
    defaults and then to the hard defaults above.
    """

    zone_id: str | None = None
    ttl: int | None = None
    proxied: bool | None = None
    a: bool | None = None
    aaaa: bool | None = None


@dataclass(frozen=True)
class CliOverrides:
    """Values taken from argv or the environment; None means "not given"."""

    config_path: Path | None = None
    api_token: str | None = None
    api_key: str | None = None
    account_email: str | None = None
    zone_id: str | None = None
    ttl: int | None = None
    proxied: bool | None = None
    a: bool | None = None
    aaaa: bool | None = None
    subdomain: str | None = None


@dataclass(frozen=True)
class Settings:
    """Everything a run needs. Read-only for the duration of the run."""

    credentials: Credentials
    defaults: HostnameConfig = field(default_factory=HostnameConfig)
    hostnames: dict[str, HostnameConfig] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def default_config_path() -> Path:
    """Returns $XDG_CONFIG_HOME/cf-ddns/config.toml, or ~/.config/cf-ddns/config.toml."""
    config_home = os.getenv("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return Path(config_home) / "cf-ddns" / "config.toml"


def load_toml(path: Path | None) -> dict[str, Any]:
    """
    Reads the TOML config file.

    Args:
        path: Explicit path from --config, or None to use the default location.

    Returns:
        The parsed document; {} when no explicit path was given and the
        default file does not exist.

    Raises:
        ConfigError: If an explicit path cannot be read, or any file fails to parse.
    """
    explicit = path is not None
    target = path if explicit else default_config_path()

    try:
        with open(target, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as exc:
        if explicit:
            raise ConfigError(f"Config file {target} could not be opened: {exc}") from exc
        logger.debug("No config file at %s; using defaults only.", target)
        return {}
    except OSError as exc:
        raise ConfigError(f"Config file {target} could not be opened: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Config file {target} is not valid TOML: {exc}") from exc

    logger.debug("Loaded config from %s", target)
    return data


def build_settings(overrides: CliOverrides, document: dict[str, Any] | None = None) -> Settings:
    """
    Layers CLI/env values over the TOML document and validates the result.

    Args:
        overrides: Values from argv/environment.
        document: Parsed TOML; loaded from overrides.config_path when None.

    Returns:
        The validated Settings.

    Raises:
        ConfigError: On missing/contradictory credentials, a hostname without
                     a zone id, an out-of-range TTL or a malformed table.
    """
    if document is None:
        document = load_toml(overrides.config_path)

    cloudflare = _table(document, "cloudflare")
    credentials = build_credentials(
        api_token=overrides.api_token or _opt_str(cloudflare, "api_token", "cloudflare"),
        api_key=overrides.api_key or _opt_str(cloudflare, "api_key", "cloudflare"),
        account_email=overrides.account_email or _opt_str(cloudflare, "account_email", "cloudflare"),
    )

    file_defaults = _parse_hostname_config(_table(document, "subdomains"), "subdomains")
    defaults = HostnameConfig(
        zone_id=resolve(overrides.zone_id or None, file_defaults.zone_id, None),
        ttl=resolve(overrides.ttl, file_defaults.ttl, None),
        proxied=resolve(overrides.proxied, file_defaults.proxied, None),
        a=resolve(overrides.a, file_defaults.a, None),
        aaaa=resolve(overrides.aaaa, file_defaults.aaaa, None),
    )

    hostnames = {
        str(name): _parse_hostname_config(_as_table(raw, f"subdomain.{name}"), f"subdomain.{name}")
        for name, raw in _table(document, "subdomain").items()
    }

    if defaults.zone_id is None:
        missing = [name for name, cfg in hostnames.items() if cfg.zone_id is None]
        if missing:
            raise ConfigError(
                "zone_id not specified in the config file or in arguments. "
                f"Subdomains missing zone_ids: {missing}"
            )

    # NOTE: --subdomain replaces the configured entries; the single entry
    # carries no overrides and relies on the global defaults.
    if overrides.subdomain is not None:
        if defaults.zone_id is None:
            raise ConfigError("--subdomain requires a global zone_id (--zone-id or CF_ZONE_ID).")
        hostnames = {overrides.subdomain: HostnameConfig()}

    for name, cfg in [("subdomains", defaults), *hostnames.items()]:
        _check_ttl(cfg.ttl, name)

    if not hostnames:
        logger.warning("No subdomains configured; nothing to do.")

    return Settings(credentials=credentials, defaults=defaults, hostnames=hostnames)


def build_credentials(
    api_token: str | None,
    api_key: str | None,
    account_email: str | None,
) -> Credentials:
    """
    Chooses the active authentication scheme.

    A token wins when present; otherwise both key and email are required.

    Raises:
        ConfigError: If neither scheme is fully specified.
    """
    if api_token:
        if api_key:
            logger.debug("Both an API token and an API key were given; using the token.")
        return ApiToken(api_token)
    if not api_key:
        raise ConfigError("Neither api token nor api key were specified.")
    if not account_email:
        raise ConfigError("Account email not specified when api key was.")
    return ApiKey(key=api_key, email=account_email)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

_HOSTNAME_FIELDS = {f.name for f in fields(HostnameConfig)}


def _table(document: dict[str, Any], key: str) -> dict[str, Any]:
    return _as_table(document.get(key, {}), key)


def _as_table(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"[{where}] must be a table, got {type(value).__name__}.")
    return value


def _opt_str(table: dict[str, Any], key: str, where: str) -> str | None:
    value = table.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"[{where}] {key} must be a string.")
    # "" is treated as unset, the same as an empty environment variable
    return value or None


def _opt_bool(table: dict[str, Any], key: str, where: str) -> bool | None:
    value = table.get(key)
    if value is not None and not isinstance(value, bool):
        raise ConfigError(f"[{where}] {key} must be true or false.")
    return value


def _opt_int(table: dict[str, Any], key: str, where: str) -> int | None:
    value = table.get(key)
    # bool is an int subclass; reject `ttl = true`
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        raise ConfigError(f"[{where}] {key} must be an integer.")
    return value


def _parse_hostname_config(table: dict[str, Any], where: str) -> HostnameConfig:
    unknown = set(table) - _HOSTNAME_FIELDS
    if unknown:
        raise ConfigError(f"[{where}] has unknown keys: {sorted(unknown)}")
    return HostnameConfig(
        zone_id=_opt_str(table, "zone_id", where),
        ttl=_opt_int(table, "ttl", where),
        proxied=_opt_bool(table, "proxied", where),
        a=_opt_bool(table, "a", where),
        aaaa=_opt_bool(table, "aaaa", where),
    )


def _check_ttl(ttl: int | None, where: str) -> None:
    if ttl is None or ttl == DEFAULT_TTL:
        return
    if not MIN_TTL <= ttl <= MAX_TTL:
        raise ConfigError(
            f"[{where}] ttl must be 1 (automatic) or between {MIN_TTL} and {MAX_TTL}, got {ttl}."
        )
