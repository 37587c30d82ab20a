"""
exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling.
"""

from __future__ import annotations


class DdnsError(Exception):
    """
    Base class for every error raised by this application.

    The driver catches DdnsError per hostname so one failing hostname never
    prevents the remaining hostnames from being reconciled.
    """


class ConfigError(DdnsError):
    """
    Raised while building Settings when credentials are missing or
    contradictory, a hostname has no zone id, or the config file is unreadable.

    Fatal at startup: no reconciliation is attempted.
    """


class NetworkError(DdnsError):
    """
    Raised when a remote endpoint cannot be reached or returns a transport-level
    failure.

    `connection_failed` is True when the connection itself could not be
    established. For the IP oracle this usually means the host simply has no
    route for that address family.
    """

    def __init__(self, message: str, *, connection_failed: bool = False) -> None:
        super().__init__(message)
        self.connection_failed = connection_failed


class ProtocolError(DdnsError):
    """
    Raised when a response arrives but its body does not have the expected
    shape (missing `ip=` line, non-JSON body, missing envelope fields).
    """


class ProviderError(DdnsError):
    """
    Raised by any DNSProvider implementation when a DNS API call fails.

    Callers (typically the driver) catch this and mark the hostname failed.
    """


class ApiError(ProviderError):
    """
    Raised when the provider returns a well-formed envelope with success=false.

    Carries the HTTP status and the provider's error list so the log line
    shows what the provider actually complained about.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        errors: list[dict] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []


class ProviderNetworkError(ProviderError, NetworkError):
    """Raised when the provider API cannot be reached."""


class ProviderProtocolError(ProviderError, ProtocolError):
    """Raised when the provider API returns a body that is not a valid envelope."""
