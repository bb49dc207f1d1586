"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.

Access pattern::

    from acmeflow.config import get_config

    issuance = get_config().settings.issuance
    print(issuance.timeout_seconds)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IssuanceSettings:
    """Polling budgets and delays used by the issuance workflow."""

    timeout_seconds: float
    delay_after_dns_records_confirmed_seconds: float
    poll_interval_seconds: float


def _build_issuance(data: dict | None) -> IssuanceSettings:
    d = data or {}
    return IssuanceSettings(
        timeout_seconds=float(d.get("timeout_seconds", 30.0)),
        delay_after_dns_records_confirmed_seconds=float(
            d.get("delay_after_dns_records_confirmed_seconds", 5.0),
        ),
        poll_interval_seconds=float(d.get("poll_interval_seconds", 1.0)),
    )


# ---------------------------------------------------------------------------
# DNS
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DnsSettings:
    """Resolver used for authoritative name server discovery."""

    resolvers: tuple[str, ...]
    port: int
    lifetime_seconds: float


def _build_dns(data: dict | None) -> DnsSettings:
    d = data or {}
    return DnsSettings(
        resolvers=tuple(d.get("resolvers", [])),
        port=int(d.get("port", 53)),
        lifetime_seconds=float(d.get("lifetime_seconds", 5.0)),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Log level and output format (``text`` or ``json``)."""

    level: str
    format: str


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "text"),
    )


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AcmeflowSettings:
    """Root of the typed settings tree."""

    issuance: IssuanceSettings
    dns: DnsSettings
    logging: LoggingSettings


def build_settings(data: dict[str, Any] | None) -> AcmeflowSettings:
    """Materialise the typed settings tree from a raw config dict."""
    d = data or {}
    return AcmeflowSettings(
        issuance=_build_issuance(d.get("issuance")),
        dns=_build_dns(d.get("dns")),
        logging=_build_logging(d.get("logging")),
    )
