"""Certificate issuance workflow.

:func:`request_certificate` drives one order from creation to a
downloaded certificate:

1. create the order for the configured domains;
2. probe it once for ``ready`` with a near-zero timeout, so authorities
   that reuse earlier valid authorizations skip the challenge phase;
3. otherwise fulfil one challenge per authorization through the
   configured :data:`ChallengeStrategy` (``dns-01`` or ``http-01``);
4. wait for ``ready``;
5. finalize with a freshly generated certificate key pair;
6. wait for ``valid``;
7. download the certificate;
8. return certificate, key pair and order together.

Nothing is retried at this level.  Every wait except the readiness
probe is bounded by :attr:`RequestCertificateConfig.timeout` and a
timeout aborts the whole call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from acmeflow.core.concurrency import gather_all
from acmeflow.core.errors import ConfigurationError, MissingChallengeError, PollTimeoutError
from acmeflow.core.types import ChallengeType, OrderStatus
from acmeflow.dnsutils.propagation import find_authoritative_name_server_ips, poll_dns_txt_record
from acmeflow.logging.setup import issuance_context

if TYPE_CHECKING:
    from acmeflow.acme.resources import (
        AcmeAccount,
        AcmeChallenge,
        AcmeOrder,
        DnsTxtRecord,
        HttpResource,
    )
    from acmeflow.config.settings import IssuanceSettings
    from acmeflow.crypto.keys import KeyPair
    from acmeflow.dnsutils.resolver import ResolveDns

log = logging.getLogger(__name__)

READINESS_PROBE_TIMEOUT = 0.001
"""Budget in seconds for the initial ``ready`` probe; one status fetch only."""


# ---------------------------------------------------------------------------
# Challenge strategies
# ---------------------------------------------------------------------------


UpdateDnsRecords = Callable[[list["DnsTxtRecord"]], Awaitable[None]]
UpdateHttpResources = Callable[[list["HttpResource"]], Awaitable[None]]


@dataclass(frozen=True)
class DnsChallengeStrategy:
    """Fulfil ``dns-01`` challenges by publishing TXT records.

    *update_dns_records* receives every expected record of the order in
    a single call and must return once they are published.
    """

    update_dns_records: UpdateDnsRecords

    @property
    def challenge_type(self) -> ChallengeType:
        return ChallengeType.DNS_01


@dataclass(frozen=True)
class HttpChallengeStrategy:
    """Fulfil ``http-01`` challenges by serving key authorizations.

    *update_http_resources* receives every expected resource of the
    order in a single call and must return once they are served.
    """

    update_http_resources: UpdateHttpResources

    @property
    def challenge_type(self) -> ChallengeType:
        return ChallengeType.HTTP_01


ChallengeStrategy = DnsChallengeStrategy | HttpChallengeStrategy


def challenge_strategy_from_callbacks(
    *,
    update_dns_records: UpdateDnsRecords | None = None,
    update_http_resources: UpdateHttpResources | None = None,
) -> ChallengeStrategy | None:
    """Build a strategy from at most one fulfilment callback.

    Returns ``None`` when neither callback is given.  Callback-pair
    APIs commonly fall back to DNS when both are supplied; here passing
    both is an error, so callers relying on that preference must drop
    the HTTP callback.

    Raises
    ------
    ConfigurationError
        If both callbacks are given.

    """
    if update_dns_records is not None and update_http_resources is not None:
        msg = "update_dns_records and update_http_resources are mutually exclusive"
        raise ConfigurationError(msg)
    if update_dns_records is not None:
        return DnsChallengeStrategy(update_dns_records)
    if update_http_resources is not None:
        return HttpChallengeStrategy(update_http_resources)
    return None


# ---------------------------------------------------------------------------
# Configuration and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestCertificateConfig:
    """Input of :func:`request_certificate`.

    Attributes
    ----------
    account:
        Account the order is created under.
    domains:
        Identifiers to certify, in order.  Must not be empty.
    challenge_strategy:
        How required challenges are fulfilled.  Orders that are not
        already ``ready`` fail with :class:`ConfigurationError` when
        this is ``None``.
    delay_after_dns_records_confirmed:
        Seconds to wait after every TXT record was confirmed on the
        authoritative servers and before challenges are submitted.
    resolve_dns:
        DNS lookup override; the configured resolver when ``None``.
    timeout:
        Seconds allowed for each propagation check and each order poll.
    poll_interval:
        Seconds between two rounds of TXT lookups.

    """

    account: AcmeAccount
    domains: Sequence[str]
    challenge_strategy: ChallengeStrategy | None = None
    delay_after_dns_records_confirmed: float = 5.0
    resolve_dns: ResolveDns | None = None
    timeout: float = 30.0
    poll_interval: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "domains", tuple(self.domains))
        if not self.domains:
            msg = "At least one domain is required to request a certificate"
            raise ConfigurationError(msg)
        if self.timeout <= 0:
            msg = f"timeout must be positive, got {self.timeout}"
            raise ConfigurationError(msg)
        if self.delay_after_dns_records_confirmed < 0:
            msg = (
                "delay_after_dns_records_confirmed must not be negative, "
                f"got {self.delay_after_dns_records_confirmed}"
            )
            raise ConfigurationError(msg)

    @classmethod
    def from_settings(
        cls,
        settings: IssuanceSettings,
        *,
        account: AcmeAccount,
        domains: Sequence[str],
        challenge_strategy: ChallengeStrategy | None = None,
        resolve_dns: ResolveDns | None = None,
    ) -> RequestCertificateConfig:
        """Build a config with timings taken from the ``issuance`` settings."""
        return cls(
            account=account,
            domains=domains,
            challenge_strategy=challenge_strategy,
            delay_after_dns_records_confirmed=settings.delay_after_dns_records_confirmed_seconds,
            resolve_dns=resolve_dns,
            timeout=settings.timeout_seconds,
            poll_interval=settings.poll_interval_seconds,
        )


@dataclass(frozen=True)
class ReadinessProbe:
    """Outcome of :func:`probe_order_ready`."""

    ready: bool
    reason: str | None = None


@dataclass(frozen=True)
class CertificateResult:
    """What :func:`request_certificate` returns."""

    certificate: str
    cert_key_pair: KeyPair
    order: AcmeOrder


# ---------------------------------------------------------------------------
# Readiness probe
# ---------------------------------------------------------------------------


async def probe_order_ready(
    order: AcmeOrder,
    *,
    timeout: float = READINESS_PROBE_TIMEOUT,
) -> ReadinessProbe:
    """Check once whether *order* is already ``ready``.

    A poll timeout means "not ready yet" and is returned as
    ``ReadinessProbe(ready=False, reason="timeout")``.  Any other error,
    including an order that went ``invalid``, propagates.
    """
    try:
        await order.poll_status(poll_until=OrderStatus.READY, timeout=timeout)
    except PollTimeoutError:
        return ReadinessProbe(ready=False, reason="timeout")
    return ReadinessProbe(ready=True)


# ---------------------------------------------------------------------------
# Challenge phase
# ---------------------------------------------------------------------------


def _select_challenges(order: AcmeOrder, challenge_type: ChallengeType) -> list[AcmeChallenge]:
    challenges = []
    for authorization in order.authorizations:
        challenge = authorization.find_challenge(challenge_type)
        if challenge is None:
            msg = f"Authorization {authorization} does not offer a {challenge_type} challenge"
            raise MissingChallengeError(
                msg,
                authorization=authorization,
                challenge_type=challenge_type,
            )
        challenges.append(challenge)
    return challenges


async def _confirm_dns_record(record: DnsTxtRecord, config: RequestCertificateConfig) -> None:
    name_server_ips = await find_authoritative_name_server_ips(
        record.name,
        resolve_dns=config.resolve_dns,
    )
    await poll_dns_txt_record(
        record.name,
        poll_until=record.content,
        resolve_dns=config.resolve_dns,
        name_server_ips=name_server_ips,
        timeout=config.timeout,
        interval=config.poll_interval,
    )


async def _fulfil_dns01(
    order: AcmeOrder,
    strategy: DnsChallengeStrategy,
    config: RequestCertificateConfig,
) -> None:
    challenges = _select_challenges(order, ChallengeType.DNS_01)
    records = await gather_all(c.get_dns_record_answer() for c in challenges)

    log.info("Publishing %d DNS TXT record(s)", len(records))
    await strategy.update_dns_records(list(records))

    await gather_all(_confirm_dns_record(record, config) for record in records)
    log.info(
        "All DNS TXT records confirmed, waiting %.1fs before submitting challenges",
        config.delay_after_dns_records_confirmed,
    )
    await asyncio.sleep(config.delay_after_dns_records_confirmed)

    await gather_all(c.submit() for c in challenges)
    log.info("Submitted %d dns-01 challenge(s)", len(challenges))


async def _fulfil_http01(
    order: AcmeOrder,
    strategy: HttpChallengeStrategy,
) -> None:
    challenges = _select_challenges(order, ChallengeType.HTTP_01)
    resources = await gather_all(c.get_http_resource() for c in challenges)

    log.info("Publishing %d HTTP challenge resource(s)", len(resources))
    await strategy.update_http_resources(list(resources))

    await gather_all(c.submit() for c in challenges)
    log.info("Submitted %d http-01 challenge(s)", len(challenges))


async def _fulfil_challenges(order: AcmeOrder, config: RequestCertificateConfig) -> None:
    strategy = config.challenge_strategy
    if isinstance(strategy, DnsChallengeStrategy):
        await _fulfil_dns01(order, strategy, config)
    elif isinstance(strategy, HttpChallengeStrategy):
        await _fulfil_http01(order, strategy)
    else:
        msg = (
            f"Order {order.url} requires challenges but no DNS or HTTP "
            "fulfilment callback is configured"
        )
        raise ConfigurationError(msg)


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


async def request_certificate(config: RequestCertificateConfig) -> CertificateResult:
    """Obtain a certificate for ``config.domains``.

    Parameters
    ----------
    config:
        Account, domains, challenge strategy and timings.

    Returns
    -------
    CertificateResult
        The PEM certificate, the key pair it was issued for, and the
        order.

    Raises
    ------
    ConfigurationError
        If challenges are required but no strategy is configured.
    MissingChallengeError
        If an authorization does not offer the strategy's challenge type.
        Raised before any record is fetched or published.
    PollTimeoutError
        If DNS propagation or an order poll exceeds ``config.timeout``.
    OrderStatusError
        If the order turns ``invalid`` while being polled.

    """
    order = await config.account.create_order(domains=list(config.domains))

    with issuance_context(order.url, config.domains):
        log.info("Created order %s for %s", order.url, ", ".join(config.domains))

        probe = await probe_order_ready(order)
        if probe.ready:
            log.info("Order %s is already ready, skipping challenges", order.url)
        else:
            log.info("Order %s is not ready (%s), fulfilling challenges", order.url, probe.reason)
            await _fulfil_challenges(order, config)
            await order.poll_status(poll_until=OrderStatus.READY, timeout=config.timeout)

        cert_key_pair = await order.finalize()
        await order.poll_status(poll_until=OrderStatus.VALID, timeout=config.timeout)

        certificate = await order.get_certificate()
        log.info("Certificate issued for order %s", order.url)

    return CertificateResult(certificate=certificate, cert_key_pair=cert_key_pair, order=order)
