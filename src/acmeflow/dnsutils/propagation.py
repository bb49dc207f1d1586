"""DNS propagation confirmation for ``dns-01`` challenges.

Before a ``dns-01`` challenge is submitted the expected TXT record is
read back from the zone's authoritative name servers, bypassing
recursive caches that may still hold an older answer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from acmeflow.core import polling
from acmeflow.core.concurrency import gather_all
from acmeflow.core.errors import DnsPropagationTimeoutError, DnsQueryError, DnsResolutionError, PollTimeoutError
from acmeflow.dnsutils.resolver import get_default_resolver

if TYPE_CHECKING:
    from collections.abc import Sequence

    from acmeflow.dnsutils.resolver import ResolveDns

log = logging.getLogger(__name__)

_ADDRESS_RECORD_TYPES = ("A", "AAAA")


async def find_authoritative_name_server_ips(
    domain: str,
    *,
    resolve_dns: ResolveDns | None = None,
) -> list[str]:
    """Return the addresses of the name servers authoritative for *domain*.

    Walks from *domain* toward the root and takes the first NS set
    found, so ``_acme-challenge.www.example.com`` resolves to the name
    servers of ``example.com`` unless a deeper zone is delegated.

    Raises
    ------
    DnsResolutionError
        If no NS set is found or none of its hosts has an address.

    """
    resolve_dns = resolve_dns or get_default_resolver()
    labels = domain.rstrip(".").split(".")

    name_servers: list[str] = []
    zone = ""
    for idx in range(len(labels)):
        zone = ".".join(labels[idx:])
        name_servers = await resolve_dns(zone, "NS")
        if name_servers:
            break
    if not name_servers:
        msg = f"No NS records found for {domain} or any of its parent zones"
        raise DnsResolutionError(msg)

    address_lists = await gather_all(
        resolve_dns(ns, record_type) for ns in name_servers for record_type in _ADDRESS_RECORD_TYPES
    )
    ips = list(dict.fromkeys(ip for addresses in address_lists for ip in addresses))
    if not ips:
        msg = f"Name servers of zone {zone} ({', '.join(name_servers)}) have no A or AAAA records"
        raise DnsResolutionError(msg)

    log.debug("Authoritative name servers for %s (zone %s): %s", domain, zone, ips)
    return ips


async def poll_dns_txt_record(
    name: str,
    *,
    poll_until: str,
    resolve_dns: ResolveDns | None = None,
    name_server_ips: Sequence[str] | None = None,
    timeout: float = 30.0,
    interval: float = 1.0,
) -> None:
    """Poll until every name server answers a TXT record equal to *poll_until*.

    Parameters
    ----------
    name:
        Fully qualified record name, e.g. ``_acme-challenge.example.com``.
    poll_until:
        The TXT value that must be present.
    resolve_dns:
        Lookup function; the default resolver when ``None``.
    name_server_ips:
        Servers to query directly.  When empty the default resolver's
        own answer is used.
    timeout:
        Total budget in seconds.
    interval:
        Seconds between two rounds of queries.

    Raises
    ------
    DnsPropagationTimeoutError
        If the value is not observed on every server within *timeout*.

    """
    resolve_dns = resolve_dns or get_default_resolver()
    servers: list[str | None] = list(name_server_ips) if name_server_ips else [None]

    async def _has_value(server: str | None) -> bool:
        try:
            values = await resolve_dns(name, "TXT", name_server=server)
        except DnsQueryError as exc:
            log.debug("TXT lookup for %s not answered yet: %s", name, exc.detail)
            return False
        return poll_until in values

    async def _propagated() -> bool:
        return all(await gather_all(_has_value(server) for server in servers))

    try:
        await polling.poll_until(
            _propagated,
            timeout=timeout,
            interval=interval,
            description=f"TXT record {name} on {len(servers)} name server(s)",
        )
    except PollTimeoutError as exc:
        msg = (
            f"TXT record {name} did not show the expected value on all "
            f"{len(servers)} name server(s) within {timeout}s"
        )
        raise DnsPropagationTimeoutError(msg, timeout=timeout, record_name=name) from exc

    log.info("TXT record %s confirmed on %d name server(s)", name, len(servers))
