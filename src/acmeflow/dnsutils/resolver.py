"""DNS lookups used for propagation checks.

Everything that queries DNS goes through a :data:`ResolveDns` callable::

    values = await resolve_dns("example.com", "NS")
    values = await resolve_dns("_acme-challenge.example.com", "TXT", name_server="192.0.2.53")

It returns plain text values (joined TXT strings, addresses, NS
targets), an empty list when the name or record type does not exist,
and raises :class:`~acmeflow.core.errors.DnsQueryError` for transient
failures.  :class:`DnsPythonResolver` is the default implementation;
callers may pass any coroutine function with the same signature.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import dns.asyncresolver
import dns.exception
import dns.rdatatype
import dns.resolver

from acmeflow.config.acmeflow_config import get_config
from acmeflow.core.errors import DnsQueryError

if TYPE_CHECKING:
    from acmeflow.config.settings import DnsSettings

log = logging.getLogger(__name__)


class ResolveDns(Protocol):
    async def __call__(
        self,
        name: str,
        record_type: str,
        *,
        name_server: str | None = None,
    ) -> list[str]: ...


def _rdata_text(rdata, rdtype: dns.rdatatype.RdataType) -> str:
    if rdtype == dns.rdatatype.TXT:
        # TXT rdata .strings is a tuple of bytes segments.
        # Concatenate them (per RFC 7208 §3.3) and decode.
        return b"".join(rdata.strings).decode("ascii", errors="replace")
    if rdtype in (dns.rdatatype.A, dns.rdatatype.AAAA):
        return rdata.address
    if rdtype in (dns.rdatatype.NS, dns.rdatatype.CNAME):
        return rdata.target.to_text()
    return rdata.to_text()


class DnsPythonResolver:
    """:data:`ResolveDns` implementation on top of ``dns.asyncresolver``.

    Parameters
    ----------
    resolvers:
        Recursive resolvers to use instead of the system configuration.
    port:
        Destination port for every query.
    lifetime:
        Total seconds a single lookup may take, retries included.

    """

    def __init__(
        self,
        *,
        resolvers: tuple[str, ...] = (),
        port: int = 53,
        lifetime: float = 5.0,
    ) -> None:
        self._resolvers = tuple(resolvers)
        self._port = port
        self._lifetime = lifetime

    @classmethod
    def from_settings(cls, settings: DnsSettings) -> DnsPythonResolver:
        return cls(
            resolvers=settings.resolvers,
            port=settings.port,
            lifetime=settings.lifetime_seconds,
        )

    def _build_resolver(self, name_server: str | None) -> dns.asyncresolver.Resolver:
        if name_server is not None:
            resolver = dns.asyncresolver.Resolver(configure=False)
            resolver.nameservers = [name_server]
        else:
            resolver = dns.asyncresolver.Resolver()
            if self._resolvers:
                resolver.nameservers = list(self._resolvers)
        resolver.port = self._port
        resolver.lifetime = self._lifetime
        return resolver

    async def __call__(
        self,
        name: str,
        record_type: str,
        *,
        name_server: str | None = None,
    ) -> list[str]:
        rdtype = dns.rdatatype.from_text(record_type)
        resolver = self._build_resolver(name_server)
        try:
            answer = await resolver.resolve(name, rdtype)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            return []
        except dns.exception.DNSException as exc:
            target = name_server or "default resolver"
            msg = f"DNS {record_type} query for {name} at {target} failed: {exc}"
            raise DnsQueryError(msg) from exc
        values = [_rdata_text(rdata, rdtype) for rdata in answer]
        log.debug("%s %s at %s: %s", record_type, name, name_server or "default resolver", values)
        return values


def get_default_resolver() -> DnsPythonResolver:
    """Return a resolver built from the loaded configuration, if any."""
    try:
        settings = get_config().settings.dns
    except RuntimeError:
        return DnsPythonResolver()
    return DnsPythonResolver.from_settings(settings)
