"""DNS lookups and propagation checks for ``dns-01`` challenges."""

from acmeflow.dnsutils.propagation import find_authoritative_name_server_ips, poll_dns_txt_record
from acmeflow.dnsutils.resolver import DnsPythonResolver, ResolveDns, get_default_resolver

__all__ = [
    "DnsPythonResolver",
    "ResolveDns",
    "find_authoritative_name_server_ips",
    "get_default_resolver",
    "poll_dns_txt_record",
]
