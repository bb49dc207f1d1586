"""PKCS#10 certificate signing requests for order finalization."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

from acmeflow.core.errors import ConfigurationError, CryptoProviderError, KeyUsageError
from acmeflow.crypto.keys import SIGN

if TYPE_CHECKING:
    from collections.abc import Sequence

    from acmeflow.crypto.keys import KeyPair

log = logging.getLogger(__name__)


def build_csr(domains: Sequence[str], key_pair: KeyPair) -> bytes:
    """Build a DER-encoded CSR for *domains* signed by *key_pair*.

    The first domain becomes the subject common name; every domain is
    listed in the Subject Alternative Name extension.

    Raises
    ------
    ConfigurationError
        If *domains* is empty.
    KeyUsageError
        If the private key cannot sign.
    CryptoProviderError
        If the key handle is not a ``cryptography`` private key or
        signing is rejected.

    """
    if not domains:
        msg = "Cannot build a CSR without at least one domain"
        raise ConfigurationError(msg)

    private_key = key_pair.private_key
    if SIGN not in private_key.usages:
        msg = "CSR key pair has no signing capability"
        raise KeyUsageError(msg)
    if not isinstance(private_key.handle, (ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey)):
        msg = f"Cannot sign a CSR with key handle '{type(private_key.handle).__name__}'"
        raise CryptoProviderError(msg)

    try:
        csr = (
            x509.CertificateSigningRequestBuilder()
            .subject_name(
                x509.Name(
                    [
                        x509.NameAttribute(NameOID.COMMON_NAME, domains[0]),
                    ]
                )
            )
            .add_extension(
                x509.SubjectAlternativeName(
                    [x509.DNSName(domain) for domain in domains],
                ),
                critical=False,
            )
            .sign(private_key.handle, hashes.SHA256())
        )
    except ValueError as exc:
        msg = f"CSR signing rejected: {exc}"
        raise CryptoProviderError(msg) from exc

    log.debug("Built CSR for %d domain(s)", len(domains))
    return csr.public_bytes(serialization.Encoding.DER)
