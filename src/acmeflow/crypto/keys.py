"""Key pair generation, HMAC key import and signing.

Usage::

    from acmeflow.crypto.keys import generate_key_pair, sign, verify

    pair = generate_key_pair("rsa")
    sig = sign(pair.private_key, b"payload")
    assert verify(pair.public_key, sig, b"payload")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from acmeflow.core.errors import KeyUsageError, ParseError
from acmeflow.core.types import KeyPairAlgorithm
from acmeflow.crypto.algorithms import HMAC_PROPERTIES, AlgorithmProperties, get_algorithm_properties
from acmeflow.crypto.encoding import b64url_decode
from acmeflow.crypto.provider import get_default_provider

if TYPE_CHECKING:
    from acmeflow.crypto.provider import CryptoProvider

log = logging.getLogger(__name__)

SIGN = "sign"
VERIFY = "verify"


@dataclass(frozen=True)
class CryptoKey:
    """An opaque key handle tagged with its algorithm and capabilities.

    Attributes
    ----------
    kind:
        ``"private"``, ``"public"`` or ``"secret"``.
    algorithm:
        Parameters the key was created or imported under.
    usages:
        Operations the key may be used for (``sign`` / ``verify``).
    handle:
        Provider-specific key object.
    extractable:
        Whether the key material may be exported.

    """

    kind: str
    algorithm: AlgorithmProperties
    usages: frozenset[str]
    handle: Any
    extractable: bool = True

    def __repr__(self) -> str:
        return (
            f"CryptoKey(kind={self.kind!r}, algorithm={self.algorithm.name!r}, "
            f"usages={sorted(self.usages)!r})"
        )


@dataclass(frozen=True)
class KeyPair:
    """A private key (``sign``) and its public key (``verify``)."""

    private_key: CryptoKey
    public_key: CryptoKey


def generate_key_pair(
    algorithm: KeyPairAlgorithm | str = KeyPairAlgorithm.EC,
    *,
    provider: CryptoProvider | None = None,
) -> KeyPair:
    """Generate a fresh key pair under the registry parameters for *algorithm*.

    Raises
    ------
    CryptoProviderError
        If the provider rejects the parameters.

    """
    provider = provider or get_default_provider()
    properties = get_algorithm_properties(algorithm)
    private_handle, public_handle = provider.generate_key_pair(properties)
    log.debug("Generated %s key pair", KeyPairAlgorithm(algorithm).value)
    return KeyPair(
        private_key=CryptoKey("private", properties, frozenset({SIGN}), private_handle),
        public_key=CryptoKey("public", properties, frozenset({VERIFY}), public_handle),
    )


def import_hmac_key(
    secret: str,
    *,
    provider: CryptoProvider | None = None,
) -> CryptoKey:
    """Import a base64url-encoded secret as an HMAC/SHA-256 key.

    The key is not extractable and carries both ``sign`` and ``verify``.

    Raises
    ------
    ParseError
        If *secret* is not valid base64url or decodes to nothing.

    """
    provider = provider or get_default_provider()
    raw = b64url_decode(secret)
    if not raw:
        msg = "HMAC secret must not be empty"
        raise ParseError(msg)
    return CryptoKey(
        "secret",
        HMAC_PROPERTIES,
        frozenset({SIGN, VERIFY}),
        provider.load_hmac_secret(raw),
        extractable=False,
    )


def sign(
    key: CryptoKey,
    data: bytes,
    *,
    provider: CryptoProvider | None = None,
) -> bytes:
    """Sign *data* with *key* using the key's algorithm and SHA-256.

    Raises
    ------
    KeyUsageError
        If *key* lacks the ``sign`` capability.
    CryptoProviderError
        If the provider rejects the operation.

    """
    if SIGN not in key.usages:
        msg = f"{key.kind.capitalize()} {key.algorithm.name} key cannot be used to sign"
        raise KeyUsageError(msg)
    provider = provider or get_default_provider()
    return provider.sign(key.algorithm, key.handle, bytes(data))


def verify(
    key: CryptoKey,
    signature: bytes,
    data: bytes,
    *,
    provider: CryptoProvider | None = None,
) -> bool:
    """Return ``True`` if *signature* over *data* is valid for *key*.

    Raises
    ------
    KeyUsageError
        If *key* lacks the ``verify`` capability.

    """
    if VERIFY not in key.usages:
        msg = f"{key.kind.capitalize()} {key.algorithm.name} key cannot be used to verify"
        raise KeyUsageError(msg)
    provider = provider or get_default_provider()
    return provider.verify(key.algorithm, key.handle, bytes(signature), bytes(data))
