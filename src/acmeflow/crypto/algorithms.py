"""Key pair algorithm registry.

Single source of truth for the cryptographic parameters behind each
:class:`~acmeflow.core.types.KeyPairAlgorithm`.  Everything that
generates, imports or uses a key reads its parameters from here.
"""

from __future__ import annotations

from dataclasses import dataclass

from acmeflow.core.types import KeyPairAlgorithm

ECDSA = "ECDSA"
RSASSA_PKCS1_V1_5 = "RSASSA-PKCS1-v1_5"
HMAC = "HMAC"


@dataclass(frozen=True)
class AlgorithmProperties:
    """Fixed parameter set for one key algorithm.

    Attributes
    ----------
    name:
        Algorithm family (``ECDSA``, ``RSASSA-PKCS1-v1_5`` or ``HMAC``).
    hash_name:
        Digest used for signing.
    named_curve:
        Curve name for ECDSA, otherwise ``None``.
    modulus_length:
        RSA modulus size in bits, otherwise ``None``.
    public_exponent:
        RSA public exponent, otherwise ``None``.

    """

    name: str
    hash_name: str = "SHA-256"
    named_curve: str | None = None
    modulus_length: int | None = None
    public_exponent: int | None = None


_REGISTRY: dict[KeyPairAlgorithm, AlgorithmProperties] = {
    KeyPairAlgorithm.EC: AlgorithmProperties(
        name=ECDSA,
        named_curve="P-256",
    ),
    KeyPairAlgorithm.RSA: AlgorithmProperties(
        name=RSASSA_PKCS1_V1_5,
        modulus_length=2048,
        public_exponent=65537,
    ),
    KeyPairAlgorithm.RSA_4096: AlgorithmProperties(
        name=RSASSA_PKCS1_V1_5,
        modulus_length=4096,
        public_exponent=65537,
    ),
}

HMAC_PROPERTIES = AlgorithmProperties(name=HMAC)


def get_algorithm_properties(
    algorithm: KeyPairAlgorithm | str = KeyPairAlgorithm.EC,
) -> AlgorithmProperties:
    """Return the parameter set for *algorithm*.

    Accepts the enum member or its string value (``"rsa-4096"``).
    """
    return _REGISTRY[KeyPairAlgorithm(algorithm)]
