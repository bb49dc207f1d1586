"""Cryptographic provider capability.

Key operations never reach for a global crypto backend; they go through
a :class:`CryptoProvider` handed to them (``provider=None`` selects the
process-wide :class:`DefaultCryptoProvider`).  Tests can substitute a
fake provider to make key handling deterministic.

Security note:
    ECDSA signatures are produced and accepted in the fixed-width
    ``r || s`` form used by JOSE, not DER.
"""

from __future__ import annotations

import abc
from typing import Any

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives import hmac as crypto_hmac
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa, utils

from acmeflow.core.errors import CryptoProviderError
from acmeflow.crypto.algorithms import ECDSA, HMAC, RSASSA_PKCS1_V1_5, AlgorithmProperties
from acmeflow.crypto.jwk import jwk_to_public_key, private_key_to_jwk

_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "SHA-256": hashes.SHA256,
    "SHA-384": hashes.SHA384,
    "SHA-512": hashes.SHA512,
}

_EC_CURVES: dict[str, type[ec.EllipticCurve]] = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}

_PROVIDER_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


class CryptoProvider(abc.ABC):
    """Operations a key store must support.

    Handles returned by the provider are opaque to callers; they are
    only ever passed back into the same provider.
    """

    @abc.abstractmethod
    def generate_key_pair(self, algorithm: AlgorithmProperties) -> tuple[Any, Any]:
        """Return ``(private_handle, public_handle)`` for a fresh key pair."""

    @abc.abstractmethod
    def load_pkcs8_private_key(self, der: bytes) -> Any:  # noqa: ANN401
        """Parse PKCS#8 DER bytes into a private key handle."""

    @abc.abstractmethod
    def describe_private_key(self, handle: Any) -> AlgorithmProperties:  # noqa: ANN401
        """Return the family/curve/modulus of a private key handle."""

    @abc.abstractmethod
    def export_jwk(self, handle: Any) -> dict[str, Any]:  # noqa: ANN401
        """Export a private key handle as a JWK dictionary."""

    @abc.abstractmethod
    def import_public_jwk(self, jwk_dict: dict[str, Any]) -> Any:  # noqa: ANN401
        """Import a public JWK dictionary as a public key handle."""

    @abc.abstractmethod
    def load_hmac_secret(self, secret: bytes) -> Any:  # noqa: ANN401
        """Wrap raw secret bytes as an HMAC key handle."""

    @abc.abstractmethod
    def sign(self, algorithm: AlgorithmProperties, handle: Any, data: bytes) -> bytes:  # noqa: ANN401
        """Sign *data* with a private or secret key handle."""

    @abc.abstractmethod
    def verify(
        self,
        algorithm: AlgorithmProperties,
        handle: Any,  # noqa: ANN401
        signature: bytes,
        data: bytes,
    ) -> bool:
        """Return whether *signature* over *data* is valid for *handle*."""

    @abc.abstractmethod
    def export_private_pem(self, handle: Any) -> str:  # noqa: ANN401
        """Serialise a private key handle as PKCS#8 PEM."""

    @abc.abstractmethod
    def export_public_pem(self, handle: Any) -> str:  # noqa: ANN401
        """Serialise a public key handle as SubjectPublicKeyInfo PEM."""


class DefaultCryptoProvider(CryptoProvider):
    """Provider backed by the ``cryptography`` library (OpenSSL)."""

    def generate_key_pair(self, algorithm: AlgorithmProperties) -> tuple[Any, Any]:
        try:
            if algorithm.name == ECDSA:
                private_key = ec.generate_private_key(_curve(algorithm))
            elif algorithm.name == RSASSA_PKCS1_V1_5:
                private_key = rsa.generate_private_key(
                    public_exponent=algorithm.public_exponent or 65537,
                    key_size=algorithm.modulus_length or 2048,
                )
            else:
                msg = f"Cannot generate a key pair for algorithm '{algorithm.name}'"
                raise CryptoProviderError(msg)
        except _PROVIDER_ERRORS as exc:
            msg = f"Key generation rejected for {algorithm.name}: {exc}"
            raise CryptoProviderError(msg) from exc
        return private_key, private_key.public_key()

    def load_pkcs8_private_key(self, der: bytes) -> Any:  # noqa: ANN401
        try:
            return serialization.load_der_private_key(der, password=None)
        except _PROVIDER_ERRORS as exc:
            msg = f"Invalid PKCS#8 private key: {exc}"
            raise CryptoProviderError(msg) from exc

    def describe_private_key(self, handle: Any) -> AlgorithmProperties:  # noqa: ANN401
        if isinstance(handle, ec.EllipticCurvePrivateKey):
            curve = next(
                (name for name, cls in _EC_CURVES.items() if isinstance(handle.curve, cls)),
                handle.curve.name,
            )
            return AlgorithmProperties(name=ECDSA, named_curve=curve)
        if isinstance(handle, rsa.RSAPrivateKey):
            return AlgorithmProperties(
                name=RSASSA_PKCS1_V1_5,
                modulus_length=handle.key_size,
                public_exponent=handle.private_numbers().public_numbers.e,
            )
        msg = f"Unsupported private key type '{type(handle).__name__}'"
        raise CryptoProviderError(msg)

    def export_jwk(self, handle: Any) -> dict[str, Any]:  # noqa: ANN401
        return private_key_to_jwk(handle)

    def import_public_jwk(self, jwk_dict: dict[str, Any]) -> Any:  # noqa: ANN401
        return jwk_to_public_key(jwk_dict)

    def load_hmac_secret(self, secret: bytes) -> bytes:
        return bytes(secret)

    def sign(self, algorithm: AlgorithmProperties, handle: Any, data: bytes) -> bytes:  # noqa: ANN401
        hash_alg = _hash(algorithm)
        try:
            if algorithm.name == HMAC:
                mac = crypto_hmac.HMAC(handle, hash_alg)
                mac.update(data)
                return mac.finalize()
            if algorithm.name == ECDSA:
                der_sig = handle.sign(data, ec.ECDSA(hash_alg))
                r, s = utils.decode_dss_signature(der_sig)
                size = _component_size(handle.curve)
                return r.to_bytes(size, "big") + s.to_bytes(size, "big")
            if algorithm.name == RSASSA_PKCS1_V1_5:
                return handle.sign(data, padding.PKCS1v15(), hash_alg)
        except (*_PROVIDER_ERRORS, AttributeError) as exc:
            msg = f"Signing rejected for {algorithm.name}: {exc}"
            raise CryptoProviderError(msg) from exc
        msg = f"Unsupported signing algorithm '{algorithm.name}'"
        raise CryptoProviderError(msg)

    def verify(
        self,
        algorithm: AlgorithmProperties,
        handle: Any,  # noqa: ANN401
        signature: bytes,
        data: bytes,
    ) -> bool:
        hash_alg = _hash(algorithm)
        try:
            if algorithm.name == HMAC:
                mac = crypto_hmac.HMAC(handle, hash_alg)
                mac.update(data)
                mac.verify(signature)
                return True
            if algorithm.name == ECDSA:
                # JWS EC signatures are raw r||s (not DER), convert to DER
                size = _component_size(handle.curve)
                if len(signature) != 2 * size:
                    return False
                r = int.from_bytes(signature[:size], "big")
                s = int.from_bytes(signature[size:], "big")
                handle.verify(utils.encode_dss_signature(r, s), data, ec.ECDSA(hash_alg))
                return True
            if algorithm.name == RSASSA_PKCS1_V1_5:
                handle.verify(signature, data, padding.PKCS1v15(), hash_alg)
                return True
        except InvalidSignature:
            return False
        except (*_PROVIDER_ERRORS, AttributeError) as exc:
            msg = f"Verification rejected for {algorithm.name}: {exc}"
            raise CryptoProviderError(msg) from exc
        msg = f"Unsupported verification algorithm '{algorithm.name}'"
        raise CryptoProviderError(msg)

    def export_private_pem(self, handle: Any) -> str:  # noqa: ANN401
        return handle.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")

    def export_public_pem(self, handle: Any) -> str:  # noqa: ANN401
        return handle.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")


def _hash(algorithm: AlgorithmProperties) -> hashes.HashAlgorithm:
    try:
        return _HASHES[algorithm.hash_name]()
    except KeyError:
        msg = f"Unsupported hash '{algorithm.hash_name}'"
        raise CryptoProviderError(msg) from None


def _curve(algorithm: AlgorithmProperties) -> ec.EllipticCurve:
    try:
        return _EC_CURVES[algorithm.named_curve or ""]()
    except KeyError:
        msg = f"Unsupported EC curve '{algorithm.named_curve}'"
        raise CryptoProviderError(msg) from None


def _component_size(curve: ec.EllipticCurve) -> int:
    return (curve.key_size + 7) // 8


_default_provider: CryptoProvider | None = None


def get_default_provider() -> CryptoProvider:
    """Return the process-wide :class:`DefaultCryptoProvider`."""
    global _default_provider  # noqa: PLW0603
    if _default_provider is None:
        _default_provider = DefaultCryptoProvider()
    return _default_provider
