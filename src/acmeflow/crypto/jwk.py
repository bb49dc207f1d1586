"""JSON Web Key helpers (RFC 7517, RFC 7518 §6, RFC 7638).

JWKs are the structured export format used to derive a public key from
an imported private key, and the input for account thumbprints and
challenge key authorizations.  Conversion failures raise
:class:`~acmeflow.core.errors.KeyImportError`.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from cryptography.hazmat.primitives.asymmetric import ec, rsa

from acmeflow.core.errors import KeyImportError, ParseError
from acmeflow.crypto.encoding import b64url_decode, b64url_encode

_JWK_CURVES: dict[str, type[ec.EllipticCurve]] = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}
_CURVE_NAMES = {curve.name: crv for crv, curve in _JWK_CURVES.items()}

PRIVATE_MEMBERS = frozenset({"d", "p", "q", "dp", "dq", "qi", "oth"})
"""JWK members that only exist on private keys (RFC 7518 §6.2.2, §6.3.2)."""

REQUIRED_PUBLIC_MEMBERS: dict[str, frozenset[str]] = {
    "EC": frozenset({"crv", "x", "y"}),
    "RSA": frozenset({"n", "e"}),
}

# RFC 7638 §3.2: the members hashed for a thumbprint, in lexicographic order
_THUMBPRINT_MEMBERS: dict[str, tuple[str, ...]] = {
    "EC": ("crv", "kty", "x", "y"),
    "RSA": ("e", "kty", "n"),
}


def _int_to_b64(value: int, length: int | None = None) -> str:
    if length is None:
        length = max(1, (value.bit_length() + 7) // 8)
    return b64url_encode(value.to_bytes(length, "big"))


def _b64_to_int(value: str) -> int:
    return int.from_bytes(b64url_decode(value), "big")


# ---------------------------------------------------------------------------
# Private key export
# ---------------------------------------------------------------------------


def private_key_to_jwk(
    private_key: ec.EllipticCurvePrivateKey | rsa.RSAPrivateKey,
) -> dict[str, Any]:
    """Export a private key as a JWK dictionary.

    The result holds the public parameters alongside the private ones,
    which is what allows the public key to be derived from it.
    """
    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        crv = _CURVE_NAMES.get(private_key.curve.name)
        if crv is None:
            msg = f"Unsupported EC curve '{private_key.curve.name}'"
            raise KeyImportError(msg)
        width = (private_key.curve.key_size + 7) // 8
        numbers = private_key.private_numbers()
        point = numbers.public_numbers
        return {
            "kty": "EC",
            "crv": crv,
            "x": _int_to_b64(point.x, width),
            "y": _int_to_b64(point.y, width),
            "d": _int_to_b64(numbers.private_value, width),
        }

    if isinstance(private_key, rsa.RSAPrivateKey):
        numbers = private_key.private_numbers()
        members = {
            "n": numbers.public_numbers.n,
            "e": numbers.public_numbers.e,
            "d": numbers.d,
            "p": numbers.p,
            "q": numbers.q,
            "dp": numbers.dmp1,
            "dq": numbers.dmq1,
            "qi": numbers.iqmp,
        }
        return {"kty": "RSA", **{name: _int_to_b64(value) for name, value in members.items()}}

    msg = f"Unsupported private key type '{type(private_key).__name__}'"
    raise KeyImportError(msg)


def public_jwk(jwk_dict: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *jwk_dict* without its private members."""
    return {k: v for k, v in jwk_dict.items() if k not in PRIVATE_MEMBERS}


# ---------------------------------------------------------------------------
# Public key import
# ---------------------------------------------------------------------------


def _rsa_public_key(jwk_dict: dict[str, Any]) -> rsa.RSAPublicKey:
    try:
        numbers = rsa.RSAPublicNumbers(_b64_to_int(jwk_dict["e"]), _b64_to_int(jwk_dict["n"]))
        return numbers.public_key()
    except (KeyError, ValueError, ParseError) as exc:
        msg = f"Invalid RSA JWK: {exc}"
        raise KeyImportError(msg) from exc


def _ec_public_key(jwk_dict: dict[str, Any]) -> ec.EllipticCurvePublicKey:
    crv = jwk_dict.get("crv")
    curve = _JWK_CURVES.get(crv)  # type: ignore[arg-type]
    if curve is None:
        msg = f"Unsupported EC curve '{crv}'; expected one of {sorted(_JWK_CURVES)}"
        raise KeyImportError(msg)
    try:
        numbers = ec.EllipticCurvePublicNumbers(
            _b64_to_int(jwk_dict["x"]),
            _b64_to_int(jwk_dict["y"]),
            curve(),
        )
        return numbers.public_key()
    except (KeyError, ValueError, ParseError) as exc:
        msg = f"Invalid EC JWK: {exc}"
        raise KeyImportError(msg) from exc


_PUBLIC_KEY_LOADERS = {
    "RSA": _rsa_public_key,
    "EC": _ec_public_key,
}


def jwk_to_public_key(
    jwk_dict: dict[str, Any],
) -> rsa.RSAPublicKey | ec.EllipticCurvePublicKey:
    """Load the public key described by an ``EC`` or ``RSA`` JWK.

    Private members, if present, are ignored.

    Raises
    ------
    KeyImportError
        If the key type or curve is unsupported, a member is missing or
        not base64url, or the parameters do not form a valid key.

    """
    kty = jwk_dict.get("kty")
    loader = _PUBLIC_KEY_LOADERS.get(kty)  # type: ignore[arg-type]
    if loader is None:
        msg = f"Unsupported key type '{kty}'"
        raise KeyImportError(msg)
    return loader(jwk_dict)


# ---------------------------------------------------------------------------
# Thumbprint and key authorization
# ---------------------------------------------------------------------------


def compute_thumbprint(jwk_dict: dict[str, Any]) -> str:
    """Return the base64url SHA-256 JWK thumbprint of *jwk_dict* (RFC 7638)."""
    kty = jwk_dict.get("kty")
    members = _THUMBPRINT_MEMBERS.get(kty)  # type: ignore[arg-type]
    if members is None:
        msg = f"Cannot compute thumbprint for kty '{kty}'"
        raise KeyImportError(msg)
    canonical = json.dumps({name: jwk_dict[name] for name in members}, separators=(",", ":"))
    return b64url_encode(hashlib.sha256(canonical.encode("ascii")).digest())


def key_authorization(token: str, jwk_dict: dict[str, Any]) -> str:
    """Compute the key authorization string: ``token.thumbprint``."""
    return f"{token}.{compute_thumbprint(jwk_dict)}"
