"""Unit tests for acmeflow.crypto.jwk: JWK conversion and thumbprints."""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from acmeflow.core.errors import KeyImportError
from acmeflow.crypto.jwk import (
    compute_thumbprint,
    jwk_to_public_key,
    key_authorization,
    private_key_to_jwk,
    public_jwk,
)

# RFC 7638 §3.1 example key and its SHA-256 thumbprint
_RFC7638_JWK = {
    "kty": "RSA",
    "n": (
        "0vx7agoebGcQSuuPiLJXZptN9nndrQmbXEps2aiAFbWhM78LhWx4cbbfAAtVT86zwu1RK7aPFFxuhDR1L6tSoc_BJECP"
        "ebWKRXjBZCiFV4n3oknjhMstn64tZ_2W-5JsGY4Hc5n9yBXArwl93lqt7_RN5w6Cf0h4QyQ5v-65YGjQR0_FDW2QvzqY"
        "368QQMicAtaSqzs8KJZgnYb9c7d0zgdAZHzu6qMQvRL5hajrn1n91CbOpbISD08qNLyrdkt-bFTWhAI4vMQFh6WeZu0f"
        "M4lFd2NcRwr3XPksINHaQ-G_xBniIqbw0Ls1jF44-csFCur-kEgU8awapJzKnqDKgw"
    ),
    "e": "AQAB",
    "alg": "RS256",
    "kid": "2011-04-29",
}
_RFC7638_THUMBPRINT = "NzbLsXh8uDCcd-6MNwXF4W_7noWXFZAfHkxZsRGC9Xs"


# ---------------------------------------------------------------------------
# private_key_to_jwk / public_jwk
# ---------------------------------------------------------------------------


class TestPrivateKeyToJwk:
    def test_ec_members(self):
        key = ec.generate_private_key(ec.SECP256R1())
        jwk = private_key_to_jwk(key)
        assert jwk["kty"] == "EC"
        assert jwk["crv"] == "P-256"
        assert set(jwk) == {"kty", "crv", "x", "y", "d"}
        # 32-byte coordinates encode to 43 base64url characters
        assert len(jwk["x"]) == len(jwk["y"]) == len(jwk["d"]) == 43

    def test_rsa_members(self):
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        jwk = private_key_to_jwk(key)
        assert jwk["kty"] == "RSA"
        assert jwk["e"] == "AQAB"
        assert {"n", "e", "d", "p", "q", "dp", "dq", "qi"} <= set(jwk)

    def test_unsupported_key(self):
        with pytest.raises(KeyImportError, match="Unsupported private key type"):
            private_key_to_jwk(ed25519.Ed25519PrivateKey.generate())

    def test_public_jwk_strips_private_members(self):
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        result = public_jwk(private_key_to_jwk(key))
        assert set(result) == {"kty", "n", "e"}

    @pytest.mark.parametrize(
        "key_factory",
        [
            lambda: ec.generate_private_key(ec.SECP256R1()),
            lambda: ec.generate_private_key(ec.SECP384R1()),
            lambda: rsa.generate_private_key(public_exponent=65537, key_size=2048),
        ],
    )
    def test_public_part_reimports(self, key_factory):
        key = key_factory()
        public = jwk_to_public_key(public_jwk(private_key_to_jwk(key)))
        assert public.public_numbers() == key.public_key().public_numbers()


# ---------------------------------------------------------------------------
# jwk_to_public_key
# ---------------------------------------------------------------------------


class TestJwkToPublicKey:
    def test_rfc_rsa_key(self):
        key = jwk_to_public_key(_RFC7638_JWK)
        assert isinstance(key, rsa.RSAPublicKey)
        assert key.public_numbers().e == 65537
        assert key.key_size == 2048

    def test_unsupported_kty(self):
        with pytest.raises(KeyImportError, match="Unsupported key type"):
            jwk_to_public_key({"kty": "OKP", "crv": "Ed25519", "x": "AAAA"})

    def test_unsupported_curve(self):
        with pytest.raises(KeyImportError, match="Unsupported EC curve"):
            jwk_to_public_key({"kty": "EC", "crv": "P-192", "x": "AA", "y": "AA"})

    def test_missing_member(self):
        with pytest.raises(KeyImportError, match="Invalid EC JWK"):
            jwk_to_public_key({"kty": "EC", "crv": "P-256", "x": "AA"})

    def test_bad_base64(self):
        with pytest.raises(KeyImportError, match="Invalid RSA JWK"):
            jwk_to_public_key({"kty": "RSA", "n": "!!!", "e": "AQAB"})

    def test_point_not_on_curve(self):
        with pytest.raises(KeyImportError, match="Invalid EC JWK"):
            jwk_to_public_key({"kty": "EC", "crv": "P-256", "x": "AQ", "y": "AQ"})


# ---------------------------------------------------------------------------
# Thumbprint and key authorization
# ---------------------------------------------------------------------------


class TestThumbprint:
    def test_rfc7638_vector(self):
        assert compute_thumbprint(_RFC7638_JWK) == _RFC7638_THUMBPRINT

    def test_ignores_non_required_members(self):
        stripped = {"kty": "RSA", "n": _RFC7638_JWK["n"], "e": "AQAB"}
        assert compute_thumbprint(stripped) == compute_thumbprint(_RFC7638_JWK)

    def test_ec_thumbprint_ignores_private_member(self):
        jwk = private_key_to_jwk(ec.generate_private_key(ec.SECP256R1()))
        assert compute_thumbprint(jwk) == compute_thumbprint(public_jwk(jwk))

    def test_unsupported_kty(self):
        with pytest.raises(KeyImportError, match="Cannot compute thumbprint"):
            compute_thumbprint({"kty": "oct", "k": "AAAA"})

    def test_key_authorization(self):
        assert key_authorization("tok-123", _RFC7638_JWK) == f"tok-123.{_RFC7638_THUMBPRINT}"
