"""Unit tests for acmeflow.crypto.algorithms: the key algorithm registry."""

from __future__ import annotations

import dataclasses

import pytest

from acmeflow.core.types import KeyPairAlgorithm
from acmeflow.crypto.algorithms import (
    ECDSA,
    HMAC,
    HMAC_PROPERTIES,
    RSASSA_PKCS1_V1_5,
    get_algorithm_properties,
)


class TestGetAlgorithmProperties:
    def test_default_is_ec_p256(self):
        props = get_algorithm_properties()
        assert props.name == ECDSA
        assert props.named_curve == "P-256"
        assert props.hash_name == "SHA-256"
        assert props.modulus_length is None

    def test_rsa_2048(self):
        props = get_algorithm_properties(KeyPairAlgorithm.RSA)
        assert props.name == RSASSA_PKCS1_V1_5
        assert props.modulus_length == 2048
        assert props.public_exponent == 65537
        assert props.hash_name == "SHA-256"
        assert props.named_curve is None

    def test_rsa_4096(self):
        props = get_algorithm_properties(KeyPairAlgorithm.RSA_4096)
        assert props.name == RSASSA_PKCS1_V1_5
        assert props.modulus_length == 4096
        assert props.public_exponent == 65537

    @pytest.mark.parametrize("value", ["ec", "rsa", "rsa-4096"])
    def test_accepts_string_values(self, value):
        assert get_algorithm_properties(value) == get_algorithm_properties(KeyPairAlgorithm(value))

    def test_every_algorithm_is_registered(self):
        for algorithm in KeyPairAlgorithm:
            get_algorithm_properties(algorithm)

    def test_parameter_sets_are_distinct(self):
        sets = [get_algorithm_properties(a) for a in KeyPairAlgorithm]
        assert len(set(sets)) == len(sets)

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(ValueError):
            get_algorithm_properties("dsa")

    def test_properties_are_frozen(self):
        props = get_algorithm_properties()
        with pytest.raises(dataclasses.FrozenInstanceError):
            props.named_curve = "P-384"  # type: ignore[misc]


class TestHmacProperties:
    def test_hmac_uses_sha256(self):
        assert HMAC_PROPERTIES.name == HMAC
        assert HMAC_PROPERTIES.hash_name == "SHA-256"
