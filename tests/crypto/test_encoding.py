"""Unit tests for acmeflow.crypto.encoding."""

from __future__ import annotations

import pytest

from acmeflow.core.errors import ParseError
from acmeflow.crypto.encoding import b64url_decode, b64url_encode


class TestB64urlEncode:
    def test_strips_padding(self):
        assert b64url_encode(b"a") == "YQ"

    def test_uses_url_safe_alphabet(self):
        assert b64url_encode(b"\xfb\xff") == "-_8"


class TestB64urlDecode:
    @pytest.mark.parametrize("text", ["YQ", "YQ=="])
    def test_padding_optional(self, text):
        assert b64url_decode(text) == b"a"

    def test_empty_string(self):
        assert b64url_decode("") == b""

    @pytest.mark.parametrize("text", ["a+b/", "YQ\n", "Y Q", "YQ==="])
    def test_rejects_foreign_characters(self, text):
        with pytest.raises(ParseError, match="unexpected character"):
            b64url_decode(text)

    def test_rejects_impossible_length(self):
        with pytest.raises(ParseError, match="impossible length"):
            b64url_decode("YQXYZ")
