"""Base64url helpers (RFC 4648 §5, unpadded as used by JOSE and ACME)."""

from __future__ import annotations

import base64
import binascii
import re

from acmeflow.core.errors import ParseError

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def b64url_encode(b: bytes) -> str:
    """Encode bytes to base64url without padding.

    Parameters
    ----------
    b:
        Raw bytes to encode.

    Returns
    -------
    str
        Base64url-encoded string.

    """
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode("ascii")


def b64url_decode(s: str) -> bytes:
    """Decode a base64url string (padding optional).

    Parameters
    ----------
    s:
        Base64url-encoded string.

    Returns
    -------
    bytes
        Decoded bytes.

    Raises
    ------
    ParseError
        If *s* contains characters outside the URL-safe alphabet or has
        a length no base64 encoding can produce.

    """
    if not _B64URL_RE.fullmatch(s):
        msg = "Invalid base64url: unexpected character in input"
        raise ParseError(msg)
    s = s.rstrip("=")
    if len(s) % 4 == 1:
        msg = f"Invalid base64url: impossible length {len(s)}"
        raise ParseError(msg)
    try:
        return base64.urlsafe_b64decode(s + "=" * (-len(s) % 4))
    except (binascii.Error, ValueError) as exc:
        msg = f"Invalid base64url: {exc}"
        raise ParseError(msg) from exc
