"""Redaction of key material before it reaches a log handler.

Certificate keys, HMAC secrets and CSRs travel through the same code
paths that report issuance progress, so every structured ``extra``
value is passed through :func:`sanitize_for_logs` by the JSON
formatter.  Diagnostic metadata such as ``kty``, ``crv`` and
``key_ops`` survives; key bytes do not.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

REDACTED = "[REDACTED]"

# Members carrying key bytes; public ones too, they identify the key
_KEY_MATERIAL_MEMBERS = frozenset({"n", "e", "x", "y", "d", "p", "q", "dp", "dq", "qi", "k", "oth"})

_PEM_BLOCK_RE = re.compile(
    r"(?P<begin>-----BEGIN (?P<label>[A-Z0-9 ]+)-----)"
    r"[\s\S]*?"
    r"(?P<end>-----END (?P=label)-----)",
)


def sanitize_jwk(jwk: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *jwk* whose key members read ``[REDACTED]``."""
    return {member: REDACTED if member in _KEY_MATERIAL_MEMBERS else value for member, value in jwk.items()}


def sanitize_pem(text: str) -> str:
    """Blank the body of every PEM block in *text*, keeping its armour lines."""
    return _PEM_BLOCK_RE.sub(lambda m: f"{m['begin']}\n{REDACTED}\n{m['end']}", text)


def sanitize_for_logs(value: Any) -> Any:  # noqa: ANN401
    """Return *value* with key material removed, recursing into containers.

    Mappings with a ``kty`` member are treated as JWKs, strings have
    their PEM bodies blanked, and raw ``bytes`` (DER, signatures) are
    reduced to their length.
    """
    if isinstance(value, Mapping):
        if "kty" in value:
            return sanitize_jwk(value)
        return {key: sanitize_for_logs(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return type(value)(sanitize_for_logs(item) for item in value)
    if isinstance(value, bytes | bytearray):
        return f"<{len(value)} bytes>"
    if isinstance(value, str) and "-----BEGIN " in value:
        return sanitize_pem(value)
    return value
