"""Enumerated types shared across ACMEFLOW.

All enums inherit from :class:`enum.StrEnum` so their ``.value`` is the
plain wire string (``"dns-01"``, ``"ready"``, ``"rsa-4096"``) and they
compare equal to it.
"""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


class KeyPairAlgorithm(StrEnum):
    EC = "ec"
    RSA = "rsa"
    RSA_4096 = "rsa-4096"


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------


class OrderStatus(StrEnum):
    PENDING = "pending"
    READY = "ready"
    PROCESSING = "processing"
    VALID = "valid"
    INVALID = "invalid"


# ---------------------------------------------------------------------------
# Challenge types
# ---------------------------------------------------------------------------


class ChallengeType(StrEnum):
    HTTP_01 = "http-01"
    DNS_01 = "dns-01"
