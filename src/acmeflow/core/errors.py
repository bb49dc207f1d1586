"""Exception hierarchy for ACMEFLOW.

Every error carries a human-readable :attr:`AcmeflowError.detail`.
Errors raised by external collaborators (the ACME protocol client,
fulfillment callbacks) are never wrapped and pass through unmodified.
"""

from __future__ import annotations

from typing import Any


class AcmeflowError(Exception):
    """Base class for every error raised by ACMEFLOW itself.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.

    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(AcmeflowError):
    """The issuance request cannot be satisfied as configured."""


class MissingChallengeError(ConfigurationError):
    """An authorization does not offer the challenge type the request needs.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.
    authorization:
        The authorization lacking the challenge.
    challenge_type:
        The challenge type that was looked up.

    """

    def __init__(self, detail: str, *, authorization: Any, challenge_type: str) -> None:  # noqa: ANN401
        self.authorization = authorization
        self.challenge_type = challenge_type
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


class ParseError(AcmeflowError):
    """Input could not be decoded (malformed PEM or base64url)."""


class KeyImportError(AcmeflowError):
    """A key could not be imported."""


class PemParseError(KeyImportError, ParseError):
    """No usable PEM object was found in the input text."""


class CryptoProviderError(AcmeflowError):
    """The cryptographic provider rejected an operation."""


class KeyUsageError(CryptoProviderError):
    """The key does not carry the capability the operation requires."""


# ---------------------------------------------------------------------------
# Polling
# ---------------------------------------------------------------------------


class PollTimeoutError(AcmeflowError):
    """A poll did not observe the awaited state within its budget.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.
    timeout:
        The budget, in seconds, that was exhausted.

    """

    def __init__(self, detail: str, *, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(detail)


class DnsPropagationTimeoutError(PollTimeoutError):
    """A TXT record was not observed on the name servers within the budget."""

    def __init__(self, detail: str, *, timeout: float, record_name: str) -> None:
        self.record_name = record_name
        super().__init__(detail, timeout=timeout)


class OrderStatusError(AcmeflowError):
    """An order reached a terminal status other than the awaited one.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.
    status:
        The terminal status that was observed.

    """

    def __init__(self, detail: str, *, status: str) -> None:
        self.status = status
        super().__init__(detail)


# ---------------------------------------------------------------------------
# DNS
# ---------------------------------------------------------------------------


class DnsResolutionError(AcmeflowError):
    """The authoritative name servers for a domain could not be determined."""


class DnsQueryError(AcmeflowError):
    """A single DNS query failed transiently (timeout, SERVFAIL, refused)."""
