"""Abstract ACME resources consumed by the issuance workflow.

A protocol client (request signing, nonces, HTTP transport) subclasses
:class:`AcmeAccount`, :class:`AcmeOrder`, :class:`AcmeAuthorization` and
:class:`AcmeChallenge` and implements the abstract members.  The
concrete members here cover the protocol-independent parts: polling
an order, finalizing with a fresh key pair, picking a challenge, and
computing the expected DNS/HTTP challenge artifacts (RFC 8555 §8).
"""

from __future__ import annotations

import abc
import asyncio
import hashlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from acmeflow.core import polling
from acmeflow.core.errors import ConfigurationError, OrderStatusError
from acmeflow.core.state import is_terminal, log_transition
from acmeflow.core.types import ChallengeType, KeyPairAlgorithm, OrderStatus
from acmeflow.crypto.csr import build_csr
from acmeflow.crypto.encoding import b64url_encode
from acmeflow.crypto.keys import generate_key_pair

if TYPE_CHECKING:
    from collections.abc import Sequence

    from acmeflow.crypto.keys import KeyPair

log = logging.getLogger(__name__)

DNS_CHALLENGE_LABEL = "_acme-challenge"
HTTP_CHALLENGE_PATH = "/.well-known/acme-challenge/"


# ---------------------------------------------------------------------------
# Challenge artifacts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DnsTxtRecord:
    """A TXT record that must be published to satisfy a ``dns-01`` challenge."""

    name: str
    content: str
    type: str = "TXT"


@dataclass(frozen=True)
class HttpResource:
    """A resource that must be served to satisfy an ``http-01`` challenge."""

    url: str
    content: str


# ---------------------------------------------------------------------------
# Challenge
# ---------------------------------------------------------------------------


class AcmeChallenge(abc.ABC):
    """One proof-of-control mechanism offered by an authorization."""

    @property
    @abc.abstractmethod
    def type(self) -> ChallengeType:
        """The challenge type (``dns-01`` or ``http-01``)."""

    @property
    @abc.abstractmethod
    def token(self) -> str:
        """The challenge token issued by the certificate authority."""

    @property
    @abc.abstractmethod
    def domain(self) -> str:
        """The identifier value the challenge proves control of."""

    @abc.abstractmethod
    async def key_authorization(self) -> str:
        """Return ``token.thumbprint`` for the account key (RFC 8555 §8.1)."""

    @abc.abstractmethod
    async def submit(self) -> Any:  # noqa: ANN401
        """Tell the certificate authority the challenge is ready for validation.

        Submission does not change the order status by itself; the order
        must be polled afterwards.
        """

    async def get_dns_record_answer(self) -> DnsTxtRecord:
        """Return the TXT record a ``dns-01`` validation will look for.

        The record lives at ``_acme-challenge.{domain}`` (wildcard prefix
        stripped) and holds the base64url SHA-256 digest of the key
        authorization.
        """
        self._require_type(ChallengeType.DNS_01)
        key_authz = await self.key_authorization()
        digest = hashlib.sha256(key_authz.encode("ascii")).digest()
        domain = self.domain.removeprefix("*.")
        return DnsTxtRecord(
            name=f"{DNS_CHALLENGE_LABEL}.{domain}",
            content=b64url_encode(digest),
        )

    async def get_http_resource(self) -> HttpResource:
        """Return the resource an ``http-01`` validation will fetch."""
        self._require_type(ChallengeType.HTTP_01)
        key_authz = await self.key_authorization()
        return HttpResource(
            url=f"http://{self.domain}{HTTP_CHALLENGE_PATH}{self.token}",
            content=key_authz,
        )

    def _require_type(self, expected: ChallengeType) -> None:
        if self.type != expected:
            msg = f"{self.type} challenge for {self.domain} has no {expected} artifact"
            raise ConfigurationError(msg)


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class AcmeAuthorization(abc.ABC):
    """Proof-of-control requirement for one identifier of an order."""

    @property
    @abc.abstractmethod
    def url(self) -> str:
        """The authorization URL."""

    @property
    @abc.abstractmethod
    def domain(self) -> str:
        """The identifier value being authorized."""

    @property
    @abc.abstractmethod
    def challenges(self) -> Sequence[AcmeChallenge]:
        """Challenges offered by the certificate authority."""

    def find_challenge(self, challenge_type: ChallengeType | str) -> AcmeChallenge | None:
        """Return the first offered challenge of *challenge_type*, if any."""
        wanted = ChallengeType(challenge_type)
        return next((c for c in self.challenges if c.type == wanted), None)

    def find_dns01_challenge(self) -> AcmeChallenge | None:
        return self.find_challenge(ChallengeType.DNS_01)

    def find_http01_challenge(self) -> AcmeChallenge | None:
        return self.find_challenge(ChallengeType.HTTP_01)

    def __str__(self) -> str:
        return f"{self.url} ({self.domain})"


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------


class AcmeOrder(abc.ABC):
    """Remote order resource.

    Subclasses may override :attr:`poll_interval` and
    :attr:`certificate_key_algorithm`.
    """

    poll_interval: ClassVar[float] = 1.0
    """Seconds between two status fetches while polling."""

    certificate_key_algorithm: ClassVar[KeyPairAlgorithm] = KeyPairAlgorithm.EC
    """Algorithm of the key pair generated on :meth:`finalize`."""

    _observed_status: OrderStatus | None = None

    @property
    @abc.abstractmethod
    def url(self) -> str:
        """The order URL."""

    @property
    @abc.abstractmethod
    def domains(self) -> Sequence[str]:
        """Identifier values the order covers."""

    @property
    @abc.abstractmethod
    def authorizations(self) -> Sequence[AcmeAuthorization]:
        """One authorization per identifier (not necessarily in order)."""

    @abc.abstractmethod
    async def fetch_status(self) -> OrderStatus | str:
        """Fetch the current order status from the certificate authority."""

    @abc.abstractmethod
    async def submit_csr(self, csr_der: bytes) -> None:
        """Post the DER-encoded CSR to the order's finalize URL."""

    @abc.abstractmethod
    async def get_certificate(self) -> str:
        """Download the issued PEM certificate chain."""

    async def poll_status(
        self,
        *,
        poll_until: OrderStatus | str,
        timeout: float,
    ) -> None:
        """Poll until the order reaches *poll_until*.

        The status is fetched at least once regardless of *timeout*.

        Raises
        ------
        PollTimeoutError
            If *poll_until* is not observed within *timeout* seconds.
        OrderStatusError
            If the order reaches a different terminal status.

        """
        target = OrderStatus(poll_until)

        async def _reached() -> bool:
            status = OrderStatus(await self.fetch_status())
            if status != self._observed_status:
                if self._observed_status is not None:
                    log_transition("order", self.url, self._observed_status, status)
                self._observed_status = status
            if status == target:
                return True
            if is_terminal(status):
                msg = f"Order {self.url} became '{status}' while waiting for '{target}'"
                raise OrderStatusError(msg, status=status)
            return False

        await polling.poll_until(
            _reached,
            timeout=timeout,
            interval=self.poll_interval,
            description=f"order {self.url} to become '{target}'",
        )

    async def finalize(self) -> KeyPair:
        """Submit a CSR for a freshly generated key pair and return the pair."""
        key_pair = await asyncio.to_thread(generate_key_pair, self.certificate_key_algorithm)
        csr_der = build_csr(list(self.domains), key_pair)
        log.info(
            "Finalizing order %s with a new %s key",
            self.url,
            self.certificate_key_algorithm.value,
        )
        await self.submit_csr(csr_der)
        return key_pair


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


class AcmeAccount(abc.ABC):
    """An ACME account able to place orders."""

    @abc.abstractmethod
    async def create_order(self, *, domains: Sequence[str]) -> AcmeOrder:
        """Create a new order for *domains*."""
