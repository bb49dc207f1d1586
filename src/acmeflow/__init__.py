"""ACMEFLOW: ACME certificate issuance workflow and key utilities."""

from acmeflow.workflows.certificate import (
    CertificateResult,
    DnsChallengeStrategy,
    HttpChallengeStrategy,
    RequestCertificateConfig,
    challenge_strategy_from_callbacks,
    request_certificate,
)

__version__ = "0.1.0"

__all__ = [
    "CertificateResult",
    "DnsChallengeStrategy",
    "HttpChallengeStrategy",
    "RequestCertificateConfig",
    "__version__",
    "challenge_strategy_from_callbacks",
    "request_certificate",
]
