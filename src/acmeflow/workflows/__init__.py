"""Certificate issuance workflow."""

from acmeflow.workflows.certificate import (
    READINESS_PROBE_TIMEOUT,
    CertificateResult,
    ChallengeStrategy,
    DnsChallengeStrategy,
    HttpChallengeStrategy,
    ReadinessProbe,
    RequestCertificateConfig,
    challenge_strategy_from_callbacks,
    probe_order_ready,
    request_certificate,
)

__all__ = [
    "READINESS_PROBE_TIMEOUT",
    "CertificateResult",
    "ChallengeStrategy",
    "DnsChallengeStrategy",
    "HttpChallengeStrategy",
    "ReadinessProbe",
    "RequestCertificateConfig",
    "challenge_strategy_from_callbacks",
    "probe_order_ready",
    "request_certificate",
]
