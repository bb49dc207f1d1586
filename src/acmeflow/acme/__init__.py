"""ACME resource boundary.

Exports the abstract account/order/authorization/challenge resources
and the challenge artifact value objects.
"""

from acmeflow.acme.resources import (
    AcmeAccount,
    AcmeAuthorization,
    AcmeChallenge,
    AcmeOrder,
    DnsTxtRecord,
    HttpResource,
)

__all__ = [
    "AcmeAccount",
    "AcmeAuthorization",
    "AcmeChallenge",
    "AcmeOrder",
    "DnsTxtRecord",
    "HttpResource",
]
