"""Logging subsystem for ACMEFLOW.

Public API::

    from acmeflow.logging import configure_logging, issuance_context

    configure_logging(settings.logging)
"""

from acmeflow.logging.setup import configure_logging, issuance_context

__all__ = ["configure_logging", "issuance_context"]
