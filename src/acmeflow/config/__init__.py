"""Configuration subsystem for ACMEFLOW.

Public API::

    from acmeflow.config import get_config, AcmeflowConfig

    # At startup:
    AcmeflowConfig(config_file="config.yaml")

    # Everywhere else:
    cfg     = get_config()
    timeout = cfg.settings.issuance.timeout_seconds   # typed access
    port    = cfg.get("dns.port")                     # dynamic dot-path
"""

from acmeflow.config.acmeflow_config import (
    AcmeflowConfig,
    ConfigValidationError,
    get_config,
)
from acmeflow.config.settings import (
    AcmeflowSettings,
    DnsSettings,
    IssuanceSettings,
    LoggingSettings,
    build_settings,
)

__all__ = [
    "AcmeflowConfig",
    "AcmeflowSettings",
    "ConfigValidationError",
    "DnsSettings",
    "IssuanceSettings",
    "LoggingSettings",
    "build_settings",
    "get_config",
]
