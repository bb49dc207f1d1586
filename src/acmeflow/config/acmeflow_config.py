"""ACMEFLOW configuration loader.

The embedding application loads the YAML file once::

    AcmeflowConfig(config_file="/etc/acmeflow/config.yaml")

and every module reads it back through :func:`get_config`::

    issuance = get_config().settings.issuance
    lifetime = get_config().get("dns.lifetime_seconds", default=5.0)

String values of the form ``${VAR}`` or ``${VAR:-default}`` are
replaced from the environment before validation.
"""

from __future__ import annotations

import ipaddress
import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from acmeflow.config.settings import AcmeflowSettings, build_settings

_ENV_REF_RE = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<default>.*))?\}", re.DOTALL)

_KNOWN_SECTIONS = frozenset({"issuance", "dns", "logging"})
_KNOWN_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_KNOWN_LOG_FORMATS = frozenset({"text", "json"})
_MAX_PORT = 65535

log = logging.getLogger(__name__)

_instance: AcmeflowConfig | None = None


def get_config() -> AcmeflowConfig:
    """Return the loaded configuration.

    Raises :class:`RuntimeError` while no :class:`AcmeflowConfig` has
    been created.
    """
    if _instance is None:
        msg = "ACMEFLOW configuration not initialised; create AcmeflowConfig(config_file=...) first"
        raise RuntimeError(msg)
    return _instance


class ConfigValidationError(Exception):
    """The configuration file could not be loaded or failed validation.

    Attributes
    ----------
    errors:
        Every problem found, in discovery order.

    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid ACMEFLOW configuration: " + "; ".join(self.errors))


def _expand_env(value: Any, path: str = "") -> Any:  # noqa: ANN401
    """Return a copy of *value* with ``${VAR}`` references replaced."""
    if isinstance(value, dict):
        return {key: _expand_env(item, f"{path}.{key}" if path else str(key)) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item, f"{path}[{idx}]") for idx, item in enumerate(value)]
    if not isinstance(value, str):
        return value

    ref = _ENV_REF_RE.fullmatch(value)
    if ref is None:
        return value
    resolved = os.environ.get(ref["name"], ref["default"])
    if resolved is None:
        msg = f"{path}: environment variable '{ref['name']}' is not set and has no default"
        raise ConfigValidationError([msg])
    return resolved


def _as_number(value: Any) -> float | None:  # noqa: ANN401
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class AcmeflowConfig:
    """Validated ACMEFLOW configuration loaded from one YAML file.

    Loads a YAML file, resolves environment references, validates it
    and exposes the typed settings tree at :pyattr:`settings` and the
    raw dict via :pyattr:`data` / :pymeth:`get`.
    """

    def __init__(self, *, config_file: str | Path) -> None:
        """Load, validate and register the configuration singleton.

        Parameters
        ----------
        config_file:
            Path to the YAML configuration file.

        Raises
        ------
        ConfigValidationError
            If the file is unreadable, not a mapping, or fails validation.

        """
        global _instance  # noqa: PLW0603

        self._config_file = Path(config_file)
        self._data = self._load()
        self.additional_checks()
        self._settings: AcmeflowSettings = build_settings(self._data)
        _instance = self
        log.debug("Loaded configuration from %s", self._config_file)

    @classmethod
    def reset(cls) -> None:
        """Drop the registered singleton (used by tests)."""
        global _instance  # noqa: PLW0603
        _instance = None

    # -- lifecycle ----------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        """Load config file then resolve ``${VAR}`` env-var references."""
        try:
            raw = self._config_file.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Cannot read config file '{self._config_file}': {exc}"
            raise ConfigValidationError([msg]) from exc
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            msg = f"Config file '{self._config_file}' is not valid YAML: {exc}"
            raise ConfigValidationError([msg]) from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            msg = f"Config file '{self._config_file}' must contain a mapping at the top level"
            raise ConfigValidationError([msg])
        return _expand_env(data)

    # -- typed access -------------------------------------------------------

    @property
    def settings(self) -> AcmeflowSettings:
        """Typed settings built from the validated file."""
        return self._settings

    @property
    def data(self) -> dict[str, Any]:
        """Raw configuration dict after env-var resolution."""
        return self._data

    def get(self, path: str, default: Any = None) -> Any:  # noqa: ANN401
        """Look up a dot-separated *path* in the raw configuration."""
        node: Any = self._data
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    # -- validation ---------------------------------------------------------

    def additional_checks(self) -> None:  # noqa: C901, PLR0912
        """Semantic & cross-field validation, collecting every problem."""
        errors: list[str] = []

        for section in sorted(set(self._data) - _KNOWN_SECTIONS):
            errors.append(f"unknown configuration section '{section}'")
        for section in sorted(_KNOWN_SECTIONS & set(self._data)):
            if self._data[section] is not None and not isinstance(self._data[section], dict):
                errors.append(f"{section} must be a mapping")
        if errors:
            raise ConfigValidationError(errors)

        issuance = self._data.get("issuance") or {}
        dns_cfg = self._data.get("dns") or {}
        logging_cfg = self._data.get("logging") or {}

        # -- issuance --
        timeout = _as_number(issuance.get("timeout_seconds", 30.0))
        if timeout is None or timeout <= 0:
            errors.append("issuance.timeout_seconds must be a positive number")
        delay = _as_number(issuance.get("delay_after_dns_records_confirmed_seconds", 5.0))
        if delay is None or delay < 0:
            errors.append(
                "issuance.delay_after_dns_records_confirmed_seconds must be a non-negative number",
            )
        interval = _as_number(issuance.get("poll_interval_seconds", 1.0))
        if interval is None or interval <= 0:
            errors.append("issuance.poll_interval_seconds must be a positive number")
        elif timeout is not None and timeout > 0 and interval > timeout:
            errors.append(
                f"issuance.poll_interval_seconds ({interval}) must not exceed "
                f"issuance.timeout_seconds ({timeout})",
            )

        # -- dns --
        resolvers = dns_cfg.get("resolvers", [])
        if not isinstance(resolvers, list):
            errors.append("dns.resolvers must be a list of IP addresses")
        else:
            for resolver in resolvers:
                try:
                    ipaddress.ip_address(str(resolver))
                except ValueError:
                    errors.append(f"dns.resolvers entry '{resolver}' is not an IP address")
        port = dns_cfg.get("port", 53)
        if isinstance(port, str) and port.isdigit():
            port = int(port)
        if not isinstance(port, int) or isinstance(port, bool) or not 0 < port <= _MAX_PORT:
            errors.append(f"dns.port must be an integer between 1 and {_MAX_PORT}")
        lifetime = _as_number(dns_cfg.get("lifetime_seconds", 5.0))
        if lifetime is None or lifetime <= 0:
            errors.append("dns.lifetime_seconds must be a positive number")

        # -- logging --
        level = str(logging_cfg.get("level", "INFO")).upper()
        if level not in _KNOWN_LOG_LEVELS:
            errors.append(
                f"logging.level '{logging_cfg.get('level')}' is not one of {sorted(_KNOWN_LOG_LEVELS)}",
            )
        fmt = logging_cfg.get("format", "text")
        if fmt not in _KNOWN_LOG_FORMATS:
            errors.append(f"logging.format '{fmt}' is not one of {sorted(_KNOWN_LOG_FORMATS)}")

        if errors:
            raise ConfigValidationError(errors)
