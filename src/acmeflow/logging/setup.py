"""Logging configuration for ACMEFLOW.

Records emitted while :func:`issuance_context` is active carry the
order URL and the comma-joined domain list.  The context lives in a
:class:`contextvars.ContextVar`, so tasks spawned by a fan-out inside
the block inherit it.  :func:`configure_logging` installs a single
stderr handler on the ``acmeflow`` logger using either the text or the
JSON-lines formatter.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from acmeflow.logging.sanitize import sanitize_for_logs

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from acmeflow.config.settings import LoggingSettings

_NO_CONTEXT = "-"

# Attribute names every LogRecord has; anything else came from ``extra=``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "order_url",
    "domains",
}

_issuance: contextvars.ContextVar[tuple[str, str] | None] = contextvars.ContextVar(
    "acmeflow_issuance",
    default=None,
)


@contextlib.contextmanager
def issuance_context(order_url: str, domains: Sequence[str]) -> Iterator[None]:
    """Tag every record logged inside the block with *order_url* and *domains*."""
    token = _issuance.set((order_url, ",".join(domains)))
    try:
        yield
    finally:
        _issuance.reset(token)


class IssuanceContextFilter(logging.Filter):
    """Copy the active issuance context onto each record.

    Outside :func:`issuance_context` both attributes are ``"-"`` unless
    the caller already set them through ``extra=``.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        current = _issuance.get()
        if current is None:
            for attr in ("order_url", "domains"):
                if not hasattr(record, attr):
                    setattr(record, attr, _NO_CONTEXT)
        else:
            record.order_url, record.domains = current  # type: ignore[attr-defined]
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per line.

    Fixed fields come first, then the issuance context when there is
    one, then the sanitized ``extra=`` attributes.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in ("order_url", "domains"):
            value = getattr(record, attr, None)
            if value not in (None, _NO_CONTEXT):
                payload[attr] = value

        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            payload.setdefault(key, sanitize_for_logs(value))

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Single-line console format tagged with the order URL."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-8s %(name)s [%(order_url)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def configure_logging(settings: LoggingSettings) -> logging.Logger:
    """Route the ``acmeflow`` logger hierarchy to stderr.

    Idempotent: handlers installed by an earlier call are replaced.
    Returns the ``acmeflow`` logger.
    """
    logger = logging.getLogger("acmeflow")
    logger.setLevel(logging.getLevelNamesMapping().get(settings.level.upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter() if settings.format == "json" else TextFormatter())
    handler.addFilter(IssuanceContextFilter())
    logger.addHandler(handler)
    logger.propagate = False

    # dnspython logs every query at DEBUG
    logging.getLogger("dns").setLevel(logging.WARNING)
    return logger
