"""Order state machine as observed from the client side (RFC 8555 §7.1.6).

The certificate authority drives every transition; the client only
observes them while polling.  The table is used to recognise terminal
states early and to emit a structured log entry per observed change.
"""

from __future__ import annotations

import logging

from acmeflow.core.types import OrderStatus

log = logging.getLogger(__name__)

# Statuses the certificate authority may move an order to next.
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.READY, OrderStatus.INVALID}),
    OrderStatus.READY: frozenset({OrderStatus.PROCESSING, OrderStatus.INVALID}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.VALID, OrderStatus.INVALID}),
    OrderStatus.VALID: frozenset(),
    OrderStatus.INVALID: frozenset(),
}

TERMINAL_ORDER_STATUSES: frozenset[OrderStatus] = frozenset(
    status for status, targets in ORDER_TRANSITIONS.items() if not targets
)


def is_terminal(status: OrderStatus | str) -> bool:
    """Return ``True`` if no further transition can leave *status*."""
    return OrderStatus(status) in TERMINAL_ORDER_STATUSES


def log_transition(
    resource_type: str,
    resource_id: str,
    from_status: OrderStatus | str,
    to_status: OrderStatus | str,
    *,
    reason: str | None = None,
) -> None:
    """Log one observed status change as a ``state_transition`` event.

    The status values, the resource and the optional *reason* are also
    attached as record attributes so the JSON formatter emits them as
    separate fields.
    """
    before, after = str(from_status), str(to_status)
    fields = {
        "event": "state_transition",
        "resource_type": resource_type,
        "resource_id": str(resource_id),
        "from_status": before,
        "to_status": after,
    }
    suffix = ""
    if reason:
        fields["reason"] = reason
        suffix = f" ({reason})"
    log.info("%s %s: %s -> %s%s", resource_type, resource_id, before, after, suffix, extra=fields)
