"""Prometheus counters exposed at ``/metrics``."""

from __future__ import annotations

from prometheus_client import Counter

auth_events = Counter(
    "contafricax_auth_events_total",
    "Authentication events",
    labelnames=("event", "outcome"),
)
transactions_written = Counter(
    "contafricax_transactions_written_total",
    "Transaction writes",
    labelnames=("op",),
)
report_exports = Counter(
    "contafricax_report_exports_total",
    "Report downloads",
    labelnames=("report", "format"),
)

payment_events = Counter(
    "contafricax_payment_events_total",
    "Mobile payment lifecycle events",
    labelnames=("op",),
)


def prime_metrics() -> None:
    """Initialize label series at startup so they appear before the first sample."""
    for event in ("register", "login", "verify"):
        for outcome in ("ok", "fail"):
            auth_events.labels(event=event, outcome=outcome)
    for op in ("create", "update", "delete", "status"):
        transactions_written.labels(op=op)
    for op in ("initiate", "callback", "cancel", "refund"):
        payment_events.labels(op=op)


__all__ = [
    "auth_events",
    "transactions_written",
    "report_exports",
    "payment_events",
    "prime_metrics",
]
