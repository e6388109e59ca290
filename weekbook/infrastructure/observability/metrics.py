"""Prometheus metrics for book lifecycle, transaction admission and scheduler health"""

from prometheus_client import Counter, Histogram

# Book lifecycle
book_events_counter = Counter(
    "weekbook_book_events_total",
    "Book lifecycle events",
    ["event"],  # created | updated | deleted | closed | generated
)

# Transaction admission
transaction_events_counter = Counter(
    "weekbook_transaction_events_total",
    "Accepted transaction mutations",
    ["event"],  # created | updated | deleted
)

admission_rejections_counter = Counter(
    "weekbook_admission_rejections_total",
    "Transaction mutations rejected by admission rules",
    ["reason"],  # not_found | forbidden | state | range
)

# Scheduler
scheduler_ticks_counter = Counter(
    "weekbook_scheduler_ticks_total",
    "Scheduler tick executions",
    ["tick", "outcome"],  # auto_close|auto_generate x ok|error
)

# Audit trail
audit_write_failures_counter = Counter(
    "weekbook_audit_write_failures_total",
    "Action log entries that could not be written",
)

# Notification webhook
webhook_latency_histogram = Histogram(
    "weekbook_notification_webhook_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "weekbook_notification_webhook_failures_total",
    "Failed notification webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_book_event(event: str) -> None:
    book_events_counter.labels(event=event).inc()


def record_transaction_event(event: str) -> None:
    transaction_events_counter.labels(event=event).inc()


def record_admission_rejection(reason: str) -> None:
    admission_rejections_counter.labels(reason=reason).inc()
