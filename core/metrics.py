"""
Prometheus metrics for the license commerce service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# License metrics
licenses_issued_total = Counter(
    "licenses_issued_total",
    "Total licenses issued",
    ["source"],
)

license_checks_total = Counter(
    "license_checks_total",
    "Total runtime license checks",
    ["operation", "result"],
)

license_code_collisions_total = Counter(
    "license_code_collisions_total",
    "Candidate license codes that were already taken",
)

license_recoveries_total = Counter(
    "license_recoveries_total",
    "License recovery requests",
    ["result"],
)

# Billing metrics
invoices_issued_total = Counter(
    "invoices_issued_total",
    "Total invoices recorded in the ledger",
    ["method"],
)

# Order metrics
orders_created_total = Counter(
    "orders_created_total",
    "Total manual orders created",
    ["method"],
)

orders_completed_total = Counter(
    "orders_completed_total",
    "Total manual orders completed",
    ["status"],
)

payment_events_total = Counter(
    "payment_events_total",
    "Total trusted payment events by outcome",
    ["status"],
)

emails_sent_total = Counter(
    "emails_sent_total",
    "Outgoing emails by delivery status",
    ["status"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
