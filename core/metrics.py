"""
Prometheus metrics for the entitlement service.

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

# Purchase ledger metrics
purchases_created_total = Counter(
    "purchases_created_total",
    "Total purchases recorded",
    ["origin", "status"],
)

purchase_status_transitions_total = Counter(
    "purchase_status_transitions_total",
    "Purchase status transitions applied by the provisioning coordinator",
    ["old_status", "new_status"],
)

purchase_transitions_skipped_total = Counter(
    "purchase_transitions_skipped_total",
    "Completion signals that did not change a purchase",
    ["reason"],
)

licenses_materialized_total = Counter(
    "licenses_materialized_total",
    "Total license seats materialized for approved purchases",
    ["product_id"],
)

# Device activation metrics
device_activations_total = Counter(
    "device_activations_total",
    "Activation log outcomes",
    ["action", "outcome"],
)

# Webhook metrics
webhook_deliveries_total = Counter(
    "webhook_deliveries_total",
    "Inbound payment processor webhook deliveries",
    ["outcome"],
)

# Payment processor metrics
payment_processor_request_duration_seconds = Histogram(
    "payment_processor_request_duration_seconds",
    "Payment processor API call duration in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Downstream notification metrics
notification_failures_total = Counter(
    "notification_failures_total",
    "Invoice or email notifications that failed",
    ["channel"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
