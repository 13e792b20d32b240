"""Prometheus metrics for the PostgreSQL Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "postgresql_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "postgresql_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Child resource metrics
child_created_total = Counter(
    "postgresql_operator_child_created_total",
    "Total number of child resources created",
    ["kind"],
)

status_updates_total = Counter(
    "postgresql_operator_status_updates_total",
    "Total number of Database status writes",
    ["result"],
)

# Error metrics
error_total = Counter(
    "postgresql_operator_error_total",
    "Total number of errors",
    ["kind", "error_type"],
)

# API call metrics
api_call_total = Counter(
    "postgresql_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "postgresql_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "postgresql_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
