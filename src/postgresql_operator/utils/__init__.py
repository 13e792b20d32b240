"""Utility functions for the PostgreSQL Operator."""

from .context import get_context_dict, get_correlation_id, with_correlation_id
from .errors import sanitize_error_message, sanitize_exception
from .events import emit_event
from .rate_limit import handle_rate_limit_error, rate_limit_k8s

__all__ = [
    "emit_event",
    "get_context_dict",
    "get_correlation_id",
    "handle_rate_limit_error",
    "rate_limit_k8s",
    "sanitize_error_message",
    "sanitize_exception",
    "with_correlation_id",
]
