"""Error sanitization utilities to prevent credential leakage."""

import re


# Patterns whose captured value must not reach logs or events
SENSITIVE_PATTERNS = [
    r"POSTGRES_PASSWORD[\"'=:\s]+([^\s,;\)\"']+)",
    r"db\.password[\"'=:\s]+([^\s,;\)\"']+)",
    r"postgres(?:ql)?://[^:/\s]+:([^@\s]+)@",
    r"authorization[:\s]+bearer\s+([A-Za-z0-9\-_\.]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "secret",
    "credentials",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{field}[\"']?[:=]\s*[\"']?([^\s,;\)\"']+)",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))

