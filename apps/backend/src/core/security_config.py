"""Security configuration constants for the Prompt Grader API.

Centralizes the keys that must be redacted from structured logs and the
error-response fields each environment may expose.
"""

# Provider credentials and transport headers. Matching is substring based,
# so "anthropic_api_key" and "x-api-key" are both covered by "api_key"/"api-key".
SENSITIVE_KEYS: set[str] = {
    "secret",
    "token",
    "password",
    "authorization",
    "bearer",
    "api_key",
    "api-key",
    "apikey",
    "connection_string",
    "cookie",
}

# Error envelope fields by environment; production exposes no diagnostics
PRODUCTION_ERROR_FIELDS: set[str] = {
    "correlation_id",
    "type",
}

DEVELOPMENT_ERROR_FIELDS: set[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    if environment == "production":
        return set(PRODUCTION_ERROR_FIELDS)
    return set(DEVELOPMENT_ERROR_FIELDS)


def is_sensitive_key(key: str) -> bool:
    """True if ``key`` contains any of the SENSITIVE_KEYS, case-insensitively."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
