"""
Rate limiting configuration and types.

Policy only: which limits apply to which operation. Enforcement lives in
rate_limiter.py.
"""
from dataclasses import dataclass
from enum import Enum


class OperationType(Enum):
    """Operation type for rate limiting."""

    READ = "read"
    WRITE = "write"
    SENSITIVE = "sensitive"  # Bulk imports


@dataclass
class RateLimitConfig:
    """Limits for one operation type."""

    requests_per_minute: int
    requests_per_day: int


@dataclass
class RateLimitResult:
    """Outcome of a check, with everything the X-RateLimit-* headers need."""

    allowed: bool
    limit: int  # Max requests in current window
    remaining: int
    reset: int  # Unix timestamp when window resets
    retry_after: int  # Seconds until retry allowed (0 if allowed)


class RateLimitExceededError(Exception):
    """Raised when rate limit is exceeded."""

    def __init__(self, result: RateLimitResult) -> None:
        self.result = result
        super().__init__("Rate limit exceeded")


# Daily caps: read/write share the "general" pool, sensitive has its own.
RATE_LIMITS: dict[OperationType, RateLimitConfig] = {
    OperationType.READ: RateLimitConfig(requests_per_minute=180, requests_per_day=4000),
    OperationType.WRITE: RateLimitConfig(requests_per_minute=120, requests_per_day=4000),
    OperationType.SENSITIVE: RateLimitConfig(requests_per_minute=10, requests_per_day=100),
}

# Format: (HTTP_METHOD, path_without_query_params)
SENSITIVE_ENDPOINTS: set[tuple[str, str]] = {
    ("POST", "/bookmarks/upload"),
}


def get_operation_type(method: str, path: str) -> OperationType:
    """Determine operation type from HTTP method and path."""
    if (method, path) in SENSITIVE_ENDPOINTS:
        return OperationType.SENSITIVE
    if method == "GET":
        return OperationType.READ
    return OperationType.WRITE
