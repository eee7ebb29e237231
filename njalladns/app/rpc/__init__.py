from .client import (
    API_ENDPOINT,
    JSONRPCClient,
    RetryPolicy,
    calculate_backoff,
    is_retryable,
)

__all__ = [
    "API_ENDPOINT",
    "JSONRPCClient",
    "RetryPolicy",
    "calculate_backoff",
    "is_retryable",
]
