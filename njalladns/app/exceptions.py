"""Exception hierarchy shared by the RPC client and the provider."""

from __future__ import annotations

from typing import List, Optional


class NjallaError(Exception):
    """Base class for every error raised by njalladns."""


class ConfigurationError(NjallaError):
    """Missing or invalid configuration, reported before any remote call."""


class TransportError(NjallaError):
    """Network, HTTP or serialization failure talking to the API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RetriesExhaustedError(TransportError):
    def __init__(self, last_error: Exception):
        super().__init__(
            f"max retries exceeded, last error: {last_error}",
            status_code=getattr(last_error, "status_code", None),
        )
        self.last_error = last_error


class APIError(NjallaError):
    """Structured error envelope returned by the API. Never retried."""

    def __init__(self, code: int, message: str):
        super().__init__(f"API error: {code} - {message}")
        self.code = code
        self.message = message


class ConversionError(NjallaError):
    """A record could not be converted to or from the provider format."""


class ConsistencyError(NjallaError):
    """Remote state contradicts an assumption the provider relies on."""


class ContextError(NjallaError):
    pass


class Cancelled(ContextError):
    def __init__(self, message: str = "context canceled"):
        super().__init__(message)


class DeadlineExceeded(ContextError):
    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


class ProviderError(NjallaError):
    """A provider operation failed.

    ``phase`` names the step that failed (``list``, ``convert``, ``add``,
    ``update``, ``delete``, ``consistency`` or ``cancelled``). ``records``
    holds the records that were processed successfully before the failure;
    batch callers compare its length against their input to know how far
    the batch got. The underlying error is chained as ``__cause__``.
    """

    def __init__(self, message: str, phase: str, records: Optional[List] = None):
        super().__init__(message)
        self.phase = phase
        self.records = list(records or [])
